"""
Data models for gRNA query processing.

Every entity here is created and discarded within a single request.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from ..errors import ErrorKind


class Direction(Enum):
    """Strand a guide sits on, relative to the reference."""
    POSITIVE = "positive"
    NEGATIVE = "negative"


class QueryType(Enum):
    """Sub-pipeline a request is routed to."""
    STANDARD = "standard"
    GRNA = "grna"
    LIBRARY = "library"


Coords = Tuple[str, int, int]


@dataclass(frozen=True)
class GenomicRegion:
    """
    A named genomic span to query.

    Attributes:
        region_name: Name shown to the user (gene, coordinate string, or
            the raw guide sequence in sequence-search mode)
        chromosome_name: Display name of the chromosome (e.g. "chr1")
        coords: (chromosome accession, start, end), 1-based inclusive
        organism: Organism tag, set by the region normalizer
    """
    region_name: str
    chromosome_name: str
    coords: Coords
    organism: Optional[str] = None

    def __post_init__(self):
        _, start, end = self.coords
        if start > end:
            raise ValueError(f"Region {self.region_name}: start {start} > end {end}")

    @property
    def chromosome(self) -> str:
        return self.coords[0]

    @property
    def start(self) -> int:
        return self.coords[1]

    @property
    def end(self) -> int:
        return self.coords[2]

    @property
    def length(self) -> int:
        return self.end - self.start

    def with_organism(self, organism: str) -> 'GenomicRegion':
        return replace(self, organism=organism)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'region_name': self.region_name,
            'chromosome_name': self.chromosome_name,
            'organism': self.organism,
            'coords': list(self.coords),
        }


@dataclass(frozen=True)
class Annotation:
    """A gene feature overlapping a genomic position."""
    chromosome: str
    start: int
    end: int
    gene_id: str
    gene_symbol: str = ""
    feature: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'chromosome': self.chromosome,
            'start': self.start,
            'end': self.end,
            'gene_id': self.gene_id,
            'gene_symbol': self.gene_symbol,
            'feature': self.feature,
        }


@dataclass(frozen=True)
class RawGuideHit:
    """A guide as returned by the guide database (1-based inclusive coordinates)."""
    sequence: str
    start: int
    end: int
    direction: Direction
    specificity: Optional[float] = None
    cutting_efficiency: Optional[float] = None
    off_target_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sequence': self.sequence,
            'start': self.start,
            'end': self.end,
            'direction': self.direction.value,
            'specificity': self.specificity,
            'cutting_efficiency': self.cutting_efficiency,
            'off_target_count': self.off_target_count,
        }


@dataclass(frozen=True)
class AnnotatedGuide(RawGuideHit):
    """A guide with the gene annotations overlapping its cut site."""
    annotations: Tuple[Annotation, ...] = ()

    @classmethod
    def from_hit(cls, hit: RawGuideHit, annotations: List[Annotation]) -> 'AnnotatedGuide':
        return cls(
            sequence=hit.sequence,
            start=hit.start,
            end=hit.end,
            direction=hit.direction,
            specificity=hit.specificity,
            cutting_efficiency=hit.cutting_efficiency,
            off_target_count=hit.off_target_count,
            annotations=tuple(annotations),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d['annotations'] = [a.to_dict() for a in self.annotations]
        return d


@dataclass(frozen=True)
class ScoreBounds:
    """Inclusive [lower, upper] bounds on a guide score."""
    lower: float
    upper: float

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper


@dataclass(frozen=True)
class FailedItem:
    """A sequence-search item that failed upstream parsing; passed through untouched."""
    grna: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'error': {'message': self.message}, 'grna': self.grna}


@dataclass(frozen=True)
class GuideMatch:
    """A catalog guide resolved from an observed sequence."""
    guide: AnnotatedGuide
    genomic_region: GenomicRegion

    def to_dict(self) -> Dict[str, Any]:
        d = self.guide.to_dict()
        d['genomic_region'] = self.genomic_region.to_dict()
        return d


@dataclass(frozen=True)
class MatchFailure:
    """Soft, per-item failure: no catalog guide matched the observed sequence."""
    grna: str
    genomic_region: GenomicRegion
    message: str
    kind: ErrorKind = ErrorKind.GUIDE_NOT_FOUND

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': {'kind': self.kind.value, 'message': self.message},
            'grna': self.grna,
            'genomic_region': self.genomic_region.to_dict(),
        }


MatchOutcome = Union[GuideMatch, MatchFailure, FailedItem]
RegionGuides = Tuple[GenomicRegion, List[AnnotatedGuide]]


@dataclass
class QueryRequest:
    """
    A parsed gRNA query.

    Attributes:
        query_type: Sub-pipeline to run
        organism: Organism key (e.g. "hg38")
        enzyme: Enzyme key (e.g. "cas9")
        genomic_regions: Regions to query; in sequence-search mode may
            also hold FailedItem entries from upstream parsing
        filter_annotated: Keep only guides with at least one annotation
        topn: Keep only the first N guides per region after ranking
        cutting_efficiency_bounds: Optional bounds on cutting efficiency
        specificity_bounds: Optional bounds on specificity
        flanking: Query the flanks of each region instead of the region
        ordering: Ranking key ("specificity", "cutting-efficiency", or
            anything else for off-target count)
        query_text: Free-text query for library design
        options: Extra library-design options
    """
    organism: str
    enzyme: str
    query_type: QueryType = QueryType.STANDARD
    genomic_regions: List[Union[GenomicRegion, FailedItem]] = field(default_factory=list)
    filter_annotated: bool = False
    topn: Optional[int] = None
    cutting_efficiency_bounds: Optional[ScoreBounds] = None
    specificity_bounds: Optional[ScoreBounds] = None
    flanking: Optional[int] = None
    ordering: Optional[str] = None
    query_text: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class QueryResult:
    """The tagged result envelope returned for a successful request."""
    query_type: QueryType
    result: Any

    def to_dict(self) -> Dict[str, Any]:
        if self.query_type == QueryType.STANDARD:
            payload = [
                [region.to_dict(), [g.to_dict() for g in guides]]
                for region, guides in self.result
            ]
        elif self.query_type == QueryType.GRNA:
            payload = [outcome.to_dict() for outcome in self.result]
        else:
            payload = self.result
        return {'query_type': self.query_type.value, 'result': payload}
