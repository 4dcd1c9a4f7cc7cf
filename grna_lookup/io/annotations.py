"""
Gene annotation lookup from tabular annotation files.

Annotation tables are TSV files with the columns

    chromosome  start  end  gene_id  gene_symbol  feature

using 1-based inclusive coordinates, keyed by chromosome accession.
"""

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import numpy as np
import pandas as pd

from ..core.models import Annotation

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ('chromosome', 'start', 'end', 'gene_id')
OPTIONAL_COLUMNS = ('gene_symbol', 'feature')


class GeneAnnotations:
    """
    In-memory overlap index over gene annotations.

    Features are grouped by chromosome, each group sorted by start, so a
    query only scans features starting at or before the query end.
    """

    def __init__(self, df: pd.DataFrame):
        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Annotation table missing columns: {', '.join(missing)}")

        df = df.copy()
        for col in OPTIONAL_COLUMNS:
            if col not in df.columns:
                df[col] = ""
            df[col] = df[col].fillna("").astype(str)
        df['chromosome'] = df['chromosome'].astype(str)
        df['gene_id'] = df['gene_id'].astype(str)

        self._by_chrom: Dict[str, pd.DataFrame] = {}
        self._starts: Dict[str, np.ndarray] = {}
        self._ends: Dict[str, np.ndarray] = {}
        for chrom, group in df.groupby('chromosome', sort=False):
            group = group.sort_values('start', kind='stable').reset_index(drop=True)
            self._by_chrom[chrom] = group
            self._starts[chrom] = group['start'].to_numpy(dtype=np.int64)
            self._ends[chrom] = group['end'].to_numpy(dtype=np.int64)

        logger.info(f"Loaded {len(df)} annotations on {len(self._by_chrom)} chromosomes")

    @classmethod
    def from_tsv(cls, path: Path) -> 'GeneAnnotations':
        """Load annotations from a TSV file."""
        df = pd.read_csv(path, sep='\t')
        return cls(df)

    @property
    def chromosomes(self) -> List[str]:
        return list(self._by_chrom)

    def get_annotations(self, accession: str, start: int, end: int) -> List[Annotation]:
        """
        Return features overlapping [start, end] (inclusive) on a chromosome.

        Unknown chromosomes and empty overlaps give an empty list.
        """
        group = self._by_chrom.get(accession)
        if group is None:
            return []

        starts = self._starts[accession]
        ends = self._ends[accession]
        upto = int(np.searchsorted(starts, end, side='right'))
        hits = np.flatnonzero(ends[:upto] >= start)

        return [
            Annotation(
                chromosome=accession,
                start=int(row.start),
                end=int(row.end),
                gene_id=row.gene_id,
                gene_symbol=row.gene_symbol,
                feature=row.feature,
            )
            for row in group.iloc[hits].itertuples(index=False)
        ]


class EmptyAnnotations:
    """Annotation source for organisms without an annotation table."""

    def get_annotations(self, accession: str, start: int, end: int) -> List[Annotation]:
        return []


class AnnotationRegistry:
    """
    Per-organism annotation sources.

    Built once at startup and read-only afterwards.

    Args:
        sources: Organism -> object with get_annotations(accession, start, end)
    """

    def __init__(self, sources: Mapping[str, object]):
        self._sources = dict(sources)

    @classmethod
    def from_paths(cls, annotation_paths: Mapping[str, str]) -> 'AnnotationRegistry':
        """Load every configured annotation table."""
        return cls({
            organism: GeneAnnotations.from_tsv(Path(path))
            for organism, path in annotation_paths.items()
        })

    @property
    def organisms(self) -> List[str]:
        return sorted(self._sources)

    def for_organism(self, organism: str):
        """Annotation source for an organism (empty if none is configured)."""
        source: Optional[object] = self._sources.get(organism)
        if source is None:
            logger.warning(f"No annotations configured for {organism}; guides will be unannotated")
            return EmptyAnnotations()
        return source
