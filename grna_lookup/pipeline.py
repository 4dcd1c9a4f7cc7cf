"""
Query dispatch: route a parsed request to the standard, sequence-search
or library-design sub-pipeline and wrap the outcome in a QueryResult.

Each handler runs its required steps in order and returns the first
Failure it meets; per-item guide-matching misses are embedded in the
result instead.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .config import LookupConfig
from .core.annotate import CUT_OFFSET, annotate_grnas
from .core.filtering import ORDER_BY_OFF_TARGETS, rank_guides
from .core.matching import guide_not_found, match_guides
from .core.models import FailedItem, GuideMatch, QueryRequest, QueryResult, QueryType
from .core.regions import MAX_REGION_SIZE, convert_regions
from .core.retrieval import BatchRetriever
from .errors import ErrorKind, Failure, fail, is_failure
from .io.annotations import AnnotationRegistry
from .io.guide_db import BamGuideDatabase
from .io.request import parse_request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryContext:
    """
    Collaborators shared, read-only, by every request.

    Attributes:
        retriever: Batch retrieval executor over the guide database
        annotations: Per-organism annotation sources
        library_designer: Object with design_library(pool, query_text,
            organism, options); library requests fail without one
        db_pool: Connection pool handed to the library designer
        max_region_size: Summed region span limit (bp)
        cut_offset: Cut-site offset used for annotation (bp)
    """
    retriever: BatchRetriever
    annotations: AnnotationRegistry
    library_designer: Any = None
    db_pool: Any = None
    max_region_size: int = MAX_REGION_SIZE
    cut_offset: int = CUT_OFFSET


def process_standard(ctx: QueryContext, request: QueryRequest) -> Union[QueryResult, Failure]:
    """Normalize, retrieve, annotate and rank guides for each region."""
    converted = convert_regions(
        request.genomic_regions, request.organism, request.flanking, ctx.max_region_size
    )
    if is_failure(converted):
        return converted

    vec_of_grnas = ctx.retriever.retrieve(converted, request.organism, request.enzyme)
    if is_failure(vec_of_grnas):
        return vec_of_grnas

    stats = {
        'num_genomic_regions': len(converted),
        'query_type': 'standard',
        'organism': request.organism,
        'enzyme': request.enzyme,
    }
    logger.info(f"statistics: {stats}")

    gene_annotations = ctx.annotations.for_organism(request.organism)
    ordering = request.ordering or ORDER_BY_OFF_TARGETS
    result = []
    for region, grnas in zip(converted, vec_of_grnas):
        annotated = annotate_grnas(gene_annotations, grnas, region, ctx.cut_offset)
        ranked = rank_guides(
            annotated,
            region,
            ordering=ordering,
            topn=request.topn,
            cutting_efficiency_bounds=request.cutting_efficiency_bounds,
            specificity_bounds=request.specificity_bounds,
            filter_annotated=request.filter_annotated,
        )
        result.append((region, ranked))

    return QueryResult(query_type=QueryType.STANDARD, result=result)


def process_grna(ctx: QueryContext, request: QueryRequest) -> Union[QueryResult, Failure]:
    """Resolve observed sequences to catalog guides; upstream failures pass through."""
    bad = [r for r in request.genomic_regions if isinstance(r, FailedItem)]
    good = [r for r in request.genomic_regions if not isinstance(r, FailedItem)]

    converted = convert_regions(good, request.organism, None, ctx.max_region_size)
    if is_failure(converted):
        return converted

    vec_of_grnas = ctx.retriever.retrieve(converted, request.organism, request.enzyme)
    if is_failure(vec_of_grnas):
        return vec_of_grnas

    stats = {
        'num_successful_sequences': len(good),
        'num_unsuccessful_sequences': len(bad),
        'query_type': 'sequence-search',
        'organism': request.organism,
        'enzyme': request.enzyme,
    }
    logger.info(f"statistics: {stats}")

    gene_annotations = ctx.annotations.for_organism(request.organism)
    outcomes = []
    for region, guide in zip(converted, match_guides(converted, vec_of_grnas)):
        if guide is None:
            outcomes.append(guide_not_found(region))
        else:
            annotated = annotate_grnas(gene_annotations, [guide], region, ctx.cut_offset)[0]
            outcomes.append(GuideMatch(guide=annotated, genomic_region=region))

    return QueryResult(query_type=QueryType.GRNA, result=outcomes + bad)


def process_library(ctx: QueryContext, request: QueryRequest) -> Union[QueryResult, Failure]:
    """Delegate to the library-design collaborator."""
    if ctx.library_designer is None:
        return fail(ErrorKind.LIBRARY_DESIGN_ERROR, "Library design is not available.")

    try:
        result = ctx.library_designer.design_library(
            ctx.db_pool, request.query_text, request.organism, request.options
        )
    except Exception as e:
        logger.error(f"Library design failed for {request.organism}: {e}")
        return fail(ErrorKind.LIBRARY_DESIGN_ERROR, f"Library design failed: {e}")

    if is_failure(result):
        return result
    return QueryResult(query_type=QueryType.LIBRARY, result=result)


HANDLERS: Dict[QueryType, Callable[[QueryContext, QueryRequest], Union[QueryResult, Failure]]] = {
    QueryType.STANDARD: process_standard,
    QueryType.GRNA: process_grna,
    QueryType.LIBRARY: process_library,
}


def process_query(ctx: QueryContext, request: QueryRequest) -> Union[QueryResult, Failure]:
    """Run the sub-pipeline for the request's query type."""
    return HANDLERS[request.query_type](ctx, request)


class QueryProcessor:
    """
    Entry point tying configuration, collaborators and dispatch together.

    Args:
        config: Lookup configuration
        guide_db: Guide database; a BAM-backed one is built from config if None
        annotations: Annotation registry; loaded from config if None
        library_designer: Optional library-design collaborator
        db_pool: Optional pool passed to the library designer
    """

    def __init__(
        self,
        config: LookupConfig,
        guide_db=None,
        annotations: Optional[AnnotationRegistry] = None,
        library_designer=None,
        db_pool=None,
    ):
        self.config = config
        if guide_db is None:
            guide_db = BamGuideDatabase(config)
        if annotations is None:
            annotations = AnnotationRegistry.from_paths(config.annotation_paths)

        self.context = QueryContext(
            retriever=BatchRetriever(guide_db, threads=config.threads),
            annotations=annotations,
            library_designer=library_designer,
            db_pool=db_pool,
            max_region_size=config.max_region_size,
            cut_offset=config.cut_offset,
        )

    def process(self, request: Union[QueryRequest, Mapping[str, Any]]) -> Union[QueryResult, Failure]:
        """
        Process a request.

        Accepts a parsed QueryRequest or a raw mapping, which is parsed
        first.
        """
        if not isinstance(request, QueryRequest):
            request = parse_request(request)
            if is_failure(request):
                return request

        outcome = process_query(self.context, request)
        if is_failure(outcome):
            logger.warning(f"{request.query_type.value} query failed: {outcome}")
        return outcome
