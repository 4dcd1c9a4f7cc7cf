"""
Core query-processing modules.
"""

from .annotate import (
    CUT_OFFSET,
    annotate_grnas,
    cut_site,
)
from .filtering import (
    filter_results,
    keep_only_top_n,
    rank_guides,
    sort_results,
)
from .matching import (
    find_grna,
    guide_seed,
    match_guides,
)
from .models import (
    AnnotatedGuide,
    Annotation,
    Direction,
    FailedItem,
    GenomicRegion,
    GuideMatch,
    MatchFailure,
    QueryRequest,
    QueryResult,
    QueryType,
    RawGuideHit,
    ScoreBounds,
)
from .regions import (
    MAX_REGION_SIZE,
    convert_regions,
    split_region_flanking,
)
from .retrieval import BatchRetriever

__all__ = [
    # Models
    'Direction',
    'QueryType',
    'GenomicRegion',
    'Annotation',
    'RawGuideHit',
    'AnnotatedGuide',
    'ScoreBounds',
    'FailedItem',
    'GuideMatch',
    'MatchFailure',
    'QueryRequest',
    'QueryResult',
    # Regions
    'MAX_REGION_SIZE',
    'split_region_flanking',
    'convert_regions',
    # Retrieval
    'BatchRetriever',
    # Annotation
    'CUT_OFFSET',
    'cut_site',
    'annotate_grnas',
    # Filtering
    'filter_results',
    'sort_results',
    'keep_only_top_n',
    'rank_guides',
    # Matching
    'guide_seed',
    'find_grna',
    'match_guides',
]
