"""
grna-lookup - guide RNA retrieval, annotation and ranking over
precomputed per-organism guide databases.
"""

__version__ = "0.1.0"

from .config import LookupConfig
from .core.models import (
    AnnotatedGuide,
    GenomicRegion,
    QueryRequest,
    QueryResult,
    QueryType,
    RawGuideHit,
)
from .errors import ErrorKind, Failure
from .pipeline import QueryProcessor

__all__ = [
    "LookupConfig",
    "QueryProcessor",
    "QueryRequest",
    "QueryResult",
    "QueryType",
    "GenomicRegion",
    "RawGuideHit",
    "AnnotatedGuide",
    "ErrorKind",
    "Failure",
    "__version__",
]
