"""
Error values for gRNA query processing.

Request-time errors are carried as plain data rather than raised, so that
batch aggregation can inspect them without interrupting iteration. A step
either returns its value or a ``Failure``; callers check with
``is_failure`` and return early.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class ErrorKind(Enum):
    """Kinds of request-time failure."""
    PARSE_ERROR = "ParseError"
    REGION_SIZE_EXCEEDED = "RegionSizeExceeded"
    RETRIEVAL_ERROR = "RetrievalError"
    LIBRARY_DESIGN_ERROR = "LibraryDesignError"
    GUIDE_NOT_FOUND = "GuideNotFound"


@dataclass(frozen=True)
class Failure:
    """A failed step: what kind of failure and a human-readable message."""
    kind: ErrorKind
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'error': {'kind': self.kind.value, 'message': self.message}}

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


def fail(kind: ErrorKind, message: str) -> Failure:
    """Build a Failure value."""
    return Failure(kind=kind, message=message)


def is_failure(value: Any) -> bool:
    """True if a step result is a Failure."""
    return isinstance(value, Failure)


class ConfigError(ValueError):
    """Raised when a configuration file is missing or malformed."""
    pass
