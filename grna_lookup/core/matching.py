"""
Resolve an observed guide sequence to the catalog guide it denotes.

Candidates are the guides retrieved around the sequence's genomic
location. Each candidate is reduced to a strand-normalized 20 bp seed
and compared position by position with the query and with the query's
reverse complement; the first candidate matching on all 20 positions
wins.
"""

import logging
from typing import List, Optional, Sequence

from ..errors import ErrorKind
from ..utils.sequence import count_matches, revcom
from .models import Direction, GenomicRegion, MatchFailure, RawGuideHit

logger = logging.getLogger(__name__)

SEED_LENGTH = 20
MIN_MATCHING_POSITIONS = 20

GUIDE_NOT_FOUND_MESSAGE = (
    "Guide not found in the guide database. This is because it has "
    "multiple off-targets at distance 1."
)


def guide_seed(guide: RawGuideHit, length: int = SEED_LENGTH) -> str:
    """First `length` bases of the guide read 5'->3' on its own strand."""
    if guide.direction == Direction.POSITIVE:
        return guide.sequence[:length]
    return revcom(guide.sequence)[:length]


def is_match(query: str, guide: RawGuideHit, threshold: int = MIN_MATCHING_POSITIONS) -> bool:
    """True if the guide's seed matches the query on either strand."""
    seed = guide_seed(guide)
    return (count_matches(query, seed) >= threshold
            or count_matches(revcom(query), seed) >= threshold)


def find_grna(query: str, candidates: Sequence[RawGuideHit]) -> Optional[RawGuideHit]:
    """Return the first candidate matching the query sequence, or None."""
    for guide in candidates:
        if is_match(query, guide):
            return guide
    return None


def guide_not_found(region: GenomicRegion) -> MatchFailure:
    """Soft failure recorded for a sequence with no matching catalog guide."""
    return MatchFailure(
        grna=region.region_name,
        genomic_region=region,
        message=GUIDE_NOT_FOUND_MESSAGE,
        kind=ErrorKind.GUIDE_NOT_FOUND,
    )


def match_guides(
    regions: List[GenomicRegion],
    vec_of_grnas: List[List[RawGuideHit]],
) -> List[Optional[RawGuideHit]]:
    """
    Match each region's sequence against the guides retrieved for it.

    The region name carries the observed sequence. Returns, per region,
    the matched guide or None.
    """
    matched = [find_grna(region.region_name, grnas) for region, grnas in zip(regions, vec_of_grnas)]
    misses = sum(1 for m in matched if m is None)
    if misses:
        logger.info(f"{misses}/{len(regions)} sequences had no matching guide")
    return matched
