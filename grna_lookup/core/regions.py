"""
Region normalization: flanking expansion, organism tagging and the
total-size guard that bounds work per request.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Tuple, Union

from ..errors import ErrorKind, Failure, fail
from .models import GenomicRegion

logger = logging.getLogger(__name__)

MAX_REGION_SIZE = 10_000_000  # bp, summed over all regions of a request


def split_region_flanking(region: GenomicRegion, flanking: int) -> Tuple[GenomicRegion, GenomicRegion]:
    """
    Replace a region by the two spans flanking it.

    The left flank covers [start - (flanking - 1), start] and the right
    flank [end, end + (flanking - 1)], so each is flanking - 1 bp long
    and shares its inner endpoint with the original region.

    Examples:
        chr1:100-200 with flanking=10 -> chr1:91-100, chr1:200-209
    """
    chrom, start, end = region.coords
    left = replace(
        region,
        region_name=f"{region.region_name}:left-flank",
        coords=(chrom, start - (flanking - 1), start),
    )
    right = replace(
        region,
        region_name=f"{region.region_name}:right-flank",
        coords=(chrom, end, end + (flanking - 1)),
    )
    return left, right


def total_region_size(regions: List[GenomicRegion]) -> int:
    """Sum of (end - start) over all regions."""
    return sum(r.length for r in regions)


def convert_regions(
    regions: List[GenomicRegion],
    organism: str,
    flanking: Optional[int] = None,
    max_size: int = MAX_REGION_SIZE,
) -> Union[List[GenomicRegion], Failure]:
    """
    Normalize requested regions into organism-tagged query regions.

    Args:
        regions: Regions in request order
        organism: Organism tag applied to every output region
        flanking: If set and > 0, each region is replaced by its left and
            right flanks
        max_size: Largest allowed summed span, checked after expansion

    Returns:
        Regions in input order, or a RegionSizeExceeded Failure
    """
    if flanking and flanking > 0:
        expanded = []
        for region in regions:
            expanded.extend(split_region_flanking(region, flanking))
        regions = expanded

    converted = [r.with_organism(organism) for r in regions]

    size = total_region_size(converted)
    if size > max_size:
        logger.warning(f"Rejected {len(converted)} regions totalling {size} bp (limit {max_size})")
        return fail(
            ErrorKind.REGION_SIZE_EXCEEDED,
            f"Parsed genomic regions length exceeds {max_size:,} bp, the maximum allowed.",
        )

    logger.debug(f"Normalized {len(converted)} regions ({size} bp) for {organism}")
    return converted
