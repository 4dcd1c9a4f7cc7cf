"""
Attach gene annotations to guides by their cut site.
"""

import logging
from typing import List

from .models import AnnotatedGuide, Direction, GenomicRegion, RawGuideHit

logger = logging.getLogger(__name__)

CUT_OFFSET = 6  # bp from the guide end (positive) or start (negative) to the cut site


def cut_site(guide: RawGuideHit, cut_offset: int = CUT_OFFSET) -> int:
    """Genomic coordinate at which the nuclease cleaves for this guide."""
    if guide.direction == Direction.POSITIVE:
        return guide.end - cut_offset
    return guide.start + cut_offset


def annotate_grnas(
    gene_annotations,
    guides: List[RawGuideHit],
    region: GenomicRegion,
    cut_offset: int = CUT_OFFSET,
) -> List[AnnotatedGuide]:
    """
    Annotate each guide with the gene features overlapping its cut site.

    The lookup is a zero-width point query keyed by the region's
    chromosome accession. Guides with no overlapping feature get an
    empty annotation list; this step never fails.

    Args:
        gene_annotations: Object with get_annotations(accession, start, end)
        guides: Guides retrieved for the region
        region: Region the guides were retrieved for
        cut_offset: Distance from the guide footprint edge to the cut site

    Returns:
        One AnnotatedGuide per input guide, same order
    """
    accession = region.chromosome
    annotated = []
    for guide in guides:
        pos = cut_site(guide, cut_offset)
        annotations = gene_annotations.get_annotations(accession, pos, pos)
        annotated.append(AnnotatedGuide.from_hit(guide, annotations or []))

    logger.debug(
        f"{region.region_name}: {sum(1 for g in annotated if g.annotations)}/"
        f"{len(annotated)} guides annotated"
    )
    return annotated
