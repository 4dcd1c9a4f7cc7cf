"""
Guide database backed by indexed BAM files.

Each guide is stored as one aligned record: the reference position is the
guide footprint, the reverse flag its strand, and optional tags carry the
scores:

    ds  specificity (float)
    cs  cutting efficiency (float)
    of  off-target array, one entry per off-target site
"""

import logging
from typing import List, Union

import pysam

from ..config import LookupConfig
from ..core.models import Direction, RawGuideHit
from ..errors import ErrorKind, Failure, fail

logger = logging.getLogger(__name__)

SPECIFICITY_TAG = 'ds'
CUTTING_EFFICIENCY_TAG = 'cs'
OFF_TARGETS_TAG = 'of'


def record_to_grna(read: pysam.AlignedSegment, offset: int = 0) -> RawGuideHit:
    """
    Convert a BAM record to a guide with 1-based inclusive coordinates.

    Args:
        read: pysam AlignedSegment for one guide
        offset: Added to both coordinates (corrects 0-indexed databases)
    """
    specificity = read.get_tag(SPECIFICITY_TAG) if read.has_tag(SPECIFICITY_TAG) else None
    cutting_efficiency = read.get_tag(CUTTING_EFFICIENCY_TAG) if read.has_tag(CUTTING_EFFICIENCY_TAG) else None
    off_targets = read.get_tag(OFF_TARGETS_TAG) if read.has_tag(OFF_TARGETS_TAG) else []

    return RawGuideHit(
        sequence=read.query_sequence or "",
        start=read.reference_start + 1 + offset,
        end=read.reference_end + offset,
        direction=Direction.NEGATIVE if read.is_reverse else Direction.POSITIVE,
        specificity=float(specificity) if specificity is not None else None,
        cutting_efficiency=float(cutting_efficiency) if cutting_efficiency is not None else None,
        off_target_count=len(off_targets),
    )


class BamGuideDatabase:
    """
    Read-only guide lookups keyed by organism and enzyme.

    A new file handle is opened per query, so one instance can serve
    concurrent lookups.
    """

    def __init__(self, config: LookupConfig):
        self.config = config

    def query(
        self,
        organism: str,
        enzyme: str,
        chromosome: str,
        start: int,
        end: int,
    ) -> Union[List[RawGuideHit], Failure]:
        """
        Return the guides overlapping chromosome:start-end (1-based inclusive).

        Missing databases, unreadable files and unknown contigs are
        returned as RetrievalError failures.
        """
        if not self.config.has_database(organism, enzyme):
            return fail(
                ErrorKind.RETRIEVAL_ERROR,
                f"No guide database configured for organism '{organism}' and enzyme '{enzyme}'.",
            )

        path = self.config.get_database_path(organism, enzyme)
        offset = self.config.get_database_offset(organism, enzyme)

        # Stored positions are true positions minus offset
        fetch_start = max(0, start - 1 - offset)
        fetch_end = max(fetch_start, end - offset)

        try:
            with pysam.AlignmentFile(str(path), 'rb') as bam:
                grnas = [
                    record_to_grna(read, offset)
                    for read in bam.fetch(chromosome, fetch_start, fetch_end)
                    if not read.is_unmapped
                ]
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Guide database query failed for {chromosome}:{start}-{end} in {path}: {e}")
            return fail(
                ErrorKind.RETRIEVAL_ERROR,
                f"Failed to query {organism}/{enzyme} database at {chromosome}:{start}-{end}: {e}",
            )

        logger.debug(f"{chromosome}:{start}-{end}: {len(grnas)} guides from {path}")
        return grnas
