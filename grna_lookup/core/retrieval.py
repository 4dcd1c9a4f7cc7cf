"""
Batched guide retrieval with fail-fast aggregation.

Each region is looked up independently (optionally in parallel); the
batch succeeds only if every lookup succeeds. On failure the first
failing region in request order decides the reported error, whatever
order the lookups completed in.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Union

from ..errors import ErrorKind, Failure, fail, is_failure
from .models import GenomicRegion, RawGuideHit

logger = logging.getLogger(__name__)


class BatchRetriever:
    """
    Map regions to guide-database lookups.

    Args:
        guide_db: Object with query(organism, enzyme, chromosome, start, end)
            returning a list of RawGuideHit or a Failure
        threads: Maximum concurrent lookups (1 runs them sequentially)
    """

    def __init__(self, guide_db, threads: int = 1):
        self.guide_db = guide_db
        self.threads = max(1, threads)

    def _lookup(self, organism: str, enzyme: str, region: GenomicRegion) -> Union[List[RawGuideHit], Failure]:
        chrom, start, end = region.coords
        try:
            return self.guide_db.query(organism, enzyme, chrom, start, end)
        except Exception as e:
            logger.error(f"Lookup failed for {region.region_name} ({chrom}:{start}-{end}): {e}")
            return fail(ErrorKind.RETRIEVAL_ERROR, f"Lookup failed for {region.region_name}: {e}")

    def retrieve(
        self,
        regions: List[GenomicRegion],
        organism: str,
        enzyme: str,
    ) -> Union[List[List[RawGuideHit]], Failure]:
        """
        Look up guides for every region.

        Returns:
            Lists of guides index-aligned with regions, or the Failure of
            the first failing region
        """
        if self.threads == 1 or len(regions) < 2:
            results = [self._lookup(organism, enzyme, r) for r in regions]
        else:
            results = [None] * len(regions)
            with ThreadPoolExecutor(max_workers=min(self.threads, len(regions))) as executor:
                future_to_idx = {
                    executor.submit(self._lookup, organism, enzyme, region): idx
                    for idx, region in enumerate(regions)
                }
                for future in as_completed(future_to_idx):
                    results[future_to_idx[future]] = future.result()

        for region, result in zip(regions, results):
            if is_failure(result):
                logger.warning(f"Retrieval aborted at region {region.region_name}: {result.message}")
                return result

        logger.debug(f"Retrieved {sum(len(r) for r in results)} guides across {len(regions)} regions")
        return results
