"""
Filtering, ranking and truncation of per-region guide lists.

Stages always compose in the same order: positional filter, score
filters, annotation filter, sort, truncate.
"""

from typing import Callable, List, Optional

from .models import AnnotatedGuide, GenomicRegion, ScoreBounds

ORDER_BY_SPECIFICITY = "specificity"
ORDER_BY_CUTTING_EFFICIENCY = "cutting-efficiency"
ORDER_BY_OFF_TARGETS = "num-off-targets"


def _within(attr: str, bounds: ScoreBounds) -> Callable[[AnnotatedGuide], bool]:
    """Predicate keeping guides whose score is in bounds; a missing score passes."""
    def keep(guide: AnnotatedGuide) -> bool:
        value = getattr(guide, attr)
        if value is None:
            return True
        return bounds.contains(value)
    return keep


def filter_results(
    guides: List[AnnotatedGuide],
    region: GenomicRegion,
    cutting_efficiency_bounds: Optional[ScoreBounds] = None,
    specificity_bounds: Optional[ScoreBounds] = None,
    filter_annotated: bool = False,
) -> List[AnnotatedGuide]:
    """
    Filter guides retrieved for a region.

    Guides are kept only when fully contained in the region, when each
    present score bound admits them, and, if filter_annotated is set,
    when they carry at least one annotation.
    """
    kept = [g for g in guides if region.start <= g.start and region.end >= g.end]

    if cutting_efficiency_bounds is not None:
        kept = list(filter(_within('cutting_efficiency', cutting_efficiency_bounds), kept))
    if specificity_bounds is not None:
        kept = list(filter(_within('specificity', specificity_bounds), kept))
    if filter_annotated:
        kept = [g for g in kept if g.annotations]

    return kept


def sort_results(ordering: Optional[str], guides: List[AnnotatedGuide]) -> List[AnnotatedGuide]:
    """
    Stable ascending sort by the requested ordering key.

    "specificity" and "cutting-efficiency" sort by that score, with
    unscored guides after scored ones; any other value sorts by
    off-target count.
    """
    if ordering == ORDER_BY_SPECIFICITY:
        attr = 'specificity'
    elif ordering == ORDER_BY_CUTTING_EFFICIENCY:
        attr = 'cutting_efficiency'
    else:
        return sorted(guides, key=lambda g: g.off_target_count)

    def score_key(guide):
        value = getattr(guide, attr)
        return (value is None, value if value is not None else 0.0)

    return sorted(guides, key=score_key)


def keep_only_top_n(topn: Optional[int], guides: List[AnnotatedGuide]) -> List[AnnotatedGuide]:
    """Return the first topn guides, or all of them if topn is None."""
    if topn is None:
        return list(guides)
    return list(guides[:topn])


def rank_guides(
    guides: List[AnnotatedGuide],
    region: GenomicRegion,
    ordering: Optional[str] = None,
    topn: Optional[int] = None,
    cutting_efficiency_bounds: Optional[ScoreBounds] = None,
    specificity_bounds: Optional[ScoreBounds] = None,
    filter_annotated: bool = False,
) -> List[AnnotatedGuide]:
    """Filter, sort and truncate the guides of one region."""
    kept = filter_results(
        guides,
        region,
        cutting_efficiency_bounds=cutting_efficiency_bounds,
        specificity_bounds=specificity_bounds,
        filter_annotated=filter_annotated,
    )
    return keep_only_top_n(topn, sort_results(ordering, kept))
