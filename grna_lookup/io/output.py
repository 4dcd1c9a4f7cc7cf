"""
Output generation for query results.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Union
import logging

import pandas as pd

from ..core.models import FailedItem, GuideMatch, MatchFailure, QueryResult, QueryType
from ..errors import Failure

logger = logging.getLogger(__name__)

GUIDE_COLUMNS = [
    'region_name', 'chromosome_name', 'chromosome', 'region_start', 'region_end',
    'rank', 'sequence', 'start', 'end', 'direction',
    'specificity', 'cutting_efficiency', 'off_target_count', 'annotations',
]

GRNA_COLUMNS = [
    'grna', 'chromosome', 'sequence', 'start', 'end', 'direction',
    'specificity', 'cutting_efficiency', 'off_target_count', 'annotations', 'error',
]


def result_to_dict(outcome: Union[QueryResult, Failure]) -> Dict[str, Any]:
    """JSON-ready form of a result or failure."""
    return outcome.to_dict()


def _format_annotations(annotations) -> str:
    return ';'.join(
        f"{a.gene_symbol or a.gene_id}:{a.feature}" if a.feature else (a.gene_symbol or a.gene_id)
        for a in annotations
    )


def _guide_columns(guide) -> Dict[str, Any]:
    return {
        'sequence': guide.sequence,
        'start': guide.start,
        'end': guide.end,
        'direction': guide.direction.value,
        'specificity': guide.specificity,
        'cutting_efficiency': guide.cutting_efficiency,
        'off_target_count': guide.off_target_count,
        'annotations': _format_annotations(guide.annotations),
    }


def results_to_dataframe(result: QueryResult) -> pd.DataFrame:
    """
    Flatten a result into one row per guide (standard) or per sequence (grna).

    Regions with no surviving guides contribute no rows.
    """
    rows: List[Dict[str, Any]] = []

    if result.query_type == QueryType.STANDARD:
        for region, guides in result.result:
            for rank, guide in enumerate(guides, start=1):
                row = {
                    'region_name': region.region_name,
                    'chromosome_name': region.chromosome_name,
                    'chromosome': region.chromosome,
                    'region_start': region.start,
                    'region_end': region.end,
                    'rank': rank,
                }
                row.update(_guide_columns(guide))
                rows.append(row)
        return pd.DataFrame(rows, columns=GUIDE_COLUMNS)

    if result.query_type == QueryType.GRNA:
        for outcome in result.result:
            if isinstance(outcome, GuideMatch):
                row = {'grna': outcome.genomic_region.region_name,
                       'chromosome': outcome.genomic_region.chromosome}
                row.update(_guide_columns(outcome.guide))
            elif isinstance(outcome, MatchFailure):
                row = {'grna': outcome.grna,
                       'chromosome': outcome.genomic_region.chromosome,
                       'error': outcome.message}
            elif isinstance(outcome, FailedItem):
                row = {'grna': outcome.grna, 'error': outcome.message}
            else:
                raise TypeError(f"Unexpected sequence-search outcome: {outcome!r}")
            rows.append(row)
        return pd.DataFrame(rows, columns=GRNA_COLUMNS)

    payload = result.result
    if isinstance(payload, list):
        return pd.DataFrame(payload)
    return pd.DataFrame([payload])


def write_results_tsv(result: QueryResult, output_path: Path):
    """Write a flattened result table."""
    df = results_to_dataframe(result)
    df.to_csv(output_path, sep='\t', index=False)
    logger.info(f"Wrote {len(df)} rows to {output_path}")


def write_results_json(outcome: Union[QueryResult, Failure], output_path: Path):
    """Write the result envelope (or failure) as JSON."""
    with open(output_path, 'w') as f:
        json.dump(result_to_dict(outcome), f, indent=2)
    logger.info(f"Wrote result to {output_path}")
