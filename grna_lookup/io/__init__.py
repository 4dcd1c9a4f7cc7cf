"""
I/O modules: guide database, annotations, requests and result output.
"""

from .annotations import (
    AnnotationRegistry,
    GeneAnnotations,
)
from .guide_db import BamGuideDatabase
from .output import (
    result_to_dict,
    results_to_dataframe,
    write_results_json,
    write_results_tsv,
)
from .request import (
    load_request,
    parse_request,
)

__all__ = [
    'BamGuideDatabase',
    'GeneAnnotations',
    'AnnotationRegistry',
    'parse_request',
    'load_request',
    'result_to_dict',
    'results_to_dataframe',
    'write_results_tsv',
    'write_results_json',
]
