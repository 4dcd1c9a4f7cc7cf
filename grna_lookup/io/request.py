"""
Build QueryRequest objects from plain mappings (JSON/YAML request files
or CLI options).

Regions are given either as strings

    chr1:100-200
    BRCA1=chr17:43,044,295-43,125,483

or as mappings with ``chromosome``, ``start``, ``end`` and optionally
``name`` and ``chromosome_name``. In sequence-search mode each item names
its observed sequence (``sequence`` key, or the name part of a string).
"""

import json
import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from ..core.models import FailedItem, GenomicRegion, QueryRequest, QueryType, ScoreBounds
from ..errors import ErrorKind, Failure, fail, is_failure
from ..utils.sequence import is_dna_sequence

logger = logging.getLogger(__name__)

REGION_PATTERN = re.compile(
    r'^(?:(?P<name>[^=]+)=)?(?P<chrom>[^:\s]+):(?P<start>[\d,]+)-(?P<end>[\d,]+)$'
)


class RequestParseError(ValueError):
    """Raised internally for a malformed request field."""
    pass


def _to_int(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise RequestParseError(f"{what} must be an integer, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise RequestParseError(f"{what} must be an integer, got {value!r}")
    if isinstance(value, str):
        value = value.replace(',', '').strip()
    try:
        return int(value)
    except (TypeError, ValueError):
        raise RequestParseError(f"{what} must be an integer, got {value!r}")


def parse_region(item: Union[str, Mapping[str, Any]]) -> GenomicRegion:
    """
    Parse one region item.

    Raises:
        RequestParseError: If the item is malformed or start > end
    """
    if isinstance(item, str):
        m = REGION_PATTERN.match(item.strip())
        if not m:
            raise RequestParseError(f"Invalid region '{item}', expected chr:start-end")
        chrom = m.group('chrom')
        start = _to_int(m.group('start'), 'start')
        end = _to_int(m.group('end'), 'end')
        name = m.group('name') or f"{chrom}:{start}-{end}"
        chrom_name = chrom
    elif isinstance(item, Mapping):
        try:
            chrom = str(item['chromosome'])
            start = _to_int(item['start'], 'start')
            end = _to_int(item['end'], 'end')
        except KeyError as e:
            raise RequestParseError(f"Region is missing field {e}")
        name = str(item.get('sequence') or item.get('name') or f"{chrom}:{start}-{end}")
        chrom_name = str(item.get('chromosome_name', chrom))
    else:
        raise RequestParseError(f"Invalid region {item!r}")

    if start > end:
        raise RequestParseError(f"Region '{name}' has start {start} greater than end {end}")

    return GenomicRegion(region_name=name, chromosome_name=chrom_name, coords=(chrom, start, end))


def parse_grna_item(item: Union[str, Mapping[str, Any]]) -> Union[GenomicRegion, FailedItem]:
    """Parse a sequence-search item; malformed items become FailedItem."""
    if isinstance(item, Mapping):
        label = str(item.get('sequence') or item.get('name') or dict(item))
    else:
        label = str(item).split('=', 1)[0]

    try:
        region = parse_region(item)
    except RequestParseError as e:
        return FailedItem(grna=label, message=str(e))

    if not is_dna_sequence(region.region_name):
        return FailedItem(grna=label, message=f"'{region.region_name}' is not a DNA sequence")

    # catalog guides are stored uppercase
    return replace(region, region_name=region.region_name.upper())


def _parse_bounds(value: Any, what: str) -> Optional[ScoreBounds]:
    if value is None:
        return None
    try:
        lower = float(value['lower'])
        upper = float(value['upper'])
    except (KeyError, TypeError, ValueError):
        raise RequestParseError(f"{what} must have numeric 'lower' and 'upper'")
    if lower > upper:
        raise RequestParseError(f"{what}: lower {lower} greater than upper {upper}")
    return ScoreBounds(lower=lower, upper=upper)


def _optional_bool(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise RequestParseError(f"{key} must be true or false, got {value!r}")
    return value


def _optional_non_negative(data: Mapping[str, Any], key: str) -> Optional[int]:
    if data.get(key) is None:
        return None
    value = _to_int(data[key], key)
    if value < 0:
        raise RequestParseError(f"{key} must be non-negative, got {value}")
    return value


def _parse(data: Mapping[str, Any]) -> QueryRequest:
    raw_type = data.get('query_type') or QueryType.STANDARD.value
    try:
        query_type = QueryType(raw_type)
    except ValueError:
        raise RequestParseError(f"Unknown query type '{raw_type}'")

    organism = data.get('organism')
    if not organism:
        raise RequestParseError("Request must specify an organism")

    enzyme = data.get('enzyme')
    if not enzyme and query_type != QueryType.LIBRARY:
        raise RequestParseError("Request must specify an enzyme")

    items = data.get('regions') or data.get('genomic_regions') or []
    if isinstance(items, (str, Mapping)):
        items = [items]

    regions: List[Union[GenomicRegion, FailedItem]] = []
    if query_type == QueryType.GRNA:
        regions = [parse_grna_item(item) for item in items]
    elif query_type == QueryType.STANDARD:
        regions = [parse_region(item) for item in items]

    if query_type != QueryType.LIBRARY and not regions:
        raise RequestParseError("Request must specify at least one region")

    if query_type == QueryType.LIBRARY and not data.get('query_text'):
        raise RequestParseError("Library requests must specify query_text")

    return QueryRequest(
        query_type=query_type,
        organism=str(organism),
        enzyme=str(enzyme or ""),
        genomic_regions=regions,
        filter_annotated=_optional_bool(data, 'filter_annotated'),
        topn=_optional_non_negative(data, 'topn'),
        cutting_efficiency_bounds=_parse_bounds(data.get('cutting_efficiency_bounds'), 'cutting_efficiency_bounds'),
        specificity_bounds=_parse_bounds(data.get('specificity_bounds'), 'specificity_bounds'),
        flanking=_optional_non_negative(data, 'flanking'),
        ordering=data.get('ordering'),
        query_text=data.get('query_text'),
        options=dict(data.get('options') or {}),
    )


def parse_request(data: Mapping[str, Any]) -> Union[QueryRequest, Failure]:
    """
    Build a QueryRequest from a mapping.

    Returns:
        The request, or a ParseError Failure describing the first problem
    """
    if not isinstance(data, Mapping):
        return fail(ErrorKind.PARSE_ERROR, "Request must be a mapping")
    try:
        return _parse(data)
    except RequestParseError as e:
        logger.info(f"Rejected request: {e}")
        return fail(ErrorKind.PARSE_ERROR, str(e))


def load_request(path: Path) -> Union[QueryRequest, Failure]:
    """Load and parse a request from a JSON or YAML file."""
    path = Path(path)
    try:
        with open(path) as f:
            if path.suffix == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        return fail(ErrorKind.PARSE_ERROR, f"Could not read request {path}: {e}")

    request = parse_request(data)
    if is_failure(request):
        logger.debug(f"{path}: {request.message}")
    return request
