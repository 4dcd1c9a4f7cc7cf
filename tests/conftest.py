"""Shared fixtures: in-memory stand-ins for the guide database and annotations."""

import pytest

from grna_lookup.core.models import Annotation, Direction, RawGuideHit
from grna_lookup.errors import ErrorKind, fail


def make_hit(sequence="ACGTACGTACGTACGTACGTNGG", start=100, end=122,
             direction=Direction.POSITIVE, specificity=None,
             cutting_efficiency=None, off_target_count=0):
    return RawGuideHit(
        sequence=sequence,
        start=start,
        end=end,
        direction=direction,
        specificity=specificity,
        cutting_efficiency=cutting_efficiency,
        off_target_count=off_target_count,
    )


class FakeGuideDB:
    """Guide database answering from a dict keyed by (chromosome, start, end)."""

    def __init__(self, responses=None, failing=None):
        self.responses = responses or {}
        self.failing = set(failing or [])
        self.calls = []

    def query(self, organism, enzyme, chromosome, start, end):
        self.calls.append((organism, enzyme, chromosome, start, end))
        key = (chromosome, start, end)
        if key in self.failing:
            return fail(ErrorKind.RETRIEVAL_ERROR, f"cannot read {chromosome}:{start}-{end}")
        return list(self.responses.get(key, []))


class FakeAnnotations:
    """Annotation source with a fixed set of annotated positions per accession."""

    def __init__(self, features=None):
        self.features = features or []
        self.calls = []

    def get_annotations(self, accession, start, end):
        self.calls.append((accession, start, end))
        return [
            a for a in self.features
            if a.chromosome == accession and a.start <= end and a.end >= start
        ]


class FakeLibraryDesigner:
    def __init__(self, result=None, error=None):
        self.result = result if result is not None else {'guides': []}
        self.error = error
        self.calls = []

    def design_library(self, pool, query_text, organism, options):
        self.calls.append((pool, query_text, organism, options))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def hit():
    """Factory for RawGuideHit objects."""
    return make_hit


@pytest.fixture
def exon():
    return Annotation(chromosome="chr1", start=1000, end=1100,
                      gene_id="ENSG0001", gene_symbol="GENE1", feature="exon")
