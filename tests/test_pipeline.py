"""Tests for query dispatch and the end-to-end sub-pipelines."""

import pytest
from conftest import FakeAnnotations, FakeGuideDB, FakeLibraryDesigner
from grna_lookup.config import LookupConfig
from grna_lookup.core.models import (
    Annotation,
    Direction,
    FailedItem,
    GenomicRegion,
    GuideMatch,
    MatchFailure,
    QueryRequest,
    QueryType,
    ScoreBounds,
)
from grna_lookup.errors import ErrorKind, fail, is_failure
from grna_lookup.io.annotations import AnnotationRegistry
from grna_lookup.pipeline import HANDLERS, QueryProcessor
from grna_lookup.utils.sequence import reverse_complement

GUIDE = "GCTGAAGCACTGCACGCCGT"


def region(name, start, end, chrom="chr1"):
    return GenomicRegion(region_name=name, chromosome_name=chrom, coords=(chrom, start, end))


def processor(db, features=(), designer=None, **config):
    registry = AnnotationRegistry({'hg38': FakeAnnotations(list(features))})
    return QueryProcessor(
        LookupConfig(threads=config.pop('threads', 1), **config),
        guide_db=db,
        annotations=registry,
        library_designer=designer,
        db_pool='pool',
    )


class TestHandlerTable:
    """Every query type has a handler."""

    def test_all_query_types_handled(self):
        assert set(HANDLERS) == set(QueryType)


class TestStandardQuery:
    """Standard region queries."""

    def test_ranked_and_wrapped(self, hit):
        guides = [
            hit(start=110, end=132, off_target_count=3),
            hit(start=120, end=142, off_target_count=0),
            hit(start=90, end=112, off_target_count=0),     # outside region
        ]
        db = FakeGuideDB({("chr1", 100, 200): guides})
        result = processor(db).process(QueryRequest(
            organism="hg38", enzyme="cas9", genomic_regions=[region("r1", 100, 200)],
        ))
        assert result.query_type == QueryType.STANDARD
        (out_region, out_guides), = result.result
        assert out_region.organism == "hg38"
        assert [g.off_target_count for g in out_guides] == [0, 3]

    def test_region_order_preserved(self, hit):
        db = FakeGuideDB({
            ("chr1", 100, 200): [hit(start=110, end=132)],
            ("chr2", 100, 200): [],
        })
        result = processor(db).process(QueryRequest(
            organism="hg38", enzyme="cas9",
            genomic_regions=[region("b", 100, 200, chrom="chr2"), region("a", 100, 200)],
        ))
        assert [r.region_name for r, _ in result.result] == ["b", "a"]
        assert [len(g) for _, g in result.result] == [0, 1]

    def test_annotations_and_filters_applied(self, hit):
        exon = Annotation(chromosome="chr1", start=110, end=130, gene_id="G1", feature="exon")
        guides = [
            hit(start=100, end=122, off_target_count=2, specificity=0.9),  # cut 116, annotated
            hit(start=150, end=172, off_target_count=1, specificity=0.9),  # cut 166, unannotated
            hit(start=105, end=127, off_target_count=0, specificity=0.1),  # cut 121, low specificity
        ]
        db = FakeGuideDB({("chr1", 100, 200): guides})
        result = processor(db, features=[exon]).process(QueryRequest(
            organism="hg38", enzyme="cas9", genomic_regions=[region("r", 100, 200)],
            filter_annotated=True, specificity_bounds=ScoreBounds(0.5, 1.0),
        ))
        (_, out_guides), = result.result
        assert [(g.start, g.end) for g in out_guides] == [(100, 122)]
        assert out_guides[0].annotations[0].gene_id == "G1"

    def test_flanking_queries_flanks(self):
        db = FakeGuideDB()
        processor(db).process(QueryRequest(
            organism="hg38", enzyme="cas9", genomic_regions=[region("r", 100, 200)], flanking=10,
        ))
        assert [c[2:] for c in db.calls] == [("chr1", 91, 100), ("chr1", 200, 209)]

    def test_topn_and_ordering(self, hit):
        guides = [hit(start=100 + i, end=122 + i, specificity=s) for i, s in enumerate((0.5, 0.2, 0.9))]
        db = FakeGuideDB({("chr1", 100, 200): guides})
        result = processor(db).process(QueryRequest(
            organism="hg38", enzyme="cas9", genomic_regions=[region("r", 100, 200)],
            ordering="specificity", topn=2,
        ))
        (_, out_guides), = result.result
        assert [g.specificity for g in out_guides] == [0.2, 0.5]

    def test_size_limit_checked_before_lookup(self):
        db = FakeGuideDB()
        result = processor(db).process(QueryRequest(
            organism="hg38", enzyme="cas9", genomic_regions=[region("big", 1, 10_000_002)],
        ))
        assert is_failure(result)
        assert result.kind == ErrorKind.REGION_SIZE_EXCEEDED
        assert db.calls == []

    def test_retrieval_failure_aborts(self, hit):
        db = FakeGuideDB(
            {("chr1", 100, 200): [hit(start=110, end=132)]},
            failing=[("chr1", 300, 400), ("chr1", 500, 600)],
        )
        result = processor(db).process(QueryRequest(
            organism="hg38", enzyme="cas9",
            genomic_regions=[region("a", 100, 200), region("b", 300, 400), region("c", 500, 600)],
        ))
        assert is_failure(result)
        assert result.kind == ErrorKind.RETRIEVAL_ERROR
        assert "300-400" in result.message

    def test_mapping_request_is_parsed(self):
        db = FakeGuideDB()
        result = processor(db).process({'organism': 'hg38', 'enzyme': 'cas9', 'regions': ['chr1:10-20']})
        assert result.query_type == QueryType.STANDARD
        assert db.calls == [("hg38", "cas9", "chr1", 10, 20)]

    def test_parse_error_surfaces(self):
        result = processor(FakeGuideDB()).process({'organism': 'hg38', 'regions': ['chr1:10-20']})
        assert is_failure(result)
        assert result.kind == ErrorKind.PARSE_ERROR


class TestGrnaQuery:
    """Sequence-search queries."""

    def test_match_miss_and_upstream_failures(self, hit):
        target = hit(sequence=reverse_complement(GUIDE + "AGG"), start=110, end=132,
                     direction=Direction.NEGATIVE)
        db = FakeGuideDB({
            ("chr1", 100, 200): [target],
            ("chr1", 300, 400): [hit(start=310, end=332)],
        })
        failed = FailedItem(grna="NOTASEQ", message="bad item")
        result = processor(db).process(QueryRequest(
            query_type=QueryType.GRNA, organism="hg38", enzyme="cas9",
            genomic_regions=[failed, region(GUIDE, 100, 200), region("A" * 20, 300, 400)],
            flanking=50,
        ))

        assert result.query_type == QueryType.GRNA
        match, miss, passed = result.result
        assert isinstance(match, GuideMatch)
        assert match.guide.start == 110
        assert match.genomic_region.region_name == GUIDE
        assert isinstance(miss, MatchFailure)
        assert miss.grna == "A" * 20
        assert miss.kind == ErrorKind.GUIDE_NOT_FOUND
        assert passed is failed

    def test_lowercase_sequence_matches(self, hit):
        """Lowercase observed sequences match uppercase catalog guides."""
        db = FakeGuideDB({("chr1", 90, 200): [hit(sequence=GUIDE + "AGG", start=100, end=122)]})
        result = processor(db).process({
            'query_type': 'grna', 'organism': 'hg38', 'enzyme': 'cas9',
            'regions': [f"{GUIDE.lower()}=chr1:90-200"],
        })

        match, = result.result
        assert isinstance(match, GuideMatch)
        assert match.guide.start == 100
        assert match.genomic_region.region_name == GUIDE

    def test_flanking_disabled(self):
        db = FakeGuideDB()
        processor(db).process(QueryRequest(
            query_type=QueryType.GRNA, organism="hg38", enzyme="cas9",
            genomic_regions=[region(GUIDE, 100, 200)], flanking=10,
        ))
        assert [c[2:] for c in db.calls] == [("chr1", 100, 200)]

    def test_only_failed_items(self):
        db = FakeGuideDB()
        failed = FailedItem(grna="x", message="bad")
        result = processor(db).process(QueryRequest(
            query_type=QueryType.GRNA, organism="hg38", enzyme="cas9", genomic_regions=[failed],
        ))
        assert result.result == [failed]
        assert db.calls == []

    def test_retrieval_failure_aborts(self):
        db = FakeGuideDB(failing=[("chr1", 100, 200)])
        result = processor(db).process(QueryRequest(
            query_type=QueryType.GRNA, organism="hg38", enzyme="cas9",
            genomic_regions=[region(GUIDE, 100, 200)],
        ))
        assert is_failure(result)
        assert result.kind == ErrorKind.RETRIEVAL_ERROR


class TestLibraryQuery:
    """Library design delegation."""

    def test_delegates_and_wraps(self):
        designer = FakeLibraryDesigner(result={'guides': ['a', 'b']})
        result = processor(FakeGuideDB(), designer=designer).process(QueryRequest(
            query_type=QueryType.LIBRARY, organism="hg38", enzyme="",
            query_text="BRCA1\nTP53", options={'num_guides': 4},
        ))
        assert result.query_type == QueryType.LIBRARY
        assert result.result == {'guides': ['a', 'b']}
        assert designer.calls == [('pool', "BRCA1\nTP53", "hg38", {'num_guides': 4})]

    def test_designer_exception(self):
        designer = FakeLibraryDesigner(error=RuntimeError("unknown gene"))
        result = processor(FakeGuideDB(), designer=designer).process(QueryRequest(
            query_type=QueryType.LIBRARY, organism="hg38", enzyme="", query_text="XYZ",
        ))
        assert is_failure(result)
        assert result.kind == ErrorKind.LIBRARY_DESIGN_ERROR
        assert "unknown gene" in result.message

    def test_designer_failure_value_passes_through(self):
        designer = FakeLibraryDesigner(result=fail(ErrorKind.LIBRARY_DESIGN_ERROR, "no genes"))
        result = processor(FakeGuideDB(), designer=designer).process(QueryRequest(
            query_type=QueryType.LIBRARY, organism="hg38", enzyme="", query_text="XYZ",
        ))
        assert result.message == "no genes"

    def test_no_designer(self):
        result = processor(FakeGuideDB()).process(QueryRequest(
            query_type=QueryType.LIBRARY, organism="hg38", enzyme="", query_text="XYZ",
        ))
        assert is_failure(result)
        assert result.kind == ErrorKind.LIBRARY_DESIGN_ERROR


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
