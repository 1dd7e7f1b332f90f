"""Tests for retrieval.hybrid — merging semantic and keyword results."""

from retrieval.hybrid import merge_hybrid
from retrieval.models import RetrievalResult


def result(make_chunk, document_id, chunk_id, match_type, score):
    return RetrievalResult(
        chunk=make_chunk(chunk_id, f"Text of {chunk_id}."),
        document_id=document_id,
        score=score,
        match_type=match_type,
    )


def test_semantic_results_come_first(make_chunk):
    semantic = [result(make_chunk, "d1", "c0", "semantic", 0.9), result(make_chunk, "d1", "c1", "semantic", 0.4)]
    keyword = [result(make_chunk, "d2", "c0", "keyword", 2.0)]

    merged = merge_hybrid(semantic, keyword)
    assert [(r.document_id, r.chunk.id, r.match_type) for r in merged] == [
        ("d1", "c0", "semantic"),
        ("d1", "c1", "semantic"),
        ("d2", "c0", "keyword"),
    ]


def test_keyword_duplicates_are_dropped(make_chunk):
    semantic = [result(make_chunk, "d1", "c0", "semantic", 0.9)]
    keyword = [result(make_chunk, "d1", "c0", "keyword", 3.0), result(make_chunk, "d1", "c2", "keyword", 1.0)]

    merged = merge_hybrid(semantic, keyword)
    assert [(r.chunk.id, r.match_type) for r in merged] == [("c0", "semantic"), ("c2", "keyword")]
    assert merged[0].score == 0.9


def test_same_chunk_id_in_different_documents_is_kept(make_chunk):
    semantic = [result(make_chunk, "d1", "c0", "semantic", 0.9)]
    keyword = [result(make_chunk, "d2", "c0", "keyword", 1.0)]
    assert len(merge_hybrid(semantic, keyword)) == 2


def test_empty_inputs(make_chunk):
    assert merge_hybrid([], []) == []
    keyword = [result(make_chunk, "d1", "c0", "keyword", 1.0)]
    assert merge_hybrid([], keyword) == keyword
