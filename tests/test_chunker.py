"""Tests for chunking.chunker — strategy dispatch, pages, stats, validation."""

import pytest

from chunking.chunker import (
    DocumentChunker,
    chunk_stats,
    enrich_with_pages,
    make_document_id,
    pages_for_range,
    strategy_for_file,
    validate_chunks,
)
from chunking.models import (
    Chunk,
    ChunkingConfig,
    ChunkingStrategy,
    ChunkMetadata,
    ChunkType,
    PageRange,
    TokenChunkingConfig,
)

PAGE_TEXT = ("The claimant reported back pain after the fall. " * 4).strip()


def two_page_document():
    text = PAGE_TEXT + "\n\n" + PAGE_TEXT
    second_start = len(PAGE_TEXT) + 2
    ranges = [
        PageRange(page=1, start_char=0, end_char=len(PAGE_TEXT)),
        PageRange(page=2, start_char=second_start, end_char=second_start + len(PAGE_TEXT)),
    ]
    return text, ranges


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    @pytest.mark.parametrize("source,expected", [
        ("brief.txt", "brief"),
        ("records/Smith v. Acme.pdf", "Smith_v._Acme"),
        ("C:\\docs\\notes.md", "notes"),
        ("", "document"),
    ])
    def test_make_document_id(self, source, expected):
        assert make_document_id(source) == expected

    def test_strategy_for_file(self):
        assert strategy_for_file("scan.PDF") == ChunkingStrategy.TOKEN
        assert strategy_for_file("notes.txt") == ChunkingStrategy.PARAGRAPH

    def test_pages_for_range(self):
        ranges = [
            PageRange(page=1, start_char=0, end_char=5),
            PageRange(page=2, start_char=7, end_char=20),
            PageRange(page=3, start_char=22, end_char=30),
        ]
        assert pages_for_range(0, 10, ranges) == [1, 2]
        assert pages_for_range(8, 12, ranges) == [2]
        assert pages_for_range(0, 30, ranges) == [1, 2, 3]

    def test_enrich_with_pages(self, make_chunk):
        chunk = make_chunk("c0", "text")
        chunk.metadata.char_start, chunk.metadata.char_end = 3, 9
        enriched = enrich_with_pages([chunk], [
            PageRange(page=1, start_char=0, end_char=5),
            PageRange(page=2, start_char=7, end_char=20),
        ])[0]
        assert (enriched.metadata.page_start, enriched.metadata.page_end) == (1, 2)
        assert enriched.metadata.pages_spanned == [1, 2]


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

class TestDocumentChunker:
    def test_paragraph_strategy(self, case_notes):
        result = DocumentChunker().chunk_text(case_notes, document_id="notes", source_file="notes.txt")

        assert result.strategy == ChunkingStrategy.PARAGRAPH
        assert result.total_chunks == 2
        assert result.stats.total_chunks == 2
        assert all(c.metadata.source_file == "notes.txt" for c in result.chunks)
        assert result.get_chunk_by_id("notes_chunk_0001") is result.chunks[1]
        assert result.get_chunk_by_id("missing") is None

    def test_token_strategy_attaches_pages(self):
        text, ranges = two_page_document()
        config = ChunkingConfig(token=TokenChunkingConfig(
            target_tokens=50, max_tokens=60, min_tokens=0, overlap_tokens=0,
        ))
        result = DocumentChunker(config).chunk_text(
            text,
            document_id="scan",
            strategy=ChunkingStrategy.TOKEN,
            page_ranges=ranges,
        )

        assert result.total_chunks > 1
        assert result.chunks[0].metadata.page_start == 1
        assert result.chunks[-1].metadata.page_end == 2
        for chunk in result.chunks:
            assert set(chunk.metadata.pages_spanned) <= {1, 2}

    def test_paragraph_strategy_ignores_pages(self, case_notes):
        ranges = [PageRange(page=1, start_char=0, end_char=len(case_notes))]
        result = DocumentChunker().chunk_text(case_notes, document_id="notes", page_ranges=ranges)
        assert all(c.metadata.page_start is None for c in result.chunks)

    def test_empty_text(self):
        result = DocumentChunker().chunk_text("", document_id="empty")
        assert result.chunks == []
        assert result.stats.total_chunks == 0


# ---------------------------------------------------------------------------
# Stats and validation
# ---------------------------------------------------------------------------

class TestStats:
    def test_chunk_stats(self, make_chunk):
        chunks = [make_chunk("a", "x" * 10), make_chunk("b", "y" * 30)]
        stats = chunk_stats(chunks)
        assert stats.total_chunks == 2
        assert stats.total_characters == 40
        assert stats.average_chunk_size == 20
        assert (stats.min_chunk_size, stats.max_chunk_size) == (10, 30)
        assert stats.by_type == {"paragraph": 2}

    def test_empty_stats(self):
        assert chunk_stats([]).total_chunks == 0


class TestValidation:
    def test_flags_issues(self):
        chunk = Chunk(
            id="c0",
            text="lowercase start without an ending",
            type=ChunkType.TOKEN,
            metadata=ChunkMetadata(chunk_index=0),
        )
        report = validate_chunks([chunk])

        assert {i.issue for i in report.issues} == {
            "STARTS_WITH_LOWERCASE",
            "NO_SENTENCE_TERMINATOR",
            "TOO_SHORT",
        }
        assert report.by_severity == {"critical": 0, "high": 0, "medium": 2, "low": 1}
        assert report.is_valid
        assert report.report.startswith("3 issues found in 1 chunks")

    def test_clean_chunks(self, case_notes):
        result = DocumentChunker().chunk_text(case_notes, document_id="notes")
        report = validate_chunks(result.chunks)
        assert report.issue_count == 0
