"""Tests for chunking.sentence_chunker — HybridSentenceChunker."""

import pytest

from chunking.cancellation import CancellationToken
from chunking.exceptions import OperationCancelled
from chunking.models import ChunkType, SentenceChunkingConfig
from chunking.sentence_chunker import HybridSentenceChunker


def paragraph(count: int, start: int = 1) -> str:
    return " ".join(
        f"The witness described event number {n} in detail." for n in range(start, start + count)
    )


# ---------------------------------------------------------------------------
# Size policy
# ---------------------------------------------------------------------------

class TestSizePolicy:
    def test_sliding_window_over_long_paragraph(self):
        chunks = HybridSentenceChunker().chunk(paragraph(9), document_id="doc")

        assert len(chunks) == 2
        first, second = chunks
        assert first.type == ChunkType.SLIDING_WINDOW
        assert (first.metadata.sentence_start, first.metadata.sentence_end) == (0, 7)
        assert (second.metadata.sentence_start, second.metadata.sentence_end) == (6, 8)
        assert first.metadata.overlap_with is None
        assert second.metadata.overlap_with == first.id
        assert [c.id for c in chunks] == ["doc_chunk_0000", "doc_chunk_0001"]

    def test_window_overlap_shares_sentences(self):
        first, second = HybridSentenceChunker().chunk(paragraph(9), document_id="doc")
        shared = "The witness described event number 7 in detail."
        assert shared in first.text
        assert second.text.startswith(shared)

    def test_medium_paragraph_stays_intact(self, case_notes):
        chunks = HybridSentenceChunker().chunk(case_notes, document_id="notes")

        assert len(chunks) == 2
        assert all(c.type == ChunkType.PARAGRAPH for c in chunks)
        assert chunks[0].text.startswith("The claimant injured her back")
        assert chunks[1].text.endswith("within thirty days.")

    def test_short_paragraph_is_buffered_into_next(self):
        text = "The hearing took place in March. Both parties attended.\n\n" + paragraph(4)
        chunks = HybridSentenceChunker().chunk(text, document_id="doc")

        assert len(chunks) == 1
        chunk = chunks[0]
        assert chunk.type == ChunkType.MERGED_PARAGRAPH
        assert chunk.text.startswith("The hearing took place in March.")
        assert (chunk.metadata.paragraph_start, chunk.metadata.paragraph_end) == (0, 1)
        assert (chunk.metadata.sentence_start, chunk.metadata.sentence_end) == (0, 5)

    def test_short_last_paragraph_is_emitted(self):
        text = paragraph(4) + "\n\nThe court adjourned the hearing until the following week."
        chunks = HybridSentenceChunker().chunk(text, document_id="doc")

        assert len(chunks) == 2
        assert chunks[1].text == "The court adjourned the hearing until the following week."
        assert chunks[1].metadata.sentence_start == 4

    def test_sentence_indices_are_document_wide(self):
        text = paragraph(3) + "\n\n" + paragraph(3, start=4)
        chunks = HybridSentenceChunker().chunk(text, document_id="doc")
        assert [(c.metadata.sentence_start, c.metadata.sentence_end) for c in chunks] == [(0, 2), (3, 5)]


# ---------------------------------------------------------------------------
# Metadata and repair
# ---------------------------------------------------------------------------

class TestMetadata:
    def test_char_ranges_are_ordered(self, case_notes):
        chunks = HybridSentenceChunker().chunk(case_notes, document_id="notes")
        assert chunks[0].metadata.char_start == 0
        for previous, current in zip(chunks, chunks[1:]):
            assert current.metadata.char_start >= previous.metadata.char_start
        for chunk in chunks:
            assert chunk.metadata.char_end > chunk.metadata.char_start

    def test_token_count_is_estimated(self, case_notes):
        chunk = HybridSentenceChunker().chunk(case_notes, document_id="notes")[0]
        assert chunk.metadata.token_count == round(len(chunk.text) / 4)

    def test_headers_are_stripped_first(self):
        text = "Page 1 of 2\n" + paragraph(3) + "\nPage 2 of 2"
        chunks = HybridSentenceChunker().chunk(text, document_id="doc")
        assert len(chunks) == 1
        assert "Page" not in chunks[0].text

    def test_dropped_candidates_are_counted(self):
        chunker = HybridSentenceChunker()
        assert chunker.chunk("Too short here.", document_id="doc") == []
        assert chunker.last_dropped == 1

    @pytest.mark.parametrize("text", ["", "   ", "Page 1 of 3"])
    def test_empty_input(self, text):
        assert HybridSentenceChunker().chunk(text) == []


# ---------------------------------------------------------------------------
# Configuration, progress, cancellation
# ---------------------------------------------------------------------------

class TestConfigAndControl:
    def test_custom_window(self):
        config = SentenceChunkingConfig(window_size=4, overlap=1, buffer_max_sentences=1, intact_max_sentences=3)
        chunks = HybridSentenceChunker(config).chunk(paragraph(7), document_id="doc")
        ranges = [(c.metadata.sentence_start, c.metadata.sentence_end) for c in chunks]
        assert ranges == [(0, 3), (3, 6)]

    def test_overlap_not_smaller_than_window_falls_back_to_zero(self):
        config = SentenceChunkingConfig(window_size=2, overlap=2, buffer_max_sentences=0, intact_max_sentences=1)
        assert config.effective_overlap == 0
        assert config.step == 2

    def test_buffer_must_be_smaller_than_intact(self):
        with pytest.raises(ValueError):
            SentenceChunkingConfig(buffer_max_sentences=7, intact_max_sentences=7)

    def test_progress_reaches_total(self, case_notes):
        calls = []
        HybridSentenceChunker().chunk(case_notes, on_progress=lambda *args: calls.append(args))
        assert calls[-1] == (2, 2, 100)

    def test_cancelled_token_stops_chunking(self, case_notes):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelled):
            HybridSentenceChunker().chunk(case_notes, cancel_token=token)
