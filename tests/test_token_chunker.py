"""Tests for chunking.token_chunker — TokenChunker."""

import pytest

from chunking.cancellation import CancellationToken
from chunking.exceptions import OperationCancelled
from chunking.models import ChunkType, TokenChunkingConfig
from chunking.token_chunker import TokenChunker

SENTENCE = "The claimant reported back pain after the fall. "


@pytest.fixture
def small_config():
    # 200-char target, 240-char max, 40-char overlap
    return TokenChunkingConfig(target_tokens=50, max_tokens=60, min_tokens=20, overlap_tokens=10)


class TestTokenChunker:
    def test_chunks_cover_the_text(self, small_config):
        text = SENTENCE * 20
        chunks = TokenChunker(small_config).chunk(text, document_id="scan")

        assert len(chunks) > 1
        assert chunks[0].metadata.char_start == 0
        assert chunks[-1].metadata.char_end == len(text.rstrip())
        for previous, current in zip(chunks, chunks[1:]):
            assert current.metadata.char_start <= previous.metadata.char_end
            assert current.metadata.char_start > previous.metadata.char_start

    def test_chunk_metadata(self, small_config):
        text = SENTENCE * 20
        chunks = TokenChunker(small_config).chunk(text, document_id="scan")

        assert all(c.type == ChunkType.TOKEN for c in chunks)
        assert [c.metadata.chunk_index for c in chunks] == list(range(len(chunks)))
        assert chunks[0].id == "scan_chunk_0000"
        assert chunks[0].metadata.overlap_with is None
        assert chunks[1].metadata.overlap_with == chunks[0].id
        first = chunks[0].metadata
        assert first.token_start == 0
        assert first.token_end == round(first.char_end / 4)

    def test_snaps_to_sentence_break(self, small_config):
        chunks = TokenChunker(small_config).chunk(SENTENCE * 20, document_id="scan")
        assert all(c.text.endswith(".") for c in chunks)

    def test_non_final_chunks_respect_max_size(self, small_config):
        chunks = TokenChunker(small_config).chunk(SENTENCE * 20, document_id="scan")
        for chunk in chunks[:-1]:
            assert len(chunk.text) <= small_config.max_chars

    def test_always_advances(self):
        config = TokenChunkingConfig(target_tokens=50, max_tokens=60, min_tokens=0, overlap_tokens=45)
        chunker = TokenChunker(config)
        windows = chunker.plan_windows("x" * 1000)

        starts = [w.start for w in windows]
        assert all(b - a >= 0.25 * config.target_chars for a, b in zip(starts, starts[1:]))
        assert windows[-1].end == 1000

    def test_advance_is_rounded_up(self):
        # 50 target chars: a quarter is 12.5
        config = TokenChunkingConfig(
            target_tokens=50, max_tokens=60, min_tokens=0, overlap_tokens=45, chars_per_token=1,
        )
        windows = TokenChunker(config).plan_windows("x" * 1000)

        starts = [w.start for w in windows]
        assert config.min_advance_chars == 13
        assert all(b - a >= 0.25 * config.target_chars for a, b in zip(starts, starts[1:]))

    @pytest.mark.parametrize("overlap", [0, 20])
    def test_no_chunk_below_minimum(self, overlap):
        config = TokenChunkingConfig(
            target_tokens=100, max_tokens=120, min_tokens=100,
            overlap_tokens=overlap, chars_per_token=1,
        )
        text = ("word " * 19 + "\n\n") * 20 + "tail words here."
        chunks = TokenChunker(config).chunk(text, document_id="doc")

        assert len(chunks) > 1
        assert all(c.metadata.token_count >= 100 for c in chunks)
        assert chunks[-1].metadata.char_end == len(text)

    def test_windows_do_not_start_on_whitespace(self):
        config = TokenChunkingConfig(
            target_tokens=100, max_tokens=120, min_tokens=100, overlap_tokens=0, chars_per_token=1,
        )
        text = ("word " * 19 + "\n\n") * 20
        windows = TokenChunker(config).plan_windows(text)

        assert len(windows) > 1
        assert all(not text[w.start].isspace() for w in windows)

    def test_undersized_tail_is_merged(self):
        config = TokenChunkingConfig(target_tokens=50, max_tokens=60, min_tokens=20, overlap_tokens=0)
        text = "word " * 44
        chunks = TokenChunker(config).chunk(text, document_id="doc")

        assert len(chunks) == 1
        assert chunks[0].text == text.strip()
        assert chunks[0].metadata.char_end == len(text.rstrip())

    def test_short_text_is_one_chunk(self):
        chunks = TokenChunker().chunk("A single short page.", document_id="doc")
        assert len(chunks) == 1
        assert chunks[0].text == "A single short page."

    @pytest.mark.parametrize("text", ["", "   \n  "])
    def test_empty_input(self, text):
        assert TokenChunker().chunk(text) == []

    def test_text_is_not_dropped_without_repair(self):
        chunks = TokenChunker().chunk("tiny", document_id="doc")
        assert [c.text for c in chunks] == ["tiny"]

    def test_repair_can_be_enabled(self):
        config = TokenChunkingConfig(repair_boundaries=True)
        chunker = TokenChunker(config)
        assert chunker.chunk("tiny", document_id="doc") == []
        assert chunker.last_dropped == 1

    def test_cancelled_token_stops_chunking(self, small_config):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelled):
            TokenChunker(small_config).chunk(SENTENCE * 20, cancel_token=token)


class TestTokenChunkingConfig:
    def test_sizes_in_chars(self, small_config):
        assert small_config.target_chars == 200
        assert small_config.max_chars == 240
        assert small_config.overlap_chars == 40
        assert small_config.min_advance_chars == 50

    def test_min_must_not_exceed_target(self):
        with pytest.raises(ValueError):
            TokenChunkingConfig(target_tokens=100, max_tokens=120, min_tokens=200)

    def test_overlap_must_be_below_target(self):
        with pytest.raises(ValueError):
            TokenChunkingConfig(target_tokens=100, max_tokens=120, min_tokens=50, overlap_tokens=100)
