"""
Hybrid Sentence Chunker

Chunks structured text (plain text, word-processor exports) paragraph by
paragraph with a size-dependent policy:

    1-2 sentences   buffered and prepended to the next paragraph
                    (emitted as-is when no paragraph follows)
    3-7 sentences   one intact chunk
    >= 8 sentences  sliding window of ``window_size`` sentences sharing
                    ``overlap`` sentences; each window points back to the
                    previous window through ``overlap_with``

Every candidate goes through boundary repair. Candidates that repair
discards are dropped and counted, never raised.

Usage:
    from chunking.sentence_chunker import HybridSentenceChunker

    chunker = HybridSentenceChunker()
    chunks = chunker.chunk(text, document_id="brief")
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from .boundary_repair import BoundaryRepairPipeline, RepairContext
from .cancellation import CancellationToken, checkpoint
from .headers import strip_headers
from .models import Chunk, ChunkMetadata, ChunkType, SentenceChunkingConfig
from .paragraphs import MergedParagraph, merge_fragments, split_paragraphs
from .sentence_splitter import sentence_spans
from .token_counter import estimate_tokens

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], None]

_WHITESPACE_RE = re.compile(r"\s+")
PROGRESS_EVERY = 10


@dataclass(frozen=True)
class Sentence:
    """A sentence and its [start, end) range in the cleaned text."""
    index: int
    start: int
    end: int
    paragraph_start: int
    paragraph_end: int


@dataclass
class _RunState:
    source: str
    document_id: str
    chunks: list[Chunk] = field(default_factory=list)
    dropped: int = 0
    last_char_start: int = 0


class HybridSentenceChunker:
    """Paragraph-aware sentence chunker with boundary repair."""

    def __init__(
        self,
        config: Optional[SentenceChunkingConfig] = None,
        repair: Optional[BoundaryRepairPipeline] = None,
    ):
        self.config = config or SentenceChunkingConfig()
        self.repair = repair or BoundaryRepairPipeline()
        self.last_dropped = 0
        if self.config.effective_overlap != self.config.overlap:
            logger.warning(
                f"overlap ({self.config.overlap}) leaves no step for window_size "
                f"({self.config.window_size}); using overlap 0"
            )

    def chunk(
        self,
        text: str,
        document_id: str = "document",
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[Chunk]:
        """
        Chunk ``text``.

        Args:
            text: Raw extracted text.
            document_id: Prefix for chunk ids.
            cancel_token: Checked once per paragraph.
            on_progress: Called with (processed, total, percentage).

        Returns:
            Chunks in document order. Empty or header-only input yields [].
        """
        self.last_dropped = 0
        if not text or not text.strip():
            logger.warning("Empty text input for sentence chunking")
            return []

        cleaned = strip_headers(text)
        paragraphs = merge_fragments(split_paragraphs(cleaned), self.config.min_fragment_chars)
        if not paragraphs:
            return []

        state = _RunState(source=cleaned, document_id=document_id)
        buffered: list[Sentence] = []
        sentence_index = 0
        total = len(paragraphs)

        for i, paragraph in enumerate(paragraphs):
            checkpoint(cancel_token, "sentence chunking")
            sentences = self._sentences(paragraph, sentence_index)
            sentence_index += len(sentences)

            is_last = i == total - 1
            if sentences and len(sentences) <= self.config.buffer_max_sentences and not is_last:
                buffered.extend(sentences)
            else:
                combined = buffered + sentences
                buffered = []
                if combined:
                    self._emit(state, combined)

            if on_progress and ((i + 1) % PROGRESS_EVERY == 0 or is_last):
                on_progress(i + 1, total, round((i + 1) / total * 100))

        if buffered:
            self._emit(state, buffered)

        self.last_dropped = state.dropped
        logger.info(
            f"Created {len(state.chunks)} sentence chunks from {total} paragraphs "
            f"({state.dropped} dropped by repair)"
        )
        return state.chunks

    # -------------------------------------------------------------------------
    # Internal methods
    # -------------------------------------------------------------------------

    def _sentences(self, paragraph: MergedParagraph, first_index: int) -> list[Sentence]:
        return [
            Sentence(
                index=first_index + n,
                start=paragraph.start + start,
                end=paragraph.start + end,
                paragraph_start=paragraph.first_index,
                paragraph_end=paragraph.last_index,
            )
            for n, (start, end) in enumerate(sentence_spans(paragraph.text))
        ]

    def _emit(self, state: _RunState, sentences: list[Sentence]) -> None:
        if len(sentences) <= self.config.intact_max_sentences:
            single_source = sentences[0].paragraph_start == sentences[-1].paragraph_end
            chunk_type = ChunkType.PARAGRAPH if single_source else ChunkType.MERGED_PARAGRAPH
            self._accept(state, sentences, chunk_type, overlap_with=None)
            return

        window = self.config.window_size
        step = self.config.step
        total = len(sentences)
        previous_id: Optional[str] = None
        start = 0
        while True:
            end = min(start + window, total)
            chunk = self._accept(state, sentences[start:end], ChunkType.SLIDING_WINDOW, previous_id)
            if chunk:
                previous_id = chunk.id
            if end == total:
                break
            start += step

    def _accept(
        self,
        state: _RunState,
        sentences: list[Sentence],
        chunk_type: ChunkType,
        overlap_with: Optional[str],
    ) -> Optional[Chunk]:
        first, last = sentences[0], sentences[-1]
        raw = state.source[first.start:last.end].replace("\n", " ")
        context = RepairContext(
            is_first=first.index == 0,
            min_length=self.config.min_chunk_chars,
        )
        outcome = self.repair.run(raw, context)
        if outcome.dropped:
            state.dropped += 1
            logger.debug(
                f"Dropped {chunk_type.value} candidate (sentences {first.index}-{last.index}) "
                f"at step {outcome.dropped_by}"
            )
            return None

        repaired = outcome.text
        offset = raw.find(repaired[:40])
        offset = max(offset, 0)
        char_start = max(first.start + offset, state.last_char_start)
        char_end = min(last.end, first.start + offset + len(repaired))
        state.last_char_start = char_start

        text = _WHITESPACE_RE.sub(" ", repaired).strip()
        index = len(state.chunks)
        chunk = Chunk(
            id=f"{state.document_id}_chunk_{index:04d}",
            text=text,
            type=chunk_type,
            metadata=ChunkMetadata(
                chunk_index=index,
                paragraph_start=first.paragraph_start,
                paragraph_end=last.paragraph_end,
                sentence_start=first.index,
                sentence_end=last.index,
                char_start=char_start,
                char_end=max(char_end, char_start),
                overlap_with=overlap_with,
                token_count=estimate_tokens(text, self.config.chars_per_token),
            ),
        )
        state.chunks.append(chunk)
        return chunk
