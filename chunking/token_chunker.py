"""
Token Chunker

Fixed-size, overlapping chunking for text whose paragraph structure is
unreliable (page-extracted PDF text). Sizes are character proxies for
tokens (``chars_per_token``, default 4). Text is never discarded: boundary
snapping only moves the cut point.

Algorithm:
1. chunk_end = min(position + target_chars, len(text)).
2. If not at the end, search +-boundary_search_chars around chunk_end for a
   sentence-like break ("\\n\\n", ". ", "\\n", "[.!?] " in priority order)
   and snap to the candidate nearest chunk_end, but only when it lies in the
   last (1 - snap_threshold) of the window and within max_tokens.
   A chunk that would still be under min_tokens once trimmed is extended
   until it is not.
3. Emit the chunk, then advance by (length - overlap), never by less than
   min_advance_ratio * target_chars, and skip leading whitespace. Stop after
   the chunk reaching the end.
4. Post-pass: an undersized final chunk is merged into its predecessor.

Token chunks are not required to start with an uppercase letter or end with
a terminator unless ``repair_boundaries`` is enabled.

Usage:
    from chunking.token_chunker import TokenChunker

    chunks = TokenChunker().chunk(pdf_text, document_id="scan")
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Callable, Optional

from .boundary_repair import BoundaryRepairPipeline, RepairContext
from .cancellation import CancellationToken, checkpoint
from .models import Chunk, ChunkMetadata, ChunkType, TokenChunkingConfig
from .token_counter import estimate_tokens

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], None]

BOUNDARY_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("paragraph_break", re.compile(r"\n\n")),
    ("period_space", re.compile(r"\. ")),
    ("line_break", re.compile(r"\n")),
    ("terminator_space", re.compile(r"[.!?]\s")),
]


@dataclass
class TokenWindow:
    """A [start, end) range of the source text."""
    start: int
    end: int


class TokenChunker:
    """Deterministic overlapping chunker with anti-stall and minimum-size guarantees."""

    def __init__(
        self,
        config: Optional[TokenChunkingConfig] = None,
        repair: Optional[BoundaryRepairPipeline] = None,
    ):
        self.config = config or TokenChunkingConfig()
        self.repair = repair or BoundaryRepairPipeline()
        self.last_dropped = 0

    def chunk(
        self,
        text: str,
        document_id: str = "document",
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[Chunk]:
        """
        Chunk ``text`` into overlapping token windows.

        Character offsets refer to ``text`` as given, so page ranges computed
        on the same text line up with the chunks.
        """
        self.last_dropped = 0
        if not text or not text.strip():
            logger.warning("Empty text input for token chunking")
            return []

        windows = self.plan_windows(text, cancel_token, on_progress)
        windows = self._merge_undersized_tail(text, windows)
        chunks = self._build_chunks(text, windows, document_id)

        if self.config.repair_boundaries:
            chunks = self._repair(chunks, document_id)

        if chunks:
            avg = round(sum(len(c.text) for c in chunks) / len(chunks))
            logger.info(
                f"Created {len(chunks)} token chunks (avg {avg} chars, "
                f"overlap {self.config.overlap_tokens} tokens)"
            )
        return chunks

    def plan_windows(
        self,
        text: str,
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[TokenWindow]:
        """Compute chunk ranges before the undersized-tail post-pass."""
        cfg = self.config
        position = len(text) - len(text.lstrip())
        length = len(text.rstrip())
        estimated_total = max(1, math.ceil((length - position) / cfg.target_chars))

        windows: list[TokenWindow] = []
        while position < length:
            checkpoint(cancel_token, "token chunking")
            target_end = min(position + cfg.target_chars, length)
            end = target_end
            if target_end < length:
                end = self._snap(text, position, target_end, length) or target_end
                end = self._reach_minimum(text, position, end, length)

            if text[position:end].strip():
                windows.append(TokenWindow(start=position, end=end))

            if on_progress:
                on_progress(
                    len(windows),
                    max(estimated_total, len(windows)),
                    min(100, round(end / length * 100)),
                )

            if end >= length:
                break
            advance = max((end - position) - cfg.overlap_chars, cfg.min_advance_chars)
            position += advance
            while position < length and text[position].isspace():
                position += 1

        return windows

    def _reach_minimum(self, text: str, position: int, end: int, length: int) -> int:
        floor = self.config.min_tokens * self.config.chars_per_token
        while end < length and len(text[position:end].rstrip()) < floor:
            end += 1
        return end

    def _snap(self, text: str, position: int, target_end: int, length: int) -> Optional[int]:
        """Nearest sentence-like break to ``target_end`` that keeps the chunk large enough."""
        cfg = self.config
        search_start = max(position, target_end - cfg.boundary_search_chars)
        search_end = min(length, target_end + cfg.boundary_search_chars)
        floor = cfg.min_tokens * cfg.chars_per_token
        lowest = position + max(int(cfg.target_chars * cfg.snap_threshold), floor)
        highest = min(position + cfg.max_chars, length)

        window = text[search_start:search_end]
        for name, pattern in BOUNDARY_PATTERNS:
            best: Optional[int] = None
            for match in pattern.finditer(window):
                candidate = search_start + match.end()
                if candidate < lowest or candidate > highest:
                    continue
                if len(text[position:candidate].rstrip()) < floor:
                    continue
                if best is None or abs(candidate - target_end) < abs(best - target_end):
                    best = candidate
            if best is not None:
                logger.debug(f"Snapped chunk end {target_end} -> {best} ({name})")
                return best
        return None

    def _merge_undersized_tail(self, text: str, windows: list[TokenWindow]) -> list[TokenWindow]:
        if len(windows) < 2:
            return windows
        last = windows[-1]
        tokens = estimate_tokens(text[last.start:last.end].strip(), self.config.chars_per_token)
        if tokens >= self.config.min_tokens:
            return windows
        logger.debug(f"Merging undersized final chunk ({tokens} tokens) into its predecessor")
        previous = windows[-2]
        merged = TokenWindow(start=previous.start, end=max(previous.end, last.end))
        return windows[:-2] + [merged]

    def _build_chunks(self, text: str, windows: list[TokenWindow], document_id: str) -> list[Chunk]:
        cpt = self.config.chars_per_token
        chunks: list[Chunk] = []
        for index, window in enumerate(windows):
            chunk_text = text[window.start:window.end].strip()
            previous = windows[index - 1] if index else None
            overlap_with = (
                chunks[-1].id if previous is not None and window.start < previous.end else None
            )
            chunks.append(Chunk(
                id=f"{document_id}_chunk_{index:04d}",
                text=chunk_text,
                type=ChunkType.TOKEN,
                metadata=ChunkMetadata(
                    chunk_index=index,
                    char_start=window.start,
                    char_end=window.end,
                    token_start=round(window.start / cpt),
                    token_end=round(window.end / cpt),
                    overlap_with=overlap_with,
                    token_count=estimate_tokens(chunk_text, cpt),
                ),
            ))
        return chunks

    def _repair(self, chunks: list[Chunk], document_id: str) -> list[Chunk]:
        kept: list[Chunk] = []
        for chunk in chunks:
            outcome = self.repair.run(
                chunk.text,
                RepairContext(is_first=chunk.metadata.chunk_index == 0),
            )
            if outcome.dropped:
                self.last_dropped += 1
                logger.debug(f"Dropped token chunk {chunk.id} at step {outcome.dropped_by}")
                continue
            index = len(kept)
            metadata = chunk.metadata.model_copy(update={
                "chunk_index": index,
                "overlap_with": kept[-1].id if kept and chunk.metadata.overlap_with else None,
                "token_count": estimate_tokens(outcome.text, self.config.chars_per_token),
            })
            kept.append(chunk.model_copy(update={
                "id": f"{document_id}_chunk_{index:04d}",
                "text": outcome.text,
                "metadata": metadata,
            }))
        return kept
