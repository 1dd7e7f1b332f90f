"""
Document Chunker - Entry point of the chunking pipeline

Dispatches a document to one of the two strategies and enriches the result:

- paragraph-based: header stripping -> paragraphs -> fragment merge ->
  hybrid sentence chunker -> boundary repair (structured text)
- token-based: overlapping token windows (page-extracted PDF text),
  enriched with the pages each chunk spans

Usage:
    from chunking import DocumentChunker, ChunkingStrategy

    chunker = DocumentChunker()
    result = chunker.chunk_text(text, document_id="brief", strategy=ChunkingStrategy.PARAGRAPH)
    print(result.stats.total_chunks)
"""

import logging
import re
from pathlib import Path
from typing import Callable, Optional, Sequence

from .cancellation import CancellationToken
from .models import (
    Chunk,
    ChunkingConfig,
    ChunkingResult,
    ChunkingStats,
    ChunkingStrategy,
    PageRange,
    ValidationIssue,
    ValidationReport,
)
from .sentence_chunker import HybridSentenceChunker
from .token_chunker import TokenChunker

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], None]

MIN_VALID_CHUNK_CHARS = 50
_DOCUMENT_ID_RE = re.compile(r"[^\w.-]")


class DocumentChunker:
    """Chooses a chunking strategy per document and assembles the result."""

    def __init__(self, config: Optional[ChunkingConfig] = None):
        self.config = config or ChunkingConfig()
        self.sentence_chunker = HybridSentenceChunker(self.config.sentence)
        self.token_chunker = TokenChunker(self.config.token)

    def chunk_text(
        self,
        text: str,
        document_id: str,
        strategy: ChunkingStrategy = ChunkingStrategy.PARAGRAPH,
        source_file: str = "",
        page_ranges: Optional[Sequence[PageRange]] = None,
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ChunkingResult:
        """
        Chunk one document.

        Args:
            text: Extracted document text.
            document_id: Prefix for chunk ids.
            strategy: paragraph-based or token-based.
            source_file: Original file name, stored on every chunk.
            page_ranges: Page character ranges of ``text`` (token strategy).
            cancel_token: Checked inside the chunking loops.
            on_progress: Called with (processed, total, percentage).

        Returns:
            ChunkingResult; empty input yields a result without chunks.
        """
        if strategy == ChunkingStrategy.TOKEN:
            chunks = self.token_chunker.chunk(text, document_id, cancel_token, on_progress)
            dropped = self.token_chunker.last_dropped
            if page_ranges:
                chunks = enrich_with_pages(chunks, page_ranges)
        else:
            chunks = self.sentence_chunker.chunk(text, document_id, cancel_token, on_progress)
            dropped = self.sentence_chunker.last_dropped
            if page_ranges:
                logger.debug("Page ranges are ignored for paragraph-based chunking")

        if source_file:
            chunks = [
                chunk.model_copy(update={
                    "metadata": chunk.metadata.model_copy(update={"source_file": source_file}),
                })
                for chunk in chunks
            ]

        return ChunkingResult(
            document_id=document_id,
            source_file=source_file,
            strategy=strategy,
            chunks=chunks,
            stats=chunk_stats(chunks),
            dropped_chunks=dropped,
        )


def make_document_id(source_file: str) -> str:
    """Generate a document ID from a file name or path."""
    normalized = source_file.replace("\\", "/")
    stem = Path(normalized).stem or "document"
    return _DOCUMENT_ID_RE.sub("_", stem)


def strategy_for_file(filename: str) -> ChunkingStrategy:
    """PDFs use token chunking; everything else is chunked by paragraph."""
    if filename.lower().endswith(".pdf"):
        return ChunkingStrategy.TOKEN
    return ChunkingStrategy.PARAGRAPH


def pages_for_range(char_start: int, char_end: int, page_ranges: Sequence[PageRange]) -> list[int]:
    """Pages whose character range overlaps [char_start, char_end)."""
    pages = []
    for page in page_ranges:
        starts_inside = page.start_char <= char_start < page.end_char
        ends_inside = page.start_char < char_end <= page.end_char
        covers = char_start <= page.start_char and char_end >= page.end_char
        if starts_inside or ends_inside or covers:
            pages.append(page.page)
    return pages


def enrich_with_pages(chunks: list[Chunk], page_ranges: Sequence[PageRange]) -> list[Chunk]:
    """Attach pageStart, pageEnd and pagesSpanned to each chunk."""
    enriched = []
    for chunk in chunks:
        pages = pages_for_range(chunk.metadata.char_start, chunk.metadata.char_end, page_ranges)
        metadata = chunk.metadata.model_copy(update={
            "page_start": min(pages) if pages else None,
            "page_end": max(pages) if pages else None,
            "pages_spanned": pages,
        })
        enriched.append(chunk.model_copy(update={"metadata": metadata}))
    return enriched


def chunk_stats(chunks: Sequence[Chunk]) -> ChunkingStats:
    """Size statistics and counts by chunk type."""
    if not chunks:
        return ChunkingStats()

    sizes = [len(c.text) for c in chunks]
    by_type: dict[str, int] = {}
    for chunk in chunks:
        by_type[chunk.type.value] = by_type.get(chunk.type.value, 0) + 1

    return ChunkingStats(
        total_chunks=len(chunks),
        total_characters=sum(sizes),
        average_chunk_size=round(sum(sizes) / len(sizes)),
        min_chunk_size=min(sizes),
        max_chunk_size=max(sizes),
        by_type=by_type,
    )


def validate_chunks(chunks: Sequence[Chunk]) -> ValidationReport:
    """
    Report common quality issues.

    Flags chunks that start lowercase or lack a terminator (medium) and
    chunks under 50 characters (low). The report is valid when there are no
    critical or high issues.
    """
    issues: list[ValidationIssue] = []
    for idx, chunk in enumerate(chunks):
        text = chunk.text
        if text[:1].islower():
            issues.append(ValidationIssue(
                chunk_id=chunk.id,
                chunk_index=idx,
                issue="STARTS_WITH_LOWERCASE",
                severity="MEDIUM",
                text=text[:50],
            ))
        if not re.search(r"[.!?\"”]$", text):
            issues.append(ValidationIssue(
                chunk_id=chunk.id,
                chunk_index=idx,
                issue="NO_SENTENCE_TERMINATOR",
                severity="MEDIUM",
                text=text[-50:],
            ))
        if len(text) < MIN_VALID_CHUNK_CHARS:
            issues.append(ValidationIssue(
                chunk_id=chunk.id,
                chunk_index=idx,
                issue="TOO_SHORT",
                severity="LOW",
                length=len(text),
            ))

    by_severity = {
        level: sum(1 for i in issues if i.severity == level.upper())
        for level in ("critical", "high", "medium", "low")
    }
    return ValidationReport(
        total_chunks=len(chunks),
        issue_count=len(issues),
        issues=issues,
        by_severity=by_severity,
        report=(
            f"{len(issues)} issues found in {len(chunks)} chunks "
            f"({by_severity['critical']} critical, {by_severity['high']} high, "
            f"{by_severity['medium']} medium, {by_severity['low']} low)"
        ),
        is_valid=by_severity["critical"] == 0 and by_severity["high"] == 0,
    )
