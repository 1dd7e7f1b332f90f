"""
Data Models for the Chunking Pipeline

Defines:
1. SentenceChunkingConfig / TokenChunkingConfig - algorithm parameters
2. ChunkMetadata - source ranges, overlap back-reference, page span
3. Chunk - a single retrievable unit of text (+ optional embedding)
4. ChunkFile - the persisted per-document chunk file
5. ChunkingResult / ChunkingStats / ValidationReport - chunker output

Design Principles:
- Pydantic v2 for validation and serialization
- Python attributes are snake_case; JSON is camelCase (overlapWith,
  chunkCount, ...) through an alias generator
- Save/load pattern on the persisted file

Usage:
    chunk_file = ChunkFile.from_chunks("report.pdf", "token-based", chunks)
    chunk_file.save("data/projects/demo/1700000000000_report.pdf.json")
"""

import json
import math
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ChunkType(str, Enum):
    """How a chunk was produced."""
    PARAGRAPH = "paragraph"
    MERGED_PARAGRAPH = "merged_paragraph"
    SLIDING_WINDOW = "sliding_window"
    TOKEN = "token"


class ChunkingStrategy(str, Enum):
    PARAGRAPH = "paragraph-based"
    TOKEN = "token-based"


# =============================================================================
# Configuration
# =============================================================================


class SentenceChunkingConfig(BaseModel):
    """
    Parameters of the hybrid sentence chunker.

    Paragraphs with up to ``buffer_max_sentences`` sentences are buffered
    into the next paragraph, up to ``intact_max_sentences`` become one chunk,
    longer ones are windowed.
    """
    window_size: int = Field(8, description="Sentences per sliding window", ge=1)
    overlap: int = Field(2, description="Sentences shared by consecutive windows", ge=0)
    buffer_max_sentences: int = Field(2, description="Paragraphs this small are buffered", ge=0)
    intact_max_sentences: int = Field(7, description="Paragraphs up to this size stay intact", ge=1)
    min_fragment_chars: int = Field(40, description="Shorter paragraphs are fragments", ge=0)
    min_chunk_chars: int = Field(50, description="Repaired chunks shorter than this are dropped", ge=1)
    chars_per_token: int = Field(4, description="Characters per estimated token", ge=1)

    @property
    def step(self) -> int:
        return self.window_size - self.effective_overlap

    @property
    def effective_overlap(self) -> int:
        """Configured overlap, or 0 when it would leave a step below 1."""
        if self.window_size - self.overlap < 1:
            return 0
        return self.overlap

    def model_post_init(self, __context: Any) -> None:
        if self.buffer_max_sentences >= self.intact_max_sentences:
            raise ValueError(
                f"buffer_max_sentences ({self.buffer_max_sentences}) must be less than "
                f"intact_max_sentences ({self.intact_max_sentences})"
            )


class TokenChunkingConfig(BaseModel):
    """
    Parameters of the token chunker.

    Token counts are estimated from characters (``chars_per_token``).
    """
    target_tokens: int = Field(1000, description="Desired chunk size in tokens", ge=1)
    max_tokens: int = Field(1200, description="Boundary snapping never exceeds this", ge=1)
    min_tokens: int = Field(600, description="Minimum size of a non-sole chunk", ge=0)
    overlap_tokens: int = Field(300, description="Tokens shared by consecutive chunks", ge=0)
    chars_per_token: int = Field(4, description="Characters per estimated token", ge=1)
    boundary_search_chars: int = Field(
        200,
        description="Half-width of the window searched for a sentence-like break",
        ge=0,
    )
    snap_threshold: float = Field(
        0.8,
        description="A break is used only past this fraction of the window",
        ge=0.0,
        le=1.0,
    )
    min_advance_ratio: float = Field(
        0.25,
        description="Minimum advance per chunk as a fraction of target chars",
        gt=0.0,
        le=1.0,
    )
    repair_boundaries: bool = Field(
        False,
        description="Run boundary repair on token chunks (may drop text)",
    )

    @property
    def target_chars(self) -> int:
        return self.target_tokens * self.chars_per_token

    @property
    def max_chars(self) -> int:
        return self.max_tokens * self.chars_per_token

    @property
    def overlap_chars(self) -> int:
        return self.overlap_tokens * self.chars_per_token

    @property
    def min_advance_chars(self) -> int:
        return max(1, math.ceil(self.target_chars * self.min_advance_ratio))

    def model_post_init(self, __context: Any) -> None:
        if not self.min_tokens <= self.target_tokens <= self.max_tokens:
            raise ValueError(
                f"Expected min_tokens ({self.min_tokens}) <= target_tokens "
                f"({self.target_tokens}) <= max_tokens ({self.max_tokens})"
            )
        if self.overlap_tokens >= self.target_tokens:
            raise ValueError(
                f"overlap_tokens ({self.overlap_tokens}) must be less than "
                f"target_tokens ({self.target_tokens})"
            )


class ChunkingConfig(BaseModel):
    """Configuration for both chunking strategies."""
    sentence: SentenceChunkingConfig = Field(default_factory=SentenceChunkingConfig)
    token: TokenChunkingConfig = Field(default_factory=TokenChunkingConfig)


# =============================================================================
# Chunks
# =============================================================================


class PageRange(CamelModel):
    """Character range [start_char, end_char) of one page in extracted text."""
    page: int = Field(..., ge=1)
    start_char: int = Field(..., ge=0)
    end_char: int = Field(..., ge=0)


class ChunkMetadata(CamelModel):
    """Source ranges and navigation data attached to each chunk."""
    chunk_index: int = Field(..., description="Position within the document (0-indexed)", ge=0)
    paragraph_start: Optional[int] = Field(None, description="First source paragraph index")
    paragraph_end: Optional[int] = Field(None, description="Last source paragraph index")
    sentence_start: Optional[int] = Field(None, description="First sentence index within the document")
    sentence_end: Optional[int] = Field(None, description="Last sentence index within the document")
    char_start: int = Field(0, description="Start offset in the chunked text", ge=0)
    char_end: int = Field(0, description="End offset in the chunked text", ge=0)
    token_start: Optional[int] = Field(None, description="Estimated token start (token chunks)")
    token_end: Optional[int] = Field(None, description="Estimated token end (token chunks)")
    overlap_with: Optional[str] = Field(None, description="ID of the chunk this one overlaps")
    page_start: Optional[int] = Field(None, description="First page the chunk spans")
    page_end: Optional[int] = Field(None, description="Last page the chunk spans")
    pages_spanned: Optional[list[int]] = Field(None, description="All pages the chunk spans")
    token_count: int = Field(0, description="Estimated token count", ge=0)
    source_file: Optional[str] = Field(None, description="Original file name")


class Chunk(CamelModel):
    """A single chunk of document text, ready for embedding and storage."""
    id: str = Field(..., description="Unique within a document ({document_id}_chunk_{index:04d})")
    text: str = Field(..., description="The chunk text", min_length=1)
    type: ChunkType = Field(..., description="How the chunk was produced")
    metadata: ChunkMetadata
    embedding: Optional[list[float]] = Field(None, description="Embedding vector, attached after chunking")

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)


class ChunkFile(CamelModel):
    """
    Persisted chunks of one uploaded document.

    Shape: ``{originalFilename, uploadedAt, chunkingStrategy, chunkCount, chunks}``.
    """
    original_filename: str
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    chunking_strategy: ChunkingStrategy
    chunk_count: int = Field(0, ge=0)
    chunks: list[Chunk] = Field(default_factory=list)

    @classmethod
    def from_chunks(
        cls,
        original_filename: str,
        strategy: ChunkingStrategy,
        chunks: list[Chunk],
    ) -> "ChunkFile":
        return cls(
            original_filename=original_filename,
            chunking_strategy=strategy,
            chunk_count=len(chunks),
            chunks=chunks,
        )

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    def save(self, path: str) -> None:
        """Save the chunk file as JSON."""
        Path(path).write_text(self.to_json(), encoding="utf-8")

    @classmethod
    def load(cls, path: str) -> "ChunkFile":
        """Load a chunk file from JSON."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(data)


# =============================================================================
# Chunker output
# =============================================================================


class ChunkingStats(CamelModel):
    """Statistics about a list of chunks."""
    total_chunks: int = 0
    total_characters: int = 0
    average_chunk_size: int = 0
    min_chunk_size: int = 0
    max_chunk_size: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)


class ValidationIssue(CamelModel):
    chunk_id: str
    chunk_index: int
    issue: str
    severity: str
    text: Optional[str] = None
    length: Optional[int] = None


class ValidationReport(CamelModel):
    total_chunks: int
    issue_count: int
    issues: list[ValidationIssue] = Field(default_factory=list)
    by_severity: dict[str, int] = Field(default_factory=dict)
    report: str = ""
    is_valid: bool = True


class ChunkingResult(CamelModel):
    """Complete output of chunking one document."""
    document_id: str
    source_file: str = ""
    strategy: ChunkingStrategy
    chunks: list[Chunk] = Field(default_factory=list)
    stats: ChunkingStats = Field(default_factory=ChunkingStats)
    dropped_chunks: int = Field(0, description="Candidates discarded by boundary repair")

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)

    def get_chunk_by_id(self, chunk_id: str) -> Optional[Chunk]:
        """Find a chunk by its ID."""
        for chunk in self.chunks:
            if chunk.id == chunk_id:
                return chunk
        return None

    def to_chunk_file(self, original_filename: Optional[str] = None) -> ChunkFile:
        return ChunkFile.from_chunks(
            original_filename or self.source_file or self.document_id,
            self.strategy,
            self.chunks,
        )


# =============================================================================
# API models
# =============================================================================


class ChunkTextRequest(CamelModel):
    text: str = Field(..., description="Raw extracted text")
    strategy: ChunkingStrategy = ChunkingStrategy.PARAGRAPH
    filename: str = Field("document.txt", description="Original file name")
    page_ranges: Optional[list[PageRange]] = None


class ChunkResponse(CamelModel):
    document_id: str
    total_chunks: int
    dropped_chunks: int
    stats: ChunkingStats
    chunks: list[Chunk]


# =============================================================================
# Projects
# =============================================================================


class FileEntry(CamelModel):
    """A chunk file registered in a project."""
    file_name: str
    original_name: str
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ProjectMetadata(CamelModel):
    """Contents of a project's metadata.json."""
    project_name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    files: list[FileEntry] = Field(default_factory=list)
    last_queried: Optional[datetime] = None
    total_chunks: int = 0
