"""
Chunking Module - Document segmentation for retrieval

Turns extracted document text into bounded, sentence-aligned chunks:
header stripping, paragraph segmentation with fragment merging, a hybrid
sentence chunker (buffer / intact / sliding window), a token chunker for
page-extracted text, and boundary repair. Chunks are persisted per uploaded
document in a project directory.

Quick Start:
    from chunking import DocumentChunker, ChunkingStrategy

    chunker = DocumentChunker()
    result = chunker.chunk_text(text, document_id="brief")
    for chunk in result.chunks:
        print(chunk.id, chunk.type.value, chunk.text[:60])
"""

__version__ = "1.0.0"

from .boundary_repair import BoundaryRepairPipeline, repair_chunk
from .cancellation import CancellationToken
from .chunker import DocumentChunker, chunk_stats, make_document_id, validate_chunks
from .config import ChunkingServiceConfig
from .exceptions import ChunkingError, OperationCancelled, ProjectNotFoundError, StorageError
from .headers import strip_headers
from .models import (
    Chunk,
    ChunkFile,
    ChunkingConfig,
    ChunkingResult,
    ChunkingStats,
    ChunkingStrategy,
    ChunkMetadata,
    ChunkType,
    PageRange,
    SentenceChunkingConfig,
    TokenChunkingConfig,
)
from .paragraphs import fragment_reason, merge_fragments, split_paragraphs
from .sentence_chunker import HybridSentenceChunker
from .sentence_splitter import is_sentence_boundary, split_sentences
from .service import ChunkingService
from .storage import ProjectStore, StoredChunk
from .token_chunker import TokenChunker
from .token_counter import count_tokens, estimate_tokens

__all__ = [
    "__version__",
    "BoundaryRepairPipeline",
    "repair_chunk",
    "CancellationToken",
    "DocumentChunker",
    "chunk_stats",
    "make_document_id",
    "validate_chunks",
    "ChunkingServiceConfig",
    "ChunkingError",
    "OperationCancelled",
    "ProjectNotFoundError",
    "StorageError",
    "strip_headers",
    "Chunk",
    "ChunkFile",
    "ChunkingConfig",
    "ChunkingResult",
    "ChunkingStats",
    "ChunkingStrategy",
    "ChunkMetadata",
    "ChunkType",
    "PageRange",
    "SentenceChunkingConfig",
    "TokenChunkingConfig",
    "fragment_reason",
    "merge_fragments",
    "split_paragraphs",
    "HybridSentenceChunker",
    "is_sentence_boundary",
    "split_sentences",
    "ChunkingService",
    "ProjectStore",
    "StoredChunk",
    "TokenChunker",
    "count_tokens",
    "estimate_tokens",
]
