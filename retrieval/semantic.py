"""
Semantic retrieval over embedded chunks.

Steps:
1. Keep only chunks that carry an embedding.
2. Greedy, order-preserving near-duplicate removal: a chunk is kept when its
   cosine similarity to every already kept chunk is <= ``dedup_threshold``.
3. Score each survivor by cosine similarity to the question embedding,
   sort descending, return the top K.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from chunking.storage import StoredChunk

from .exceptions import RetrievalPreconditionError
from .models import RetrievalResult
from .similarity import cosine_similarity

logger = logging.getLogger(__name__)

DEFAULT_DEDUP_THRESHOLD = 0.85
MAX_TOP_K = 50


def validate_top_k(top_k: int) -> None:
    if not 1 <= top_k <= MAX_TOP_K:
        raise RetrievalPreconditionError(f"top_k must be between 1 and {MAX_TOP_K}, got {top_k}")


def deduplicate(
    chunks: Sequence[StoredChunk],
    threshold: float = DEFAULT_DEDUP_THRESHOLD,
) -> list[StoredChunk]:
    """Drop chunks whose embedding is too close to an earlier kept chunk."""
    kept: list[StoredChunk] = []
    for candidate in chunks:
        embedding = candidate.chunk.embedding
        if not embedding:
            continue
        if all(cosine_similarity(embedding, k.chunk.embedding) <= threshold for k in kept):
            kept.append(candidate)
    removed = len(chunks) - len(kept)
    if removed:
        logger.debug(f"Deduplication removed {removed} of {len(chunks)} chunks")
    return kept


class SemanticRetriever:
    def __init__(self, dedup_threshold: float = DEFAULT_DEDUP_THRESHOLD):
        self.dedup_threshold = dedup_threshold
        self.last_deduplicated: Optional[int] = None

    def search(
        self,
        query_embedding: Sequence[float],
        chunks: Sequence[StoredChunk],
        top_k: int,
        enforce_limit: bool = True,
    ) -> list[RetrievalResult]:
        results, unique = self.rank(query_embedding, chunks, top_k, enforce_limit)
        self.last_deduplicated = unique
        return results

    def rank(
        self,
        query_embedding: Sequence[float],
        chunks: Sequence[StoredChunk],
        top_k: int,
        enforce_limit: bool = True,
    ) -> tuple[list[RetrievalResult], int]:
        """
        Rank embedded chunks by similarity to ``query_embedding``.

        Returns the top results and the number of chunks left after
        deduplication. ``enforce_limit=False`` skips the 1-50 check for
        internal callers (the hybrid search asks for a wider semantic pool).
        """
        if enforce_limit:
            validate_top_k(top_k)
        elif top_k < 1:
            raise RetrievalPreconditionError(f"top_k must be positive, got {top_k}")
        if not query_embedding:
            raise RetrievalPreconditionError("Question embedding is empty")

        embedded = [c for c in chunks if c.chunk.has_embedding]
        if not embedded:
            raise RetrievalPreconditionError(
                "No embedded chunks available",
                details=f"{len(chunks)} chunks without embeddings",
            )

        unique = deduplicate(embedded, self.dedup_threshold)

        scored = [
            RetrievalResult(
                chunk=c.chunk,
                document_id=c.document_id,
                source_file=c.source_file,
                score=cosine_similarity(query_embedding, c.chunk.embedding),
                match_type="semantic",
            )
            for c in unique
        ]
        scored.sort(key=lambda r: r.score, reverse=True)
        results = scored[:min(top_k, len(scored))]
        logger.info(
            f"Semantic search: {len(results)} of {len(unique)} unique chunks "
            f"({len(embedded)} embedded)"
        )
        return results, len(unique)
