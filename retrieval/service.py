import logging
from typing import Callable, Optional, Sequence

from chunking.storage import ProjectStore, StoredChunk
from chunking.token_counter import count_tokens

from . import keyword_search
from .config import RetrievalConfig
from .embedder import OllamaEmbedder
from .exceptions import RetrievalPreconditionError
from .hybrid import merge_hybrid
from .models import RetrievalMode, RetrievalResponse, RetrievalResult, RetrievalStats
from .semantic import SemanticRetriever, validate_top_k
from .storage import ChunkStore

logger = logging.getLogger(__name__)

TermExtractor = Callable[[str], list[str]]


class RetrievalService:
    def __init__(
        self,
        config: RetrievalConfig | None = None,
        embedder: Optional[OllamaEmbedder] = None,
        extract_terms: Optional[TermExtractor] = None,
        projects: Optional[ProjectStore] = None,
    ):
        self.config = config or RetrievalConfig()
        self.embedder = embedder or OllamaEmbedder(
            model=self.config.embedding_model,
            base_url=self.config.ollama_base_url,
            batch_size=self.config.embedding_batch_size,
            max_retries=self.config.embedding_max_retries,
            retry_delay=self.config.embedding_retry_delay,
        )
        self.extract_terms = extract_terms or keyword_search.fallback_keywords
        self.projects = projects or ProjectStore(self.config.data_dir)
        self.store = ChunkStore(self.projects)
        self.semantic = SemanticRetriever(self.config.dedup_threshold)
        self.last_stats: Optional[RetrievalStats] = None

    def retrieve(
        self,
        project: str,
        query: str,
        top_k: int = 5,
        mode: RetrievalMode = "hybrid",
        keywords: Optional[list[str]] = None,
    ) -> RetrievalResponse:
        if not query or not query.strip():
            raise RetrievalPreconditionError("Question cannot be empty")
        validate_top_k(top_k)

        chunks = self.store.load_chunks(project)
        deduplicated: Optional[int] = None
        if mode == "semantic":
            results, deduplicated = self._rank_semantic(query, chunks, top_k)
        elif mode == "keyword":
            results = self.retrieve_keyword(query, chunks, keywords)[:top_k]
        elif mode == "hybrid":
            results, deduplicated = self._rank_hybrid(query, chunks, keywords)
        else:
            raise RetrievalPreconditionError(f"Unsupported retrieval mode: {mode}")

        stats = self._stats(mode, chunks, results, deduplicated)
        self.last_stats = stats
        self.projects.touch_last_queried(project)
        context = build_context(results, self.config.max_context_tokens)
        return RetrievalResponse(
            query=query,
            mode=mode,
            results=results,
            context_text=context,
            stats=stats,
        )

    def retrieve_semantic(
        self,
        query: str,
        chunks: Sequence[StoredChunk],
        top_k: int,
        enforce_limit: bool = True,
    ) -> list[RetrievalResult]:
        return self._rank_semantic(query, chunks, top_k, enforce_limit)[0]

    def retrieve_keyword(
        self,
        query: str,
        chunks: Sequence[StoredChunk],
        keywords: Optional[list[str]] = None,
    ) -> list[RetrievalResult]:
        terms = keywords if keywords else self.extract_terms(query)
        logger.info(f"Keyword terms: {terms}")
        return keyword_search.search(terms, chunks)

    def retrieve_hybrid(
        self,
        query: str,
        chunks: Sequence[StoredChunk],
        keywords: Optional[list[str]] = None,
    ) -> list[RetrievalResult]:
        return self._rank_hybrid(query, chunks, keywords)[0]

    def _rank_semantic(
        self,
        query: str,
        chunks: Sequence[StoredChunk],
        top_k: int,
        enforce_limit: bool = True,
    ) -> tuple[list[RetrievalResult], int]:
        query_embedding = self.embedder.embed(query)
        return self.semantic.rank(query_embedding, chunks, top_k, enforce_limit=enforce_limit)

    def _rank_hybrid(
        self,
        query: str,
        chunks: Sequence[StoredChunk],
        keywords: Optional[list[str]] = None,
    ) -> tuple[list[RetrievalResult], int]:
        semantic, deduplicated = self._rank_semantic(
            query, chunks, self.config.hybrid_semantic_pool, enforce_limit=False,
        )
        keyword = self.retrieve_keyword(query, chunks, keywords)
        merged = merge_hybrid(semantic, keyword)
        logger.info(
            f"Hybrid search: {len(semantic)} semantic + "
            f"{len(merged) - len(semantic)} additional keyword results"
        )
        return merged, deduplicated

    def _stats(
        self,
        mode: RetrievalMode,
        chunks: Sequence[StoredChunk],
        results: list[RetrievalResult],
        deduplicated: Optional[int] = None,
    ) -> RetrievalStats:
        scores = [r.score for r in results]
        return RetrievalStats(
            search_type=mode,
            total_chunks=len(chunks),
            deduplicated_chunks=deduplicated,
            semantic_results=sum(1 for r in results if r.match_type == "semantic"),
            keyword_results=sum(1 for r in results if r.match_type == "keyword"),
            retrieved_chunks=len(results),
            average_score=round(sum(scores) / len(scores), 3) if scores else None,
            max_score=max(scores) if scores else None,
            min_score=min(scores) if scores else None,
        )


def build_context(results: list[RetrievalResult], max_tokens: Optional[int] = None) -> str:
    """``[n] text`` blocks in retrieval order, joined by blank lines."""
    if not results:
        return ""
    parts: list[str] = []
    token_count = 0
    for n, result in enumerate(results, start=1):
        block = f"[{n}] {result.chunk.text.strip()}"
        if max_tokens is not None:
            block_tokens = count_tokens(block)
            if token_count + block_tokens > max_tokens:
                if not parts:
                    parts.append(block)
                break
            token_count += block_tokens
        parts.append(block)
    return "\n\n".join(parts)
