"""
Retrieval component for RAG pipelines.

Provides semantic (cosine + near-duplicate removal), keyword, and hybrid
retrieval over the chunks persisted in a project.
"""

__version__ = "1.0.0"

from .config import RetrievalConfig
from .service import RetrievalService, build_context
from .models import (
    DeviceInfo,
    DocumentSummary,
    KeywordMatch,
    KeywordSearchStats,
    QueryRequest,
    RetrievalResponse,
    RetrievalResult,
    RetrievalStats,
)
from .embedder import OllamaEmbedder
from .exceptions import EmbeddingError, RetrievalError, RetrievalPreconditionError
from .hybrid import merge_hybrid
from .keyword_search import fallback_keywords, search_stats, top_matched_keywords
from .semantic import SemanticRetriever, deduplicate
from .similarity import cosine_similarity

__all__ = [
    "__version__",
    "RetrievalConfig",
    "RetrievalService",
    "build_context",
    "DeviceInfo",
    "DocumentSummary",
    "KeywordMatch",
    "KeywordSearchStats",
    "QueryRequest",
    "RetrievalResponse",
    "RetrievalResult",
    "RetrievalStats",
    "OllamaEmbedder",
    "EmbeddingError",
    "RetrievalError",
    "RetrievalPreconditionError",
    "merge_hybrid",
    "fallback_keywords",
    "search_stats",
    "top_matched_keywords",
    "SemanticRetriever",
    "deduplicate",
    "cosine_similarity",
]
