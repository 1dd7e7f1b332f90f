from dataclasses import dataclass
import os
from typing import Optional


@dataclass
class RetrievalConfig:
    data_dir: str = "data/projects"
    ollama_base_url: str = "http://localhost:11434"
    embedding_model: str = "nomic-embed-text"
    embedding_batch_size: int = 16
    embedding_max_retries: int = 3
    embedding_retry_delay: float = 1.0
    dedup_threshold: float = 0.85
    hybrid_semantic_pool: int = 100
    max_context_tokens: Optional[int] = None

    @classmethod
    def from_env(cls) -> "RetrievalConfig":
        def _int(name: str, default: int) -> int:
            value = os.environ.get(name)
            return int(value) if value else default

        def _float(name: str, default: float) -> float:
            value = os.environ.get(name)
            return float(value) if value else default

        max_context = os.environ.get("RETRIEVAL_MAX_CONTEXT_TOKENS")
        return cls(
            data_dir=os.environ.get("PROJECTS_DATA_DIR", cls.data_dir),
            ollama_base_url=os.environ.get("OLLAMA_BASE_URL", cls.ollama_base_url),
            embedding_model=os.environ.get("EMBEDDING_MODEL", cls.embedding_model),
            embedding_batch_size=_int("EMBEDDING_BATCH_SIZE", cls.embedding_batch_size),
            embedding_max_retries=_int("EMBEDDING_MAX_RETRIES", cls.embedding_max_retries),
            embedding_retry_delay=_float("EMBEDDING_RETRY_DELAY", cls.embedding_retry_delay),
            dedup_threshold=_float("RETRIEVAL_DEDUP_THRESHOLD", cls.dedup_threshold),
            hybrid_semantic_pool=_int("RETRIEVAL_HYBRID_POOL", cls.hybrid_semantic_pool),
            max_context_tokens=int(max_context) if max_context else None,
        )
