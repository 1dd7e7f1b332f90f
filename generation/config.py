from dataclasses import dataclass
import os

RETRIEVAL_MODES = ("semantic", "keyword", "hybrid")


@dataclass
class GenerationConfig:
    """Models, retrieval defaults and prompt budget for answering questions."""

    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.1:latest"
    keyword_model: str = "llama3.1:latest"
    retrieval_mode: str = "hybrid"
    top_k: int = 15
    max_context_tokens: int = 6144
    output_tokens: int = 1024
    temperature: float = 0.3
    keyword_temperature: float = 0.0
    max_fallback_keywords: int = 5

    def __post_init__(self) -> None:
        if self.retrieval_mode not in RETRIEVAL_MODES:
            raise ValueError(f"retrieval_mode must be one of {', '.join(RETRIEVAL_MODES)}")
        if self.top_k < 1:
            raise ValueError("top_k must be at least 1")
        if self.max_context_tokens < 0 or self.output_tokens < 1:
            raise ValueError("Token budgets must be positive")

    @property
    def context_window(self) -> int:
        """``num_ctx`` for answer requests: prompt budget plus answer tokens."""
        return self.max_context_tokens + self.output_tokens

    @classmethod
    def from_env(cls) -> "GenerationConfig":
        env = os.environ

        def _int(name: str, default: int) -> int:
            return int(env[name]) if env.get(name) else default

        def _float(name: str, default: float) -> float:
            return float(env[name]) if env.get(name) else default

        answer_model = env.get("OLLAMA_MODEL", cls.ollama_model)
        return cls(
            ollama_base_url=env.get("OLLAMA_BASE_URL", cls.ollama_base_url),
            ollama_model=answer_model,
            keyword_model=env.get("KEYWORD_MODEL", answer_model),
            retrieval_mode=env.get("GENERATION_RETRIEVAL_MODE", cls.retrieval_mode),
            top_k=_int("GENERATION_TOP_K", cls.top_k),
            max_context_tokens=_int("GENERATION_MAX_CONTEXT_TOKENS", cls.max_context_tokens),
            output_tokens=_int("GENERATION_OUTPUT_TOKENS", cls.output_tokens),
            temperature=_float("GENERATION_TEMPERATURE", cls.temperature),
            keyword_temperature=_float("KEYWORD_TEMPERATURE", cls.keyword_temperature),
            max_fallback_keywords=_int("KEYWORD_FALLBACK_LIMIT", cls.max_fallback_keywords),
        )
