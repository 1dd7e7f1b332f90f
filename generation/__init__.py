"""
Generation component for RAG pipelines.

Extracts search keywords from questions, assembles numbered context from
retrieved chunks and produces record-first answers through Ollama.
"""

__version__ = "1.0.0"

from .config import GenerationConfig
from .context_builder import ContextBuildResult, build_context
from .keywords import KeywordExtractor, flatten_terms
from .models import AskRequest, AskResponse, Keyword, KeywordExtraction, SourceChunk
from .prompts import ANSWER_SYSTEM_PROMPT
from .service import AnswerService

__all__ = [
    "__version__",
    "GenerationConfig",
    "ContextBuildResult",
    "build_context",
    "KeywordExtractor",
    "flatten_terms",
    "AskRequest",
    "AskResponse",
    "Keyword",
    "KeywordExtraction",
    "SourceChunk",
    "ANSWER_SYSTEM_PROMPT",
    "AnswerService",
]
