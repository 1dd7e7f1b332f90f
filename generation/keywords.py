"""
Keyword extraction for literal search.

The model is asked for ``{"keywords": [{"term", "variations"}]}``. Output is
parsed leniently; when the model is unreachable or returns nothing usable,
content words of the question are used instead.
"""

from __future__ import annotations

import logging
from typing import Any

from retrieval.keyword_search import fallback_keywords, normalize_terms

from .config import GenerationConfig
from .json_utils import safe_parse_json
from .models import Keyword, KeywordExtraction
from .ollama_client import chat
from .prompts import KEYWORD_SCHEMA, KEYWORD_SYSTEM_PROMPT, KEYWORD_USER_TEMPLATE

logger = logging.getLogger(__name__)


def parse_keywords(payload: dict[str, Any]) -> list[Keyword]:
    """Keywords from a parsed model response; malformed entries are skipped."""
    raw = payload.get("keywords")
    if not isinstance(raw, list):
        return []
    keywords = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        term = item.get("term")
        if not isinstance(term, str) or not term.strip():
            continue
        variations = item.get("variations") or []
        if not isinstance(variations, list):
            variations = []
        keywords.append(Keyword(
            term=term.strip(),
            variations=[v.strip() for v in variations if isinstance(v, str) and v.strip()],
        ))
    return keywords


def flatten_terms(extraction: KeywordExtraction) -> list[str]:
    """Terms and variations, lower-cased and deduplicated."""
    terms: list[str] = []
    for keyword in extraction.keywords:
        terms.append(keyword.term)
        terms.extend(keyword.variations)
    return normalize_terms(terms)


class KeywordExtractor:
    def __init__(self, config: GenerationConfig | None = None):
        self.config = config or GenerationConfig.from_env()

    def extract(self, question: str) -> KeywordExtraction:
        if not question or not question.strip():
            raise ValueError("Question must be a non-empty string")

        try:
            content = chat(
                base_url=self.config.ollama_base_url,
                model=self.config.keyword_model,
                system_prompt=KEYWORD_SYSTEM_PROMPT,
                user_prompt=KEYWORD_USER_TEMPLATE.format(question=question.strip()),
                response_schema=KEYWORD_SCHEMA,
                temperature=self.config.keyword_temperature,
                output_tokens=256,
                timeout=30,
            )
        except (ConnectionError, RuntimeError) as exc:
            logger.warning(f"Keyword extraction failed, using fallback: {exc}")
            return self._fallback(question, error=str(exc))

        keywords = parse_keywords(safe_parse_json(content))
        if not keywords:
            logger.warning("No keywords in model response, using fallback")
            return self._fallback(question, error="Model returned no keywords")

        logger.info(f"Extracted {len(keywords)} keywords: {', '.join(k.term for k in keywords)}")
        return KeywordExtraction(keywords=keywords)

    def extract_terms(self, question: str) -> list[str]:
        return flatten_terms(self.extract(question))

    def _fallback(self, question: str, error: str) -> KeywordExtraction:
        words = fallback_keywords(question, limit=self.config.max_fallback_keywords)
        return KeywordExtraction(
            keywords=[Keyword(term=w) for w in words],
            error=error,
            fallback=True,
        )
