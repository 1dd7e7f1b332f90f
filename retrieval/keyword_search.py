"""
Literal keyword search.

Terms are flattened, lower-cased and deduplicated; a chunk matches when its
lower-cased text contains at least one term. The score is the number of
distinct matched terms; results are ordered by that, then by total
occurrences, keeping chunk order for ties.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Sequence

from chunking.storage import StoredChunk

from .models import KeywordCount, KeywordMatch, KeywordSearchStats, RetrievalResult

logger = logging.getLogger(__name__)


def normalize_terms(terms: Iterable[str]) -> list[str]:
    """Lower-case, strip and deduplicate, preserving first occurrence order."""
    seen: dict[str, None] = {}
    for term in terms:
        cleaned = term.strip().lower() if term else ""
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def search(terms: Iterable[str], chunks: Sequence[StoredChunk]) -> list[RetrievalResult]:
    keywords = normalize_terms(terms)
    if not keywords:
        logger.warning("No keywords provided for search")
        return []

    results: list[tuple[int, RetrievalResult]] = []
    for stored in chunks:
        text = stored.chunk.text.lower()
        matches = [
            KeywordMatch(term=term, count=text.count(term))
            for term in keywords
            if term in text
        ]
        if not matches:
            continue
        total = sum(m.count for m in matches)
        results.append((total, RetrievalResult(
            chunk=stored.chunk,
            document_id=stored.document_id,
            source_file=stored.source_file,
            score=float(len(matches)),
            match_type="keyword",
            keyword_matches=matches,
        )))

    results.sort(key=lambda item: (item[1].score, item[0]), reverse=True)
    ordered = [r for _, r in results]
    logger.info(f"Keyword search: {len(ordered)} of {len(chunks)} chunks matched {len(keywords)} terms")
    top = top_matched_keywords(ordered)
    if top:
        logger.debug(f"Top matched keywords: {', '.join(top)}")
    return ordered


def _keyword_totals(results: Sequence[RetrievalResult]) -> dict[str, int]:
    totals: dict[str, int] = {}
    for result in results:
        for match in result.keyword_matches:
            term = match.term.lower()
            totals[term] = totals.get(term, 0) + match.count
    return totals


def top_matched_keywords(results: Sequence[RetrievalResult], limit: int = 5) -> list[str]:
    """Terms with the most occurrences across ``results``."""
    totals = _keyword_totals(results)
    return [term for term, _ in sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[:limit]]


def search_stats(results: Sequence[RetrievalResult]) -> KeywordSearchStats:
    if not results:
        return KeywordSearchStats()
    totals = _keyword_totals(results)
    top = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[:5]
    return KeywordSearchStats(
        total_matches=len(results),
        unique_keywords=len(totals),
        top_keywords=[KeywordCount(term=term, count=count) for term, count in top],
    )


STOP_WORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "but", "by", "for",
    "if", "in", "into", "is", "it", "no", "not", "of", "on", "or",
    "such", "that", "the", "to", "was", "will", "with", "what", "who",
    "when", "where", "why", "how", "can", "could", "would", "should",
    "do", "does", "did", "have", "has", "had", "am", "been", "being",
})

_NON_WORD_RE = re.compile(r"[^\w'-]")
_NUMBER_RE = re.compile(r"^\d+$")


def fallback_keywords(question: str, min_length: int = 3, limit: Optional[int] = None) -> list[str]:
    """Content words of ``question``: no stop words, no bare numbers, unique."""
    words = normalize_terms(
        _NON_WORD_RE.sub("", word)
        for word in question.lower().split()
    )
    keywords = [
        w for w in words
        if len(w) >= min_length and w not in STOP_WORDS and not _NUMBER_RE.match(w)
    ]
    return keywords[:limit] if limit is not None else keywords
