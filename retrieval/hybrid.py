from typing import Sequence

from .models import RetrievalResult


def merge_hybrid(
    semantic: Sequence[RetrievalResult],
    keyword: Sequence[RetrievalResult],
) -> list[RetrievalResult]:
    """Semantic results first, then keyword results whose chunk is not already present."""
    seen: set[tuple[str, str]] = set()
    merged: list[RetrievalResult] = []
    for result in list(semantic) + list(keyword):
        if result.identity in seen:
            continue
        seen.add(result.identity)
        merged.append(result)
    return merged
