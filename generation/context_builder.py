from __future__ import annotations

from dataclasses import dataclass

from chunking.token_counter import count_tokens
from retrieval.models import RetrievalResult


@dataclass
class ContextBuildResult:
    context_text: str
    selected: list[RetrievalResult]
    available_tokens: int
    used_tokens: int


def chunk_block(number: int, result: RetrievalResult) -> str:
    return f"[{number}] {result.chunk.text.strip()}"


def build_context(
    question: str,
    results: list[RetrievalResult],
    max_context_tokens: int,
    system_prompt: str,
    user_template: str,
) -> ContextBuildResult:
    """
    Number the retrieved chunks and keep as many as fit the token budget.

    The budget is what remains of ``max_context_tokens`` after the system
    prompt and the empty user template. Chunks keep retrieval order; the
    first chunk that does not fit ends the context.
    """
    system_tokens = count_tokens(system_prompt)
    base_user = user_template.format(question=question, context="")
    base_tokens = count_tokens(base_user)

    available = max(max_context_tokens - system_tokens - base_tokens, 0)
    separator_tokens = count_tokens("\n\n")

    parts: list[str] = []
    selected: list[RetrievalResult] = []
    used = 0

    for number, result in enumerate(results, start=1):
        block = chunk_block(number, result)
        cost = count_tokens(block) + (separator_tokens if parts else 0)
        if cost <= available:
            parts.append(block)
            selected.append(result)
            available -= cost
            used += cost
            continue

        if not parts:
            # Nothing fits: keep a prefix of the best chunk.
            prefix = block[: max(200, int(len(block) * 0.5))]
            parts.append(prefix)
            selected.append(result)
            used += count_tokens(prefix)
        break

    return ContextBuildResult(
        context_text="\n\n".join(parts).strip(),
        selected=selected,
        available_tokens=available,
        used_tokens=used,
    )
