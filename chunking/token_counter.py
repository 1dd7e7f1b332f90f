"""
Token Counting for the Chunking Pipeline

Two measures are used:

- ``estimate_tokens``: a character proxy (``len(text) / chars_per_token``).
  Chunk sizes and the ``tokenCount`` metadata use this estimate so chunking
  stays deterministic and independent of any tokenizer.
- ``count_tokens``: tiktoken with the cl100k_base encoding, used where a
  real budget matters (LLM context assembly). cl100k_base tends to produce
  slightly higher counts than SentencePiece tokenizers, which gives a safe
  margin when the budget is a hard limit.

Usage:
    from chunking.token_counter import count_tokens, estimate_tokens

    n = count_tokens("The court granted the motion.")
    approx = estimate_tokens("The court granted the motion.")
"""

import tiktoken

DEFAULT_CHARS_PER_TOKEN = 4

# Singleton encoder - initialized once, reused across calls.
_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    """Get or initialize the tiktoken encoder (singleton)."""
    global _encoder
    if _encoder is None:
        _encoder = tiktoken.get_encoding("cl100k_base")
    return _encoder


def count_tokens(text: str) -> int:
    """
    Count the number of tokens in a text string.

    Args:
        text: The text to tokenize.

    Returns:
        Number of tokens.
    """
    if not text:
        return 0
    return len(_get_encoder().encode(text))


def count_tokens_batch(texts: list[str]) -> list[int]:
    """Count tokens for a list of texts, one count per input."""
    encoder = _get_encoder()
    return [len(encoder.encode(t)) if t else 0 for t in texts]


def estimate_tokens(text: str, chars_per_token: int = DEFAULT_CHARS_PER_TOKEN) -> int:
    """
    Estimate the token count of ``text`` from its length.

    Rounds to the nearest integer; empty text is 0 tokens.
    """
    if not text:
        return 0
    if chars_per_token < 1:
        raise ValueError(f"chars_per_token must be >= 1, got {chars_per_token}")
    return round(len(text) / chars_per_token)
