"""
Exceptions for retrieval.

Exception Hierarchy:
    RetrievalError (base)
    ├── RetrievalPreconditionError  - nothing to search, empty question, bad top_k
    └── EmbeddingError              - embedding failed after all retries
"""

from __future__ import annotations

from typing import Optional


class RetrievalError(Exception):
    """
    Base exception for retrieval errors.

    Attributes:
        message: Human-readable error description
        details: Additional technical details (optional)
    """

    def __init__(
        self,
        message: str = "A retrieval error occurred",
        details: Optional[str] = None,
    ):
        self.message = message
        self.details = details

        full_message = message
        if details:
            full_message = f"{message} | Details: {details}"

        super().__init__(full_message)


class RetrievalPreconditionError(RetrievalError):
    """Raised when a retrieval request cannot be served as given."""


class EmbeddingError(RetrievalError):
    """Raised when the embedding backend keeps failing."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        details: Optional[str] = None,
        attempts: int = 0,
    ):
        self.attempts = attempts
        super().__init__(message, details)
