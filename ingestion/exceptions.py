"""
Exceptions for document ingestion.

Exception Hierarchy:
    IngestionError (base)
    ├── ExtractionError
    │   └── UnsupportedFileError
    └── UploadError        - names the failed upload stage, carries partial results

Cancellation is not an ingestion error: ``chunking.exceptions.OperationCancelled``
propagates unchanged so callers can report "cancelled" instead of "failed".
"""

from __future__ import annotations

from typing import Any, Optional

UPLOAD_STAGES = ("extraction", "chunking", "embedding", "save")


class IngestionError(Exception):
    """
    Base exception for ingestion errors.

    Attributes:
        message: Human-readable error description
        details: Additional technical details (optional)
    """

    def __init__(
        self,
        message: str = "An ingestion error occurred",
        details: Optional[str] = None,
    ):
        self.message = message
        self.details = details

        full_message = message
        if details:
            full_message = f"{message} | Details: {details}"

        super().__init__(full_message)


class ExtractionError(IngestionError):
    """Raised when text cannot be extracted from a file."""

    def __init__(self, path: str, message: str = "Text extraction failed", details: Optional[str] = None):
        self.path = path
        super().__init__(f"{message}: {path}", details)


class UnsupportedFileError(ExtractionError):
    def __init__(self, path: str, suffix: str):
        self.suffix = suffix
        super().__init__(path, f"Unsupported file type '{suffix or '(none)'}'")


class UploadError(IngestionError):
    """
    Raised when an upload fails at one of its stages.

    Attributes:
        stage: One of extraction, chunking, embedding, save
        partial: Results of the stages completed before the failure
    """

    def __init__(self, stage: str, message: str, partial: Any = None):
        if stage not in UPLOAD_STAGES:
            raise ValueError(f"Unknown upload stage: {stage}")
        self.stage = stage
        self.partial = partial
        super().__init__(f"Upload failed during {stage}: {message}")
