"""
Exceptions for the chunking pipeline.

Exception Hierarchy:
    ChunkingError (base)
    ├── OperationCancelled
    └── StorageError
        └── ProjectNotFoundError

Bad or empty input is not an error here: chunkers return an empty list and
repair drops unusable candidates. Only cancellation interrupts a chunking run;
storage errors come from the project store.
"""

from __future__ import annotations

from typing import Optional


class ChunkingError(Exception):
    """
    Base exception for chunking errors.

    Attributes:
        message: Human-readable error description
        details: Additional technical details (optional)
    """

    def __init__(
        self,
        message: str = "A chunking error occurred",
        details: Optional[str] = None,
    ):
        self.message = message
        self.details = details

        full_message = message
        if details:
            full_message = f"{message} | Details: {details}"

        super().__init__(full_message)


class OperationCancelled(ChunkingError):
    """
    Raised when a cancellation token is set during a long-running operation.

    Distinct from failure: callers report it as "cancelled", not "error".
    """

    def __init__(self, operation: str = "operation", details: Optional[str] = None):
        self.operation = operation
        super().__init__(f"{operation} was cancelled", details)


class StorageError(ChunkingError):
    """Raised when a project or chunk file cannot be read or written."""


class ProjectNotFoundError(StorageError):
    def __init__(self, project: str):
        self.project = project
        super().__init__(f"Project not found: {project}")
