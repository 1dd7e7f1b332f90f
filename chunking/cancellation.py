"""
Cooperative cancellation for long-running chunking and embedding loops.

A ``CancellationToken`` is created by the caller and passed explicitly into
every long-running call. Loops call ``checkpoint()`` once per iteration or
batch; it raises ``OperationCancelled`` once the token is set and otherwise
yields the GIL so other threads (a server loop, a progress reader) keep
running.

Usage:
    token = CancellationToken()
    dispatcher.submit(..., cancel_token=token)
    token.cancel()   # from any thread
"""

from __future__ import annotations

import threading
import time
from typing import Optional

from .exceptions import OperationCancelled


class CancellationToken:
    """Thread-safe cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; True when woken by cancellation."""
        return self._event.wait(timeout)

    def checkpoint(self, operation: str = "operation") -> None:
        """Raise OperationCancelled if cancelled, else yield to other threads."""
        if self._event.is_set():
            raise OperationCancelled(operation, self.reason)
        time.sleep(0)


def checkpoint(token: Optional[CancellationToken], operation: str = "operation") -> None:
    """``token.checkpoint()`` that tolerates a missing token."""
    if token is not None:
        token.checkpoint(operation)
