"""
Background task dispatcher for chunking and embedding.

A ``TaskDispatcher`` owns a thread pool. Each submitted request
``{type, data, id}`` gets its own message queue on which the worker posts
zero or more ``progress`` messages followed by exactly one terminal message
(``success``, ``error`` or ``cancelled``), each tagged with the request id.

Task types:
    extract_pdf    data: {path}                      -> {text, pageRanges, pageCount}
    chunk_text     data: {text, filename?}           -> ChunkingResult (paragraph-based)
    chunk_tokens   data: {text, filename?, pageRanges?} -> ChunkingResult (token-based)
    embed          data: {texts, batchSize?}         -> list of vectors

Usage:
    with TaskDispatcher(chunking=ChunkingService()) as dispatcher:
        handle = dispatcher.submit({"type": "chunk_text", "data": {"text": text}})
        for message in handle.messages():
            print(message.type, message.data)
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
import logging
import queue
import threading
import uuid
from typing import Any, Callable, Iterator, Optional

from chunking.cancellation import CancellationToken
from chunking.exceptions import OperationCancelled
from chunking.models import ChunkingStrategy, PageRange
from chunking.service import ChunkingService
from retrieval.embedder import OllamaEmbedder

from .extractors import extract_pdf

logger = logging.getLogger(__name__)

MAX_WORKERS = 8

Progress = Callable[[str, int, int, int], None]
Handler = Callable[[dict[str, Any], CancellationToken, Progress], Any]


class MessageType(str, Enum):
    PROGRESS = "progress"
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self is not MessageType.PROGRESS


@dataclass(frozen=True)
class TaskMessage:
    type: MessageType
    id: str
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "data": self.data, "id": self.id}


@dataclass
class TaskRequest:
    type: str
    data: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "TaskRequest":
        if "type" not in payload:
            raise ValueError("Task request needs a 'type'")
        return cls(
            type=payload["type"],
            data=payload.get("data") or {},
            id=payload.get("id") or str(uuid.uuid4()),
        )


class TaskHandle:
    """Caller's side of a submitted task."""

    def __init__(self, request: TaskRequest):
        self.request = request
        self.token = CancellationToken()
        self.queue: "queue.Queue[TaskMessage]" = queue.Queue()
        self.future: Optional[Future] = None

    @property
    def id(self) -> str:
        return self.request.id

    def cancel(self, reason: Optional[str] = None) -> None:
        self.token.cancel(reason)

    def messages(self, timeout: Optional[float] = None) -> Iterator[TaskMessage]:
        """Yield messages until (and including) the terminal one."""
        while True:
            message = self.queue.get(timeout=timeout)
            yield message
            if message.type.terminal:
                return

    def result(self, timeout: Optional[float] = None) -> TaskMessage:
        """Block until the terminal message and return it."""
        message = None
        for message in self.messages(timeout):
            pass
        return message


class TaskDispatcher:
    def __init__(
        self,
        chunking: Optional[ChunkingService] = None,
        embedder: Optional[OllamaEmbedder] = None,
        max_workers: int = 4,
    ):
        self.chunking = chunking or ChunkingService()
        self.embedder = embedder
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, min(max_workers, MAX_WORKERS)),
            thread_name_prefix="task-worker",
        )
        self._lock = threading.Lock()
        self._handles: dict[str, TaskHandle] = {}
        self._handlers: dict[str, Handler] = {
            "extract_pdf": self._extract_pdf,
            "chunk_text": self._chunk_text,
            "chunk_tokens": self._chunk_tokens,
            "embed": self._embed,
        }

    def __enter__(self) -> "TaskDispatcher":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()

    def submit(self, request: TaskRequest | dict[str, Any]) -> TaskHandle:
        if isinstance(request, dict):
            request = TaskRequest.from_dict(request)
        handle = TaskHandle(request)
        with self._lock:
            if request.id in self._handles:
                raise ValueError(f"Task id already in use: {request.id}")
            self._handles[request.id] = handle
        handle.future = self._executor.submit(self._run, handle)
        return handle

    def cancel(self, task_id: str) -> bool:
        """Cancel a running task. Returns False when the id is unknown or finished."""
        with self._lock:
            handle = self._handles.get(task_id)
        if handle is None:
            return False
        handle.cancel("cancelled by caller")
        return True

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            handles = list(self._handles.values())
        if not wait:
            for handle in handles:
                handle.cancel("dispatcher shutdown")
        self._executor.shutdown(wait=wait)

    def _run(self, handle: TaskHandle) -> None:
        request = handle.request

        def post(msg_type: MessageType, data: Any = None) -> None:
            handle.queue.put(TaskMessage(type=msg_type, id=request.id, data=data))

        def progress(kind: str, current: int, total: int, percentage: int) -> None:
            post(MessageType.PROGRESS, {
                "type": kind,
                "current": current,
                "total": total,
                "percentage": percentage,
            })

        try:
            handler = self._handlers.get(request.type)
            if handler is None:
                raise ValueError(f"Unknown task type: {request.type}")
            handle.token.checkpoint(request.type)
            post(MessageType.SUCCESS, handler(request.data, handle.token, progress))
        except OperationCancelled as exc:
            logger.info(f"Task {request.id} ({request.type}) cancelled")
            post(MessageType.CANCELLED, {"message": str(exc)})
        except Exception as exc:
            logger.error(f"Task {request.id} ({request.type}) failed: {exc}")
            post(MessageType.ERROR, {"message": str(exc)})
        finally:
            with self._lock:
                self._handles.pop(request.id, None)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _extract_pdf(self, data: dict[str, Any], token: CancellationToken, progress: Progress) -> Any:
        extracted = extract_pdf(
            data["path"],
            on_progress=lambda c, t, p: progress("pdf_extraction_progress", c, t, p),
            cancel_token=token,
        )
        return {
            "text": extracted.text,
            "pageRanges": [r.to_dict() for r in extracted.page_ranges],
            "pageCount": extracted.page_count,
        }

    def _chunk(
        self,
        data: dict[str, Any],
        token: CancellationToken,
        progress: Progress,
        strategy: ChunkingStrategy,
    ) -> Any:
        page_ranges = [PageRange.model_validate(r) for r in data.get("pageRanges") or []]
        result = self.chunking.chunk_text(
            data["text"],
            data.get("filename") or "document.txt",
            strategy=strategy,
            page_ranges=page_ranges or None,
            cancel_token=token,
            on_progress=lambda c, t, p: progress("chunking_progress", c, t, p),
        )
        return result.to_dict()

    def _chunk_text(self, data: dict[str, Any], token: CancellationToken, progress: Progress) -> Any:
        return self._chunk(data, token, progress, ChunkingStrategy.PARAGRAPH)

    def _chunk_tokens(self, data: dict[str, Any], token: CancellationToken, progress: Progress) -> Any:
        return self._chunk(data, token, progress, ChunkingStrategy.TOKEN)

    def _embed(self, data: dict[str, Any], token: CancellationToken, progress: Progress) -> Any:
        if self.embedder is None:
            raise ValueError("No embedder configured")
        return self.embedder.embed_batch(
            data["texts"],
            on_progress=lambda c, t, p: progress("embedding_progress", c, t, p),
            cancel_token=token,
            batch_size=data.get("batchSize"),
        )
