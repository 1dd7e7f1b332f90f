"""
Upload pipeline: extraction -> chunking -> embedding -> save.

Each stage failure is re-raised as ``UploadError`` naming the stage and
carrying what the earlier stages produced. Cancellation is checked between
and inside stages and propagates as ``OperationCancelled``.

Progress events are plain dicts, the payload of worker ``progress`` messages:

    {"type": "chunking_progress", "current": 10, "total": 42, "percentage": 24}

Usage:
    pipeline = UploadPipeline(ChunkingService(), OllamaEmbedder())
    result = pipeline.upload_file("case-42", "records/brief.pdf")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import logging
from typing import Any, Callable, Optional

from chunking.cancellation import CancellationToken, checkpoint
from chunking.exceptions import OperationCancelled
from chunking.models import ChunkingResult, ChunkingStrategy
from chunking.service import ChunkingService
from retrieval.embedder import OllamaEmbedder

from .exceptions import UploadError
from .extractors import ExtractedText, extract_document

logger = logging.getLogger(__name__)

ProgressEvent = dict[str, Any]
EventCallback = Callable[[ProgressEvent], None]


def progress_event(kind: str, current: int, total: int, percentage: int) -> ProgressEvent:
    return {"type": kind, "current": current, "total": total, "percentage": percentage}


@dataclass
class PartialUpload:
    """Results of the stages that completed before a failure."""
    extracted: Optional[ExtractedText] = None
    chunking: Optional[ChunkingResult] = None
    embeddings: list[list[float]] = field(default_factory=list)


@dataclass
class UploadResult:
    project: str
    file_name: str
    document_id: str
    original_filename: str
    chunking: ChunkingResult
    embedded_chunks: int

    @property
    def chunk_count(self) -> int:
        return self.chunking.total_chunks


class UploadPipeline:
    def __init__(
        self,
        chunking: ChunkingService,
        embedder: Optional[OllamaEmbedder] = None,
    ):
        self.chunking = chunking
        self.embedder = embedder

    def upload_file(
        self,
        project: str,
        path: str | Path,
        strategy: Optional[ChunkingStrategy] = None,
        cancel_token: Optional[CancellationToken] = None,
        on_event: Optional[EventCallback] = None,
    ) -> UploadResult:
        self.chunking.store.get_project(project)
        partial = PartialUpload()

        def _pages(current: int, total: int, percentage: int) -> None:
            if on_event:
                on_event(progress_event("pdf_extraction_progress", current, total, percentage))

        try:
            partial.extracted = extract_document(path, _pages, cancel_token)
        except OperationCancelled:
            raise
        except Exception as exc:
            raise UploadError("extraction", str(exc), partial) from exc

        return self._process(project, partial, strategy, cancel_token, on_event)

    def upload_text(
        self,
        project: str,
        text: str,
        filename: str,
        strategy: Optional[ChunkingStrategy] = None,
        cancel_token: Optional[CancellationToken] = None,
        on_event: Optional[EventCallback] = None,
    ) -> UploadResult:
        self.chunking.store.get_project(project)
        partial = PartialUpload(extracted=ExtractedText(text=text, source_file=filename))
        return self._process(project, partial, strategy, cancel_token, on_event)

    def _process(
        self,
        project: str,
        partial: PartialUpload,
        strategy: Optional[ChunkingStrategy],
        cancel_token: Optional[CancellationToken],
        on_event: Optional[EventCallback],
    ) -> UploadResult:
        extracted = partial.extracted

        def _chunks(current: int, total: int, percentage: int) -> None:
            if on_event:
                on_event(progress_event("chunking_progress", current, total, percentage))

        def _embeds(current: int, total: int, percentage: int) -> None:
            if on_event:
                on_event(progress_event("embedding_progress", current, total, percentage))

        try:
            checkpoint(cancel_token, "upload")
            result = self.chunking.chunk_text(
                extracted.text,
                extracted.source_file,
                strategy=strategy,
                page_ranges=extracted.page_ranges or None,
                cancel_token=cancel_token,
                on_progress=_chunks,
            )
        except OperationCancelled:
            raise
        except Exception as exc:
            raise UploadError("chunking", str(exc), partial) from exc
        partial.chunking = result
        logger.info(
            f"Chunked {extracted.source_file}: {result.total_chunks} chunks "
            f"({result.dropped_chunks} dropped)"
        )

        if self.embedder is not None and result.chunks:
            try:
                checkpoint(cancel_token, "upload")
                partial.embeddings = self.embedder.embed_batch(
                    [c.text for c in result.chunks],
                    on_progress=_embeds,
                    cancel_token=cancel_token,
                )
            except OperationCancelled:
                raise
            except Exception as exc:
                raise UploadError("embedding", str(exc), partial) from exc
            result.chunks = [
                chunk.model_copy(update={"embedding": embedding or None})
                for chunk, embedding in zip(result.chunks, partial.embeddings)
            ]

        try:
            checkpoint(cancel_token, "upload")
            file_name = self.chunking.store.save_document(
                project, result.to_chunk_file(extracted.source_file),
            )
        except OperationCancelled:
            raise
        except Exception as exc:
            raise UploadError("save", str(exc), partial) from exc

        embedded = sum(1 for c in result.chunks if c.has_embedding)
        logger.info(f"Uploaded {extracted.source_file} to '{project}' as {file_name}")
        return UploadResult(
            project=project,
            file_name=file_name,
            document_id=Path(file_name).stem,
            original_filename=extracted.source_file,
            chunking=result,
            embedded_chunks=embedded,
        )
