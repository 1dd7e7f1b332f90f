from typing import Optional, Sequence

from .cancellation import CancellationToken
from .chunker import DocumentChunker, ProgressCallback, make_document_id, strategy_for_file
from .config import ChunkingServiceConfig
from .models import ChunkingResult, ChunkingStrategy, PageRange
from .storage import ProjectStore


class ChunkingService:
    def __init__(self, config: ChunkingServiceConfig | None = None):
        self.config = config or ChunkingServiceConfig()
        self.chunker = DocumentChunker(self.config.chunking)
        self.store = ProjectStore(self.config.data_dir)

    def chunk_text(
        self,
        text: str,
        filename: str,
        strategy: Optional[ChunkingStrategy] = None,
        page_ranges: Optional[Sequence[PageRange]] = None,
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ChunkingResult:
        return self.chunker.chunk_text(
            text,
            document_id=make_document_id(filename),
            strategy=strategy or strategy_for_file(filename),
            source_file=filename,
            page_ranges=page_ranges,
            cancel_token=cancel_token,
            on_progress=on_progress,
        )

    def chunk_and_save(
        self,
        project: str,
        text: str,
        filename: str,
        strategy: Optional[ChunkingStrategy] = None,
        page_ranges: Optional[Sequence[PageRange]] = None,
    ) -> tuple[ChunkingResult, str]:
        """Chunk a document without embeddings and store it in ``project``."""
        result = self.chunk_text(text, filename, strategy, page_ranges)
        file_name = self.store.save_document(project, result.to_chunk_file(filename))
        return result, file_name
