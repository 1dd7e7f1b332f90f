from chunking.exceptions import ProjectNotFoundError
from chunking.storage import ProjectStore, StoredChunk

from .exceptions import RetrievalPreconditionError
from .models import DocumentSummary


class ChunkStore:
    """Read-only view of a project's persisted chunks for retrieval."""

    def __init__(self, projects: ProjectStore):
        self.projects = projects

    def load_chunks(self, project: str) -> list[StoredChunk]:
        try:
            return self.projects.load_chunks(project)
        except ProjectNotFoundError as exc:
            raise RetrievalPreconditionError(str(exc)) from exc

    def list_documents(self, project: str) -> list[DocumentSummary]:
        try:
            chunk_files = self.projects.load_chunk_files(project)
        except ProjectNotFoundError as exc:
            raise RetrievalPreconditionError(str(exc)) from exc
        return [
            DocumentSummary(
                document_id=document_id,
                original_name=chunk_file.original_filename,
                chunk_count=chunk_file.chunk_count,
                embedded_chunks=sum(1 for c in chunk_file.chunks if c.has_embedding),
            )
            for document_id, chunk_file in chunk_files
        ]
