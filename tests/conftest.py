"""
Pytest fixtures shared across the chunking, retrieval, generation and
ingestion tests.
"""

from typing import Optional

import pytest

from chunking.cancellation import checkpoint
from chunking.config import ChunkingServiceConfig
from chunking.models import Chunk, ChunkFile, ChunkingStrategy, ChunkMetadata, ChunkType
from chunking.service import ChunkingService
from chunking.storage import ProjectStore, StoredChunk


# ---------------------------------------------------------------------------
# Sample text
# ---------------------------------------------------------------------------

CASE_NOTES = (
    "The claimant injured her back at the warehouse in March. "
    "She reported the injury to her supervisor the same day. "
    "The employer filed a first report of injury two days later.\n\n"
    "The insurer denied the claim in April after reviewing the medical records. "
    "The denial letter cited a lack of objective findings. "
    "The claimant appealed the denial within thirty days."
)


@pytest.fixture
def case_notes():
    return CASE_NOTES


# ---------------------------------------------------------------------------
# Chunks
# ---------------------------------------------------------------------------


def build_chunk(
    chunk_id: str,
    text: str,
    embedding: Optional[list[float]] = None,
    index: int = 0,
) -> Chunk:
    return Chunk(
        id=chunk_id,
        text=text,
        type=ChunkType.PARAGRAPH,
        metadata=ChunkMetadata(chunk_index=index, char_start=0, char_end=len(text)),
        embedding=embedding,
    )


@pytest.fixture
def make_chunk():
    """Factory for chunks: make_chunk(id, text, embedding=None, index=0)."""
    return build_chunk


@pytest.fixture
def make_stored():
    """Factory for stored chunks: make_stored(document_id, id, text, embedding=None)."""
    def _make(document_id: str, chunk_id: str, text: str, embedding=None) -> StoredChunk:
        return StoredChunk(
            document_id=document_id,
            source_file=f"{document_id}.txt",
            chunk=build_chunk(chunk_id, text, embedding),
        )
    return _make


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@pytest.fixture
def project_store(tmp_path):
    return ProjectStore(str(tmp_path / "projects"))


@pytest.fixture
def chunking_service(tmp_path):
    return ChunkingService(ChunkingServiceConfig(data_dir=str(tmp_path / "projects")))


@pytest.fixture
def populated_store(project_store):
    """Project 'case' with one embedded notes file (three chunks) and one unembedded chunk."""
    project_store.create_project("case")
    chunks = [
        build_chunk("notes_chunk_0000", "The claim was denied in March 2020 after review.", [1.0, 0.0, 0.0], 0),
        build_chunk("notes_chunk_0001", "The claimant appealed the denial in April.", [0.0, 1.0, 0.0], 1),
        build_chunk("notes_chunk_0002", "Medical notes describe chronic back pain.", [0.0, 0.0, 1.0], 2),
        build_chunk("notes_chunk_0003", "Back pain was noted again at the follow-up visit.", None, 3),
    ]
    project_store.save_document(
        "case",
        ChunkFile.from_chunks("notes.txt", ChunkingStrategy.PARAGRAPH, chunks),
    )
    return project_store


# ---------------------------------------------------------------------------
# Embedding
# ---------------------------------------------------------------------------


class FakeEmbedder:
    """Deterministic stand-in for OllamaEmbedder."""

    def __init__(self, query_embedding: Optional[list[float]] = None, dimensions: int = 3):
        self.query_embedding = query_embedding or [1.0, 0.5, 0.0]
        self.dimensions = dimensions
        self.embedded: list[str] = []

    def embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")
        self.embedded.append(text)
        return list(self.query_embedding)

    def embed_batch(self, texts, on_progress=None, cancel_token=None, batch_size=None):
        vectors = []
        for i, text in enumerate(texts, start=1):
            checkpoint(cancel_token, "embedding")
            vectors.append([float(i)] + [0.0] * (self.dimensions - 1) if text.strip() else [])
            if on_progress:
                on_progress(i, len(texts), round(i / len(texts) * 100))
        return vectors

    def health_check(self) -> dict:
        return {"healthy": True, "ollama_running": True, "model_available": True, "model": "fake", "error": ""}


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()
