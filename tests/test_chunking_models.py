"""Tests for chunking.models — serialization and validation."""

import pytest
from pydantic import ValidationError

from chunking.models import (
    Chunk,
    ChunkFile,
    ChunkingResult,
    ChunkingStrategy,
    ChunkMetadata,
    ChunkType,
    ProjectMetadata,
)


@pytest.fixture
def chunk():
    return Chunk(
        id="brief_chunk_0001",
        text="The court granted the motion.",
        type=ChunkType.SLIDING_WINDOW,
        metadata=ChunkMetadata(
            chunk_index=1,
            sentence_start=6,
            sentence_end=8,
            char_start=120,
            char_end=149,
            overlap_with="brief_chunk_0000",
            token_count=7,
        ),
    )


class TestChunk:
    def test_camel_case_json(self, chunk):
        data = chunk.to_dict()
        assert data["type"] == "sliding_window"
        assert data["metadata"]["overlapWith"] == "brief_chunk_0000"
        assert data["metadata"]["chunkIndex"] == 1
        assert data["metadata"]["charStart"] == 120
        assert data["embedding"] is None

    def test_validate_from_camel_case(self, chunk):
        assert Chunk.model_validate(chunk.to_dict()) == chunk

    def test_populate_by_field_name(self):
        metadata = ChunkMetadata(chunk_index=0, overlap_with="x")
        assert metadata.overlap_with == "x"

    def test_empty_text_rejected(self):
        with pytest.raises(ValidationError):
            Chunk(id="c", text="", type=ChunkType.TOKEN, metadata=ChunkMetadata(chunk_index=0))

    def test_has_embedding(self, chunk):
        assert not chunk.has_embedding
        assert chunk.model_copy(update={"embedding": [0.1, 0.2]}).has_embedding


class TestChunkFile:
    def test_shape(self, chunk):
        chunk_file = ChunkFile.from_chunks("brief.pdf", ChunkingStrategy.TOKEN, [chunk])
        data = chunk_file.to_dict()
        assert set(data) == {"originalFilename", "uploadedAt", "chunkingStrategy", "chunkCount", "chunks"}
        assert data["chunkingStrategy"] == "token-based"
        assert data["chunkCount"] == 1

    def test_save_and_load(self, chunk, tmp_path):
        path = tmp_path / "brief.json"
        ChunkFile.from_chunks("brief.pdf", ChunkingStrategy.TOKEN, [chunk]).save(str(path))

        loaded = ChunkFile.load(str(path))
        assert loaded.original_filename == "brief.pdf"
        assert loaded.chunks == [chunk]

    def test_result_to_chunk_file(self, chunk):
        result = ChunkingResult(
            document_id="brief",
            source_file="brief.pdf",
            strategy=ChunkingStrategy.PARAGRAPH,
            chunks=[chunk],
        )
        chunk_file = result.to_chunk_file()
        assert chunk_file.original_filename == "brief.pdf"
        assert chunk_file.chunking_strategy == ChunkingStrategy.PARAGRAPH
        assert chunk_file.chunk_count == 1


class TestProjectMetadata:
    def test_defaults(self):
        metadata = ProjectMetadata(project_name="Case")
        data = metadata.to_dict()
        assert data["projectName"] == "Case"
        assert data["files"] == []
        assert data["lastQueried"] is None
        assert data["totalChunks"] == 0
