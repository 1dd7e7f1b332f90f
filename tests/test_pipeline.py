"""Tests for ingestion.pipeline — extraction, chunking, embedding, save."""

from pathlib import Path

import pytest

from chunking.cancellation import CancellationToken
from chunking.exceptions import OperationCancelled, ProjectNotFoundError
from ingestion.exceptions import UploadError
from ingestion.pipeline import UploadPipeline


class FailingEmbedder:
    def embed_batch(self, texts, on_progress=None, cancel_token=None, batch_size=None):
        raise RuntimeError("Ollama is down")


@pytest.fixture
def service(chunking_service):
    chunking_service.store.create_project("case")
    return chunking_service


@pytest.fixture
def pipeline(service, fake_embedder):
    return UploadPipeline(service, fake_embedder)


class TestUploadText:
    def test_chunks_are_embedded_and_saved(self, pipeline, service, case_notes):
        events = []
        result = pipeline.upload_text("case", case_notes, "notes.txt", on_event=events.append)

        assert result.chunk_count == 2
        assert result.embedded_chunks == 2
        assert result.original_filename == "notes.txt"
        assert result.document_id == Path(result.file_name).stem

        stored = service.store.load_chunks("case")
        assert len(stored) == 2
        assert all(s.chunk.has_embedding for s in stored)

        kinds = {event["type"] for event in events}
        assert kinds == {"chunking_progress", "embedding_progress"}
        assert events[-1] == {"type": "embedding_progress", "current": 2, "total": 2, "percentage": 100}

    def test_without_embedder(self, service, case_notes):
        result = UploadPipeline(service).upload_text("case", case_notes, "notes.txt")
        assert result.embedded_chunks == 0
        assert result.chunk_count == 2

    def test_unknown_project(self, pipeline, case_notes):
        with pytest.raises(ProjectNotFoundError):
            pipeline.upload_text("missing", case_notes, "notes.txt")

    def test_embedding_failure(self, service, case_notes):
        pipeline = UploadPipeline(service, FailingEmbedder())

        with pytest.raises(UploadError) as exc_info:
            pipeline.upload_text("case", case_notes, "notes.txt")

        assert exc_info.value.stage == "embedding"
        assert exc_info.value.partial.chunking.total_chunks == 2
        assert "Ollama is down" in str(exc_info.value)
        assert service.store.list_documents("case") == []

    def test_cancelled(self, pipeline, service, case_notes):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelled):
            pipeline.upload_text("case", case_notes, "notes.txt", cancel_token=token)
        assert service.store.list_documents("case") == []


class TestUploadFile:
    def test_text_file(self, pipeline, tmp_path, case_notes):
        path = tmp_path / "notes.txt"
        path.write_text(case_notes, encoding="utf-8")

        result = pipeline.upload_file("case", path)

        assert result.original_filename == "notes.txt"
        assert result.file_name.endswith("_notes.txt.json")
        assert result.document_id == Path(result.file_name).stem

    def test_unsupported_file(self, pipeline, tmp_path):
        path = tmp_path / "notes.docx"
        path.write_bytes(b"PK")

        with pytest.raises(UploadError) as exc_info:
            pipeline.upload_file("case", path)
        assert exc_info.value.stage == "extraction"
        assert exc_info.value.partial.extracted is None


def test_unknown_stage_is_rejected():
    with pytest.raises(ValueError):
        UploadError("indexing", "boom")
