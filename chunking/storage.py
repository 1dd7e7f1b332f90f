"""
Project storage for chunk files.

Layout:
    {data_dir}/
        {project}/
            metadata.json
            {timestamp}_{sanitized filename}.json   one ChunkFile per upload

The document id of a chunk file is its file stem; together with a chunk id
it identifies a chunk across the project.
"""

import json
import logging
import re
import shutil
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .exceptions import ProjectNotFoundError, StorageError
from .models import Chunk, ChunkFile, FileEntry, ProjectMetadata

logger = logging.getLogger(__name__)

METADATA_FILE = "metadata.json"

_PROJECT_NAME_RE = re.compile(r"[^\w\s-]")
_FILENAME_RE = re.compile(r"[^\w.-]")


def sanitize_project_name(name: str) -> str:
    if not name or not name.strip():
        raise StorageError("Project name cannot be empty")
    sanitized = _PROJECT_NAME_RE.sub("", name.strip()).strip()
    if not sanitized:
        raise StorageError("Project name must contain valid characters", details=name)
    return sanitized


def chunk_file_name(original_filename: str, timestamp_ms: Optional[int] = None) -> str:
    """``{timestamp}_{sanitized name}.json``"""
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    return f"{timestamp_ms}_{_FILENAME_RE.sub('_', original_filename)}.json"


@dataclass
class StoredChunk:
    """A chunk together with the document (chunk file) it belongs to."""
    document_id: str
    source_file: str
    chunk: Chunk


class ProjectStore:
    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def project_dir(self, project: str) -> Path:
        return self.data_dir / sanitize_project_name(project)

    def _existing_dir(self, project: str) -> Path:
        path = self.project_dir(project)
        if not (path / METADATA_FILE).is_file():
            raise ProjectNotFoundError(project)
        return path

    def create_project(self, name: str) -> ProjectMetadata:
        path = self.project_dir(name)
        path.mkdir(parents=True, exist_ok=True)
        metadata = ProjectMetadata(project_name=name.strip())
        self._write_metadata(path, metadata)
        logger.info(f"Project '{name.strip()}' created at {path}")
        return metadata

    def get_project(self, project: str) -> ProjectMetadata:
        return self._read_metadata(self._existing_dir(project))

    def list_projects(self) -> list[ProjectMetadata]:
        """All valid projects; hidden and metadata-less directories are skipped."""
        if not self.data_dir.is_dir():
            return []
        projects = []
        for entry in sorted(self.data_dir.iterdir()):
            if entry.name.startswith(".") or not entry.is_dir():
                continue
            if not (entry / METADATA_FILE).is_file():
                logger.warning(f"Skipping folder '{entry.name}' - not a valid project")
                continue
            projects.append(self._read_metadata(entry))
        return projects

    def delete_project(self, project: str) -> None:
        path = self._existing_dir(project)
        shutil.rmtree(path)
        logger.info(f"Project '{project}' deleted")

    def touch_last_queried(self, project: str) -> None:
        path = self._existing_dir(project)
        metadata = self._read_metadata(path)
        metadata.last_queried = datetime.now(timezone.utc)
        self._write_metadata(path, metadata)

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    def save_document(self, project: str, chunk_file: ChunkFile) -> str:
        """Write a chunk file into the project and register it. Returns its file name."""
        path = self._existing_dir(project)
        timestamp_ms = time.time_ns() // 1_000_000
        file_name = chunk_file_name(chunk_file.original_filename, timestamp_ms)
        while (path / file_name).exists():
            timestamp_ms += 1
            file_name = chunk_file_name(chunk_file.original_filename, timestamp_ms)
        chunk_file.save(str(path / file_name))

        metadata = self._read_metadata(path)
        metadata.files.append(FileEntry(
            file_name=file_name,
            original_name=chunk_file.original_filename,
        ))
        metadata.total_chunks = self._count_chunks(path)
        self._write_metadata(path, metadata)
        logger.info(f"Saved {chunk_file.chunk_count} chunks to {path / file_name}")
        return file_name

    def list_documents(self, project: str) -> list[FileEntry]:
        return self.get_project(project).files

    def load_document(self, project: str, file_name: str) -> ChunkFile:
        path = self._existing_dir(project) / file_name
        if not path.is_file():
            raise StorageError(f"Chunk file not found: {file_name}", details=str(path))
        return ChunkFile.load(str(path))

    def load_chunk_files(self, project: str) -> list[tuple[str, ChunkFile]]:
        """(document_id, ChunkFile) for every chunk file in the project."""
        path = self._existing_dir(project)
        return [
            (file.stem, ChunkFile.load(str(file)))
            for file in self._chunk_files(path)
        ]

    def load_chunks(self, project: str) -> list[StoredChunk]:
        """Flat list of every chunk in the project, in file and chunk order."""
        stored = []
        for document_id, chunk_file in self.load_chunk_files(project):
            for chunk in chunk_file.chunks:
                stored.append(StoredChunk(
                    document_id=document_id,
                    source_file=chunk_file.original_filename,
                    chunk=chunk,
                ))
        return stored

    def delete_document(self, project: str, file_name: str) -> dict[str, int]:
        """Delete a chunk file and all of its chunks. Returns {deleted, remaining}."""
        path = self._existing_dir(project)
        target = path / file_name
        if not target.is_file() or target.name == METADATA_FILE:
            raise StorageError(f"Chunk file not found: {file_name}", details=str(target))
        target.unlink()

        metadata = self._read_metadata(path)
        metadata.files = [f for f in metadata.files if f.file_name != file_name]
        metadata.total_chunks = self._count_chunks(path)
        self._write_metadata(path, metadata)
        logger.info(f"File '{file_name}' deleted from project '{project}'")
        return {"deleted": 1, "remaining": metadata.total_chunks}

    # -------------------------------------------------------------------------
    # Internal methods
    # -------------------------------------------------------------------------

    def _chunk_files(self, path: Path) -> list[Path]:
        return sorted(p for p in path.glob("*.json") if p.name != METADATA_FILE)

    def _count_chunks(self, path: Path) -> int:
        return sum(ChunkFile.load(str(p)).chunk_count for p in self._chunk_files(path))

    def _read_metadata(self, path: Path) -> ProjectMetadata:
        data = json.loads((path / METADATA_FILE).read_text(encoding="utf-8"))
        return ProjectMetadata.model_validate(data)

    def _write_metadata(self, path: Path, metadata: ProjectMetadata) -> None:
        (path / METADATA_FILE).write_text(
            json.dumps(metadata.to_dict(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
