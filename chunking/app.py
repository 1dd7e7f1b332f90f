from fastapi import FastAPI, HTTPException

from .exceptions import ProjectNotFoundError, StorageError
from .models import ChunkResponse, ChunkTextRequest, FileEntry, ProjectMetadata
from .service import ChunkingService


def create_app(service: ChunkingService | None = None) -> FastAPI:
    service = service or ChunkingService()
    app = FastAPI(
        title="Chunking Service",
        version="1.0.0",
        description="Paragraph-aware sentence chunking and token chunking.",
    )

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.post("/chunk", response_model=ChunkResponse, response_model_by_alias=True)
    def chunk(request: ChunkTextRequest) -> ChunkResponse:
        try:
            result = service.chunk_text(
                request.text,
                request.filename,
                request.strategy,
                request.page_ranges,
            )
        except Exception as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return ChunkResponse(
            document_id=result.document_id,
            total_chunks=result.total_chunks,
            dropped_chunks=result.dropped_chunks,
            stats=result.stats,
            chunks=result.chunks,
        )

    @app.get("/projects", response_model=list[ProjectMetadata], response_model_by_alias=True)
    def projects() -> list[ProjectMetadata]:
        return service.store.list_projects()

    @app.post("/projects/{name}", response_model=ProjectMetadata, response_model_by_alias=True)
    def create_project(name: str) -> ProjectMetadata:
        try:
            return service.store.create_project(name)
        except StorageError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    @app.get("/projects/{name}/files", response_model=list[FileEntry], response_model_by_alias=True)
    def files(name: str) -> list[FileEntry]:
        try:
            return service.store.list_documents(name)
        except ProjectNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.delete("/projects/{name}/files/{file_name}")
    def delete_file(name: str, file_name: str) -> dict:
        try:
            return service.store.delete_document(name, file_name)
        except ProjectNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except StorageError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    return app


app = create_app()
