from fastapi import FastAPI, HTTPException

from chunking.exceptions import OperationCancelled

from .config import RetrievalConfig
from .exceptions import RetrievalPreconditionError
from .models import DocumentSummary, QueryRequest, RetrievalResponse
from .service import RetrievalService


def create_app(service: RetrievalService | None = None) -> FastAPI:
    service = service or RetrievalService(RetrievalConfig.from_env())

    app = FastAPI(
        title="Retrieval Service",
        version="1.0.0",
        description="Semantic, keyword, and hybrid retrieval over project chunks.",
    )

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "embedder": service.embedder.health_check()}

    @app.get(
        "/projects/{project}/documents",
        response_model=list[DocumentSummary],
        response_model_by_alias=True,
    )
    def documents(project: str) -> list[DocumentSummary]:
        try:
            return service.store.list_documents(project)
        except RetrievalPreconditionError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.post("/retrieve", response_model=RetrievalResponse, response_model_by_alias=True)
    def retrieve(request: QueryRequest) -> RetrievalResponse:
        try:
            return service.retrieve(
                request.project,
                request.query,
                top_k=request.top_k,
                mode=request.mode,
                keywords=request.keywords,
            )
        except RetrievalPreconditionError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except OperationCancelled as exc:
            raise HTTPException(status_code=499, detail=str(exc)) from exc
        except Exception as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    return app


app = create_app()
