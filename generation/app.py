from fastapi import FastAPI, HTTPException

from chunking.exceptions import OperationCancelled
from retrieval.exceptions import RetrievalPreconditionError

from .config import GenerationConfig
from .models import AskRequest, AskResponse
from .ollama_client import list_models
from .service import AnswerService


def create_app(service: AnswerService | None = None) -> FastAPI:
    service = service or AnswerService(GenerationConfig.from_env())
    app = FastAPI(
        title="Generation Service",
        version="1.0.0",
        description="Record-first answers over retrieved project chunks via Ollama.",
    )

    @app.get("/health")
    def health() -> dict:
        config = service.config
        try:
            models = list_models(config.ollama_base_url)
        except (ConnectionError, RuntimeError) as exc:
            return {"status": "degraded", "ollama_running": False, "error": str(exc)}
        return {
            "status": "ok",
            "ollama_running": True,
            "model": config.ollama_model,
            "model_available": config.ollama_model in models,
            "keyword_model_available": config.keyword_model in models,
        }

    @app.post("/ask", response_model=AskResponse, response_model_by_alias=True)
    def ask(request: AskRequest) -> AskResponse:
        try:
            return service.ask(request.project, request.question, request.top_k, request.mode)
        except (RetrievalPreconditionError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except OperationCancelled as exc:
            raise HTTPException(status_code=499, detail=str(exc)) from exc
        except Exception as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    return app


app = create_app()
