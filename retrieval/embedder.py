import logging
import time
from typing import Callable, Optional

import ollama

from chunking.cancellation import CancellationToken, checkpoint

from .exceptions import EmbeddingError
from .models import DeviceInfo

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], None]


class OllamaEmbedder:
    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        batch_size: int = 16,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.model = model
        self.base_url = base_url
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = ollama.Client(host=base_url)
        self._dimensions: Optional[int] = None

    @property
    def dimensions(self) -> Optional[int]:
        return self._dimensions

    def initialize(self) -> DeviceInfo:
        """Check that Ollama is reachable and the model is pulled."""
        model_names = self._list_models()
        if not self._has_model(model_names):
            raise EmbeddingError(
                f"Model '{self.model}' not found. Pull it with: ollama pull {self.model}",
                details=f"Available: {model_names}",
            )

        logger.info(f"Embedding model '{self.model}' ready at {self.base_url}")
        return DeviceInfo(
            host=self.base_url,
            model=self.model,
            model_available=True,
            available_models=model_names,
            dimensions=self._dimensions,
        )

    def embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")
        return self._embed_with_retry([text])[0]

    def embed_batch(
        self,
        texts: list[str],
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        batch_size: Optional[int] = None,
    ) -> list[list[float]]:
        """
        Embed ``texts`` in batches, one Ollama request per batch.

        Empty texts get an empty embedding. Progress is reported after each
        batch as (processed, total, percentage); cancellation is checked
        before each batch.
        """
        if not texts:
            return []

        size = batch_size or self.batch_size
        total = len(texts)
        result: list[list[float]] = [[] for _ in texts]

        for batch_start in range(0, total, size):
            checkpoint(cancel_token, "embedding")
            batch = list(enumerate(texts[batch_start:batch_start + size], start=batch_start))
            non_empty = [(i, t) for i, t in batch if t and t.strip()]
            if non_empty:
                embeddings = self._embed_with_retry([t for _, t in non_empty], cancel_token)
                for (orig_idx, _), embedding in zip(non_empty, embeddings):
                    result[orig_idx] = embedding

            processed = min(batch_start + size, total)
            if on_progress:
                on_progress(processed, total, round(processed / total * 100))
            logger.debug(f"Embedded {processed}/{total} texts")

        return result

    def health_check(self) -> dict[str, bool | str]:
        result = {
            "healthy": False,
            "ollama_running": False,
            "model_available": False,
            "model": self.model,
            "error": "",
        }

        try:
            model_names = self._list_models()
        except EmbeddingError as e:
            result["error"] = e.message
            return result

        result["ollama_running"] = True
        result["model_available"] = self._has_model(model_names)
        if not result["model_available"]:
            result["error"] = (
                f"Model '{self.model}' not found. "
                f"Available: {model_names}. "
                f"Pull it with: ollama pull {self.model}"
            )
        else:
            result["healthy"] = True

        return result

    def _list_models(self) -> list[str]:
        try:
            models = self._client.list()
        except Exception as e:
            raise EmbeddingError(
                f"Cannot connect to Ollama at {self.base_url}. "
                f"Is Ollama running? Start it with: ollama serve",
                details=str(e),
            ) from e
        return [m.model for m in models.models]

    def _has_model(self, model_names: list[str]) -> bool:
        return any(m.startswith(self.model) for m in model_names)

    def _embed_with_retry(
        self,
        inputs: list[str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> list[list[float]]:
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            if attempt:
                logger.warning(
                    f"Retry {attempt}/{self.max_retries} for embedding generation: {last_error}"
                )
                checkpoint(cancel_token, "embedding")
                if cancel_token is not None:
                    cancel_token.wait(self.retry_delay)
                else:
                    time.sleep(self.retry_delay)
                checkpoint(cancel_token, "embedding")
            try:
                response = self._client.embed(model=self.model, input=inputs)
            except ollama.ResponseError as e:
                last_error = e
                continue
            except Exception as e:
                if "Connection" in type(e).__name__ or "refused" in str(e).lower():
                    last_error = ConnectionError(
                        f"Cannot connect to Ollama at {self.base_url}. "
                        f"Is Ollama running? Start it with: ollama serve"
                    )
                else:
                    last_error = e
                continue

            embeddings = response["embeddings"]
            if len(embeddings) != len(inputs):
                last_error = ValueError(
                    f"Expected {len(inputs)} embeddings, got {len(embeddings)}"
                )
                continue
            if embeddings:
                self._dimensions = len(embeddings[0])
            return embeddings

        raise EmbeddingError(
            f"Failed to generate embedding with model '{self.model}' "
            f"after {self.max_retries} retries",
            details=str(last_error),
            attempts=self.max_retries + 1,
        )
