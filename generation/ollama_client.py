from __future__ import annotations

from typing import Any, Optional

from .http_client import get_json, post_json


def _api(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/api/{path}"


def chat(
    base_url: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
    response_schema: Optional[dict[str, Any]] = None,
    temperature: float = 0.2,
    output_tokens: int = 512,
    context_window: Optional[int] = None,
    timeout: int = 120,
) -> str:
    """
    One non-streaming /api/chat round trip.

    ``response_schema`` is passed as Ollama's ``format`` to constrain the
    reply to JSON. Returns the assistant message text ("" when the model
    produced none).
    """
    options: dict[str, Any] = {"temperature": temperature, "num_predict": output_tokens}
    if context_window:
        options["num_ctx"] = context_window

    payload: dict[str, Any] = {
        "model": model,
        "stream": False,
        "options": options,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
    }
    if response_schema is not None:
        payload["format"] = response_schema

    response = post_json(_api(base_url, "chat"), payload, timeout=timeout)
    if "error" in response:
        raise RuntimeError(f"Ollama chat with '{model}' failed: {response['error']}")
    return (response.get("message") or {}).get("content") or ""


def list_models(base_url: str, timeout: int = 10) -> list[str]:
    """Names of the models pulled into the Ollama server."""
    response = get_json(_api(base_url, "tags"), timeout=timeout)
    return [m["name"] for m in response.get("models", []) if m.get("name")]
