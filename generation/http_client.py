"""
JSON-over-HTTP calls to the Ollama REST API.

An unreachable server raises ``ConnectionError``; a server that answers with
an error status raises ``OllamaHTTPError`` (a ``RuntimeError``). Callers that
fall back on failure catch both.
"""

import json
from typing import Any, Optional
from urllib import request
from urllib.error import HTTPError, URLError


class OllamaHTTPError(RuntimeError):
    def __init__(self, url: str, status: int, body: str = ""):
        self.url = url
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status} calling {url}: {body[:500]}")


def request_json(url: str, payload: Optional[dict] = None, timeout: float = 120) -> dict[str, Any]:
    """GET ``url`` when ``payload`` is None, otherwise POST it as JSON."""
    headers = {"Accept": "application/json"}
    body = None
    if payload is not None:
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        headers["Content-Type"] = "application/json"
    req = request.Request(url, data=body, headers=headers, method="GET" if body is None else "POST")

    try:
        with request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode("utf-8")
    except HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
        raise OllamaHTTPError(url, exc.code, detail) from exc
    except URLError as exc:
        raise ConnectionError(f"Cannot reach {url}: {exc.reason}") from exc
    except TimeoutError as exc:
        raise ConnectionError(f"Timed out after {timeout}s waiting for {url}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Invalid JSON from {url}: {raw[:200]}") from exc
    if not isinstance(data, dict):
        raise RuntimeError(f"Expected a JSON object from {url}, got {type(data).__name__}")
    return data


def post_json(url: str, payload: dict, timeout: float = 120) -> dict[str, Any]:
    return request_json(url, payload, timeout)


def get_json(url: str, timeout: float = 10) -> dict[str, Any]:
    return request_json(url, None, timeout)
