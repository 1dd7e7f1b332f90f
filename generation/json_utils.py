"""
Lenient JSON parsing for model replies.

Local models asked for JSON still wrap it in prose or Markdown code fences,
and sometimes stop mid-object. ``safe_parse_json`` tries the reply as-is,
then without a fence, then the first balanced object inside it.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterator

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```\s*$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    match = _FENCE_RE.match(text.strip())
    return match.group(1).strip() if match else text.strip()


def extract_first_json_object(text: str) -> str:
    """
    The first balanced ``{...}`` in ``text``.

    Braces inside JSON strings (including escaped quotes) do not count.
    Returns ``text`` unchanged when no balanced object exists.
    """
    if not text:
        return ""
    start = text.find("{")
    if start < 0:
        return text

    depth = 0
    in_string = escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return text


def _candidates(text: str) -> Iterator[str]:
    yield text
    unfenced = strip_code_fence(text)
    if unfenced != text:
        yield unfenced
    yield extract_first_json_object(unfenced)


def safe_parse_json(text: str) -> dict[str, Any]:
    """Parse a JSON object out of a model reply; ``{}`` when there is none."""
    if not text or not text.strip():
        return {}
    for candidate in _candidates(text):
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return {}
