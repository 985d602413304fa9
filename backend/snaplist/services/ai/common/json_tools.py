"""JSON handling for LLM replies that should contain a single JSON object."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*")


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers (```` ```json ```` / ```` ``` ````) anywhere in *text*."""
    return _FENCE_RE.sub("", text or "").strip()


def load_json_object(text: str) -> dict[str, Any]:
    """Strip code fences from *text* and parse it as a JSON object.

    Raises ``ValueError`` (``json.JSONDecodeError`` is a subclass) when the
    cleaned text is not valid JSON or does not hold an object.
    """
    cleaned = strip_code_fences(text)
    parsed = json.loads(cleaned)
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
