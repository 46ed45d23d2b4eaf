"""Tolerant JSON extraction from LLM responses using brace balancing."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*")


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences (```json ... ```) wherever they appear."""
    return _FENCE_RE.sub("", text)


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first balanced JSON *object* found in *text*.

    Strategy:
    1. Strip code fences, then try ``json.loads`` on the whole text.
    2. Walk the text; at every ``{`` attempt a brace-balanced parse that is
       aware of string literals and escapes.
    3. Return ``None`` if no candidate parses to a ``dict``.

    Arrays and scalars are never returned, even when they are valid JSON.
    """
    if not text or not text.strip():
        return None

    stripped = strip_code_fences(text).strip()

    try:
        parsed = json.loads(stripped)
    except (json.JSONDecodeError, ValueError):
        parsed = None
    if isinstance(parsed, dict):
        return parsed

    start = stripped.find("{")
    while start != -1:
        candidate = _balanced_object(stripped, start)
        if candidate is not None:
            return candidate
        start = stripped.find("{", start + 1)

    logger.debug("No JSON object found in %d chars of response", len(text))
    return None


def _balanced_object(text: str, start: int) -> dict[str, Any] | None:
    depth = 0
    in_string = False
    escape = False

    for i in range(start, len(text)):
        ch = text[i]

        if escape:
            escape = False
            continue

        if ch == "\\":
            if in_string:
                escape = True
            continue

        if ch == '"':
            in_string = not in_string
            continue

        if in_string:
            continue

        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                try:
                    value = json.loads(text[start : i + 1])
                except (json.JSONDecodeError, ValueError):
                    return None
                return value if isinstance(value, dict) else None

    return None
