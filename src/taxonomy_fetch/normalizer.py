"""Turns raw provider text into canonical items.

Providers are inconsistent about what they send back for "a JSON array":
some wrap it in an object (``{"boards": [...]}``), some use list keys like
``items`` or ``questions``, some add markdown fences. Everything here
reduces that to ``[{"name": ...}, ...]`` (or MCQ dicts).
"""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any, Dict, List, Tuple

from .llm.types import MalformedResponseError
from .validators import DEFAULT_MAX_NAME_LENGTH, coerce_mcq

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

LIST_KEYS = ("mcqs", "questions", "items")
NAME_KEYS = ("name", "title", "label")


class ResponseShape(str, Enum):
    ARRAY = "array"
    KEYED_OBJECT = "keyed_object"
    SINGLE_ARRAY_FIELD = "single_array_field"
    UNRECOGNIZED = "unrecognized"


def strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def parse_json(raw_text: str) -> Any:
    cleaned = strip_fences(raw_text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"AI output was not valid JSON: {exc}") from exc


def detect_shape(value: Any) -> Tuple[ResponseShape, List[Any]]:
    if isinstance(value, list):
        return ResponseShape.ARRAY, value
    if isinstance(value, dict):
        for key in LIST_KEYS:
            if isinstance(value.get(key), list):
                return ResponseShape.KEYED_OBJECT, value[key]
        arrays = [v for v in value.values() if isinstance(v, list)]
        if len(arrays) == 1:
            return ResponseShape.SINGLE_ARRAY_FIELD, arrays[0]
    return ResponseShape.UNRECOGNIZED, []


def _element_name(element: Any) -> str:
    if isinstance(element, str):
        return element
    if isinstance(element, dict):
        for key in NAME_KEYS:
            if element.get(key):
                return str(element[key])
        first = next(iter(element.values()), "")
        return first if isinstance(first, str) else str(first)
    return str(element)


def to_item(element: Any, max_length: int = DEFAULT_MAX_NAME_LENGTH) -> Dict[str, str]:
    return {"name": _element_name(element).strip()[:max_length]}


def normalize(
    raw_text: str,
    limit: int | None = None,
    max_length: int = DEFAULT_MAX_NAME_LENGTH,
) -> List[Dict[str, str]]:
    """Parses provider text into ``{"name": ...}`` items. Raises MalformedResponseError."""
    _, elements = detect_shape(parse_json(raw_text))
    items = [to_item(element, max_length) for element in elements]
    if limit is not None:
        items = items[:limit]
    return items


def normalize_mcqs(raw_text: str, topic: str, count: int) -> List[Dict[str, Any]]:
    _, elements = detect_shape(parse_json(raw_text))
    mcqs: List[Dict[str, Any]] = []
    for element in elements:
        mcq = coerce_mcq(element, topic)
        if mcq is not None:
            mcqs.append(mcq)
        if len(mcqs) >= count:
            break
    return mcqs
