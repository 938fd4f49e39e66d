"""Domain validity filters for fetched names and MCQ records."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List

from .kinds import ItemKind, parse_kind

logger = logging.getLogger(__name__)

DEFAULT_MAX_NAME_LENGTH = 200
DEBUG_MARKER = "DEBUG_ERROR"

PLACEHOLDER_RE = re.compile(r"^(board|subject|chapter|class)\s+\w$", re.IGNORECASE)

# Bodies outside Class 1-12 school education.
NON_SCHOOL_KEYWORDS = (
    "university",
    "joint entrance",
    "entrance examination",
    "council of higher education",
    "technical education",
    "medical",
    "engineering",
    "college",
    "polytechnic",
    "distance education",
    "open university",
    "deemed",
    "affiliated",
)
NON_SCHOOL_ACRONYMS_RE = re.compile(r"\b(jee|neet)\b", re.IGNORECASE)

MCQ_OPTION_COUNT = 4


def is_placeholder(name: str) -> bool:
    return bool(PLACEHOLDER_RE.match(name.strip())) or "placeholder" in name.lower()


def is_non_school_board(name: str) -> bool:
    lower = name.lower()
    if any(keyword in lower for keyword in NON_SCHOOL_KEYWORDS):
        return True
    return bool(NON_SCHOOL_ACRONYMS_RE.search(name))


def rejection_reason(
    name: str,
    kind: ItemKind,
    max_length: int = DEFAULT_MAX_NAME_LENGTH,
) -> str | None:
    if not name.strip():
        return "empty"
    if len(name) > max_length:
        return "too_long"
    if is_placeholder(name):
        return "placeholder"
    if name.startswith(DEBUG_MARKER):
        return "debug_marker"
    if kind is ItemKind.BOARDS and is_non_school_board(name):
        return "non_school_board"
    if kind is ItemKind.UNIVERSITIES and "university " in name.lower():
        return "generic_university"
    return None


def filter_items(
    items: Iterable[Dict[str, Any]],
    kind: ItemKind | str,
    context: str | None = None,
    max_length: int = DEFAULT_MAX_NAME_LENGTH,
) -> List[Dict[str, Any]]:
    """Drops invalid items, keeping order. Names are never modified."""
    kind = parse_kind(kind)
    kept: List[Dict[str, Any]] = []
    for item in items:
        name = item.get("name")
        if not isinstance(name, str):
            name = ""
        reason = rejection_reason(name, kind, max_length)
        if reason:
            logger.debug("[%s filter] skipped %r (%s) context=%r", kind.value, name, reason, context)
            continue
        kept.append(item)
    return kept


def _correct_index(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        index = value
    elif isinstance(value, str) and value.strip().isdigit():
        index = int(value.strip())
    elif isinstance(value, str) and len(value.strip()) == 1 and value.strip().upper() in "ABCD":
        index = "ABCD".index(value.strip().upper())
    else:
        return None
    return index if 0 <= index < MCQ_OPTION_COUNT else None


def coerce_mcq(element: Any, topic: str) -> Dict[str, Any] | None:
    """Returns a well-formed MCQ record, or None when the element cannot be repaired."""
    if not isinstance(element, dict):
        return None
    question = element.get("question")
    if not isinstance(question, str) or not question.strip():
        return None

    options = element.get("options")
    if not isinstance(options, list) or len(options) != MCQ_OPTION_COUNT:
        return None
    options = [str(option).strip() for option in options if option is not None]
    if len(options) != MCQ_OPTION_COUNT or not all(options):
        return None

    correct = _correct_index(element.get("correct_option"))
    if correct is None:
        return None

    return {
        "question": question.strip(),
        "options": options,
        "correct_option": correct,
        "explanation": str(element.get("explanation") or "").strip(),
        "subject": str(element.get("subject") or topic).strip(),
        "chapter": str(element.get("chapter") or "General").strip(),
    }


def is_valid_mcq(record: Dict[str, Any]) -> bool:
    options = record.get("options")
    correct = record.get("correct_option")
    return (
        isinstance(options, list)
        and len(options) == MCQ_OPTION_COUNT
        and isinstance(correct, int)
        and not isinstance(correct, bool)
        and 0 <= correct < MCQ_OPTION_COUNT
    )
