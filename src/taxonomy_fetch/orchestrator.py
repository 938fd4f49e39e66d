"""Fetch pipeline: provider -> prompt -> invoke -> normalize -> filter, plus fetch-and-save flows."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from .config import ai_setting, fetch_setting
from .fallback import mock_mcqs, mock_structure
from .kinds import LABELS, ItemKind, parse_kind
from .llm.client import invoke
from .llm.registry import get_active_provider
from .llm.types import MalformedResponseError, NoActiveProviderError, ProviderConfig, ProviderError
from .models import (
    insert_mcqs,
    insert_names,
    insert_subjects,
    list_streams,
    log_fetch_attempt,
    upsert_streams,
)
from .normalizer import normalize, normalize_mcqs
from .prompts import (
    build_prompt,
    school_boards_context,
    school_chapters_context,
    school_subjects_context,
)
from .validators import filter_items

logger = logging.getLogger(__name__)

BOARDS_SCOPE = (
    "List ONLY boards that govern school education (Class 1 to Class 12), such as state "
    "secondary boards, CBSE, ICSE/CISCE, NIOS"
)


def _resolve_provider(conn, provider: ProviderConfig | None) -> ProviderConfig | None:
    if provider is not None:
        return provider
    if conn is None:
        return None
    return get_active_provider(conn)


def _record(conn, kind: ItemKind, context: str, meta: Dict[str, Any], item_count: int) -> None:
    if conn is None:
        return
    log_fetch_attempt(
        conn,
        kind=kind.value,
        context=context,
        provider=meta.get("provider"),
        mode=meta["mode"],
        item_count=item_count,
        error=meta.get("reason"),
        latency_ms=meta.get("latency_ms", 0),
    )


def fetch_structure_with_meta(
    conn,
    config: Dict[str, Any],
    kind: ItemKind | str,
    context: str,
    count: int | None = None,
    provider: ProviderConfig | None = None,
    label: str | None = None,
) -> tuple[List[Dict[str, str]], Dict[str, Any]]:
    kind = parse_kind(kind)
    if kind is ItemKind.MCQ:
        raise ValueError("MCQs are generated with generate_mcqs()")
    count = int(count if count is not None else fetch_setting(config, "default_count"))
    max_length = int(fetch_setting(config, "max_name_length"))

    active = _resolve_provider(conn, provider)
    try:
        result = invoke(
            active,
            build_prompt(kind, context, count, label=label),
            config,
            meta={"kind": kind.value},
        )
        items = normalize(result.text, max_length=max_length)
    except (NoActiveProviderError, ProviderError, MalformedResponseError) as exc:
        logger.warning("AI structure fetch failed (%s): %s", kind.value, exc)
        items = mock_structure(kind, context, str(exc))
        meta = {
            "mode": "fallback",
            "kind": kind.value,
            "provider": active.name if active else None,
            "reason": str(exc)[:240],
        }
        _record(conn, kind, context, meta, len(items))
        return items, meta

    items = filter_items(items, kind, context, max_length=max_length)[:count]
    meta = {
        "mode": "llm",
        "kind": kind.value,
        "provider": result.provider,
        "model": result.model,
        "latency_ms": result.latency_ms,
    }
    _record(conn, kind, context, meta, len(items))
    return items, meta


def fetch_structure(
    conn,
    config: Dict[str, Any],
    kind: ItemKind | str,
    context: str,
    count: int | None = None,
    provider: ProviderConfig | None = None,
    label: str | None = None,
) -> List[Dict[str, str]]:
    """Always returns a list; on any provider or parse failure it is the mock list."""
    items, _ = fetch_structure_with_meta(conn, config, kind, context, count, provider, label)
    return items


def generate_mcqs_with_meta(
    conn,
    config: Dict[str, Any],
    topic: str,
    count: int | None = None,
    provider: ProviderConfig | None = None,
) -> tuple[List[Dict[str, Any]], Dict[str, Any]]:
    count = int(count if count is not None else fetch_setting(config, "mcq_default_count"))
    active = _resolve_provider(conn, provider)
    try:
        result = invoke(
            active,
            build_prompt(ItemKind.MCQ, topic, count),
            config,
            temperature=float(ai_setting(config, "mcq_temperature")),
            meta={"kind": ItemKind.MCQ.value},
        )
        mcqs = normalize_mcqs(result.text, topic, count)
    except (NoActiveProviderError, ProviderError, MalformedResponseError) as exc:
        logger.warning("AI MCQ generation failed: %s", exc)
        mcqs = mock_mcqs(topic, count, str(exc))
        meta = {"mode": "fallback", "provider": active.name if active else None, "reason": str(exc)[:240]}
        _record(conn, ItemKind.MCQ, topic, meta, len(mcqs))
        return mcqs, meta

    meta = {
        "mode": "llm",
        "provider": result.provider,
        "model": result.model,
        "latency_ms": result.latency_ms,
    }
    _record(conn, ItemKind.MCQ, topic, meta, len(mcqs))
    return mcqs, meta


def generate_mcqs(
    conn,
    config: Dict[str, Any],
    topic: str,
    count: int | None = None,
    provider: ProviderConfig | None = None,
) -> List[Dict[str, Any]]:
    mcqs, _ = generate_mcqs_with_meta(conn, config, topic, count, provider)
    return mcqs


def generate_school_boards(conn, config: Dict[str, Any], state_name: str, **kwargs) -> List[Dict[str, str]]:
    return fetch_structure(conn, config, ItemKind.BOARDS, school_boards_context(state_name), **kwargs)


def generate_school_subjects(
    conn,
    config: Dict[str, Any],
    board_name: str,
    class_name: str,
    stream_name: str | None = None,
    **kwargs,
) -> List[Dict[str, str]]:
    context = school_subjects_context(board_name, class_name, stream_name)
    return fetch_structure(conn, config, ItemKind.SUBJECTS, context, **kwargs)


def generate_school_chapters(
    conn,
    config: Dict[str, Any],
    subject_name: str,
    board_name: str,
    class_name: str,
    **kwargs,
) -> List[Dict[str, str]]:
    context = school_chapters_context(subject_name, board_name, class_name)
    return fetch_structure(conn, config, ItemKind.CHAPTERS, context, **kwargs)


# --- fetch-and-save flows ---


def _save_outcome(
    kind: ItemKind,
    saved: List[Dict[str, Any]],
    existing: int,
    meta: Dict[str, Any],
) -> Dict[str, Any]:
    label = LABELS[kind]
    if not saved and not existing:
        return {
            "ok": False,
            "reason": "no_valid_items" if meta["mode"] == "llm" else "provider_unavailable",
            "count": 0,
            "existing": 0,
            "message": f"AI returned no valid {label.lower()}. Check AI provider settings.",
            "error": meta.get("reason"),
            "items": [],
        }
    message = f"{len(saved)} {label} fetched and saved."
    if existing:
        message += f" {existing} already existed."
    return {
        "ok": True,
        "reason": None,
        "count": len(saved),
        "existing": existing,
        "message": message,
        "items": saved,
    }


def _fetch_and_save_named(
    conn,
    config: Dict[str, Any],
    kind: ItemKind,
    table: str,
    parent_id: int | None,
    context: str,
    count: int | None = None,
    provider: ProviderConfig | None = None,
) -> Dict[str, Any]:
    if parent_id is None:
        # NULL parents never conflict in sqlite, so repeated saves would duplicate rows
        return {
            "ok": False,
            "reason": "missing_parent",
            "count": 0,
            "existing": 0,
            "message": f"A parent id is required to save {LABELS[kind].lower()}.",
            "items": [],
        }
    items, meta = fetch_structure_with_meta(conn, config, kind, context, count, provider)
    if meta["mode"] == "fallback":
        return _save_outcome(kind, [], 0, meta)
    names = [item["name"] for item in filter_items(items, kind, context)]
    saved, existing = insert_names(conn, table, parent_id, names)
    logger.info("%s: saved=%d existing=%d parent=%s", table, len(saved), existing, parent_id)
    return _save_outcome(kind, saved, existing, meta)


def fetch_and_save_boards(conn, config: Dict[str, Any], state_id: int, state_name: str, **kwargs) -> Dict[str, Any]:
    context = f"{school_boards_context(state_name)}. {BOARDS_SCOPE}"
    return _fetch_and_save_named(conn, config, ItemKind.BOARDS, "boards", state_id, context, **kwargs)


def fetch_and_save_universities(
    conn, config: Dict[str, Any], state_id: int, state_name: str, **kwargs
) -> Dict[str, Any]:
    context = school_boards_context(state_name)
    return _fetch_and_save_named(conn, config, ItemKind.UNIVERSITIES, "universities", state_id, context, **kwargs)


def fetch_and_save_papers(
    conn, config: Dict[str, Any], category_id: int, category_name: str, **kwargs
) -> Dict[str, Any]:
    context = f"Exam Category: {category_name}"
    return _fetch_and_save_named(conn, config, ItemKind.PAPERS, "papers_stages", category_id, context, **kwargs)


def fetch_and_save_chapters(
    conn,
    config: Dict[str, Any],
    subject_id: int,
    subject_name: str,
    board_name: str | None = None,
    class_name: str | None = None,
    **kwargs,
) -> Dict[str, Any]:
    if board_name and class_name:
        context = school_chapters_context(subject_name, board_name, class_name)
    else:
        context = f"Subject: {subject_name}"
    return _fetch_and_save_named(conn, config, ItemKind.CHAPTERS, "chapters", subject_id, context, **kwargs)


def fetch_and_save_subjects(
    conn,
    config: Dict[str, Any],
    context_name: str,
    scope: Dict[str, Any],
    count: int | None = None,
    provider: ProviderConfig | None = None,
) -> Dict[str, Any]:
    """Scope holds the subject's parent ids (board_id, class_id, stream_id, ...)."""
    items, meta = fetch_structure_with_meta(
        conn, config, ItemKind.SUBJECTS, f"Context: {context_name}", count, provider
    )
    if meta["mode"] == "fallback":
        return _save_outcome(ItemKind.SUBJECTS, [], 0, meta)
    names = [item["name"] for item in filter_items(items, ItemKind.SUBJECTS, context_name)]
    saved, existing = insert_subjects(conn, names, scope)
    return _save_outcome(ItemKind.SUBJECTS, saved, existing, meta)


def fetch_streams(
    conn,
    config: Dict[str, Any],
    board_name: str,
    class_name: str,
    provider: ProviderConfig | None = None,
) -> Dict[str, Any]:
    """Streams a board offers at a class; all stored streams when the AI gives nothing usable."""
    context = f"Board: \"{board_name}\", {class_name} (India)"
    items, meta = fetch_structure_with_meta(conn, config, ItemKind.STREAMS, context, provider=provider)
    rows: List[Dict[str, Any]] = []
    if meta["mode"] == "llm":
        length = int(fetch_setting(config, "stream_name_length"))
        names = [item["name"].strip()[:length] for item in items]
        rows = upsert_streams(conn, [name for name in names if name])

    if rows:
        message = f"{len(rows)} streams loaded for {board_name}"
    elif meta["mode"] == "llm":
        rows = list_streams(conn)
        message = f"Default streams loaded for {board_name}"
    else:
        rows = list_streams(conn)
        message = "Default streams loaded (AI unavailable)"
    return {"ok": True, "streams": rows, "message": message, "mode": meta["mode"]}


def generate_and_save_mcqs(
    conn,
    config: Dict[str, Any],
    topic: str,
    count: int | None = None,
    provider: ProviderConfig | None = None,
) -> Dict[str, Any]:
    mcqs, meta = generate_mcqs_with_meta(conn, config, topic, count, provider)
    if meta["mode"] == "fallback":
        return {
            "ok": False,
            "reason": "provider_unavailable",
            "count": 0,
            "message": "AI MCQ generation failed; mock questions were not saved.",
            "error": meta.get("reason"),
            "items": mcqs,
        }
    saved = insert_mcqs(conn, mcqs)
    return {
        "ok": bool(saved),
        "reason": None if saved else "no_valid_items",
        "count": len(saved),
        "message": f"{len(saved)} MCQs generated and saved.",
        "items": saved,
    }
