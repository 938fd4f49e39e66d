"""Active AI provider lookup and provider administration."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List
from urllib.parse import urlparse

from ..config import DEFAULT_SETTINGS
from ..models import (
    create_provider,
    get_active_provider_row,
    get_provider_row,
    list_provider_rows,
    set_provider_active,
    update_provider_row,
)
from .types import Dialect, ProviderConfig


def detect_dialect(base_url: str, config: Dict[str, Any] | None = None) -> Dialect:
    """Picks the wire dialect for a base URL. Called once, when a provider is configured."""
    dialects = (config or {}).get("dialects") or DEFAULT_SETTINGS["dialects"]
    host = (urlparse(base_url).hostname or base_url).lower()

    def _matches(hosts: Iterable[str]) -> bool:
        return any(h.lower() in host for h in hosts)

    if _matches(dialects.get("chat_completion_hosts", [])):
        return Dialect.CHAT_COMPLETION
    return Dialect.GENERATE_CONTENT


def provider_from_row(row: Dict[str, Any]) -> ProviderConfig:
    return ProviderConfig(
        id=row.get("id"),
        name=row["name"],
        base_url=row["base_url"],
        model_name=row["model_name"],
        api_key=row.get("api_key"),
        dialect=Dialect(row["dialect"]),
        is_active=bool(row.get("is_active")),
    )


def get_active_provider(conn) -> ProviderConfig | None:
    """Returns the active provider, or None if there is none or it has no credential."""
    row = get_active_provider_row(conn)
    if not row or not (row.get("api_key") or "").strip():
        return None
    return provider_from_row(row)


def add_provider(
    conn,
    name: str,
    base_url: str,
    model_name: str,
    api_key: str | None,
    dialect: Dialect | str | None = None,
    config: Dict[str, Any] | None = None,
    activate: bool = False,
) -> ProviderConfig:
    resolved = Dialect(dialect) if dialect else detect_dialect(base_url, config)
    row = create_provider(
        conn,
        name=name,
        base_url=base_url.rstrip("/"),
        model_name=model_name,
        api_key=api_key,
        dialect=resolved.value,
    )
    if activate:
        row = set_provider_active(conn, row["id"], True) or row
    return provider_from_row(row)


def activate_provider(conn, provider_id: int) -> ProviderConfig | None:
    row = set_provider_active(conn, provider_id, True)
    return provider_from_row(row) if row else None


def update_provider(
    conn,
    provider_id: int,
    name: str | None = None,
    base_url: str | None = None,
    model_name: str | None = None,
    api_key: str | None = None,
    dialect: Dialect | str | None = None,
    config: Dict[str, Any] | None = None,
) -> ProviderConfig | None:
    """Edits a provider. A new base_url re-detects the dialect unless one is given."""
    if get_provider_row(conn, provider_id) is None:
        return None
    fields: Dict[str, Any] = {}
    if name is not None:
        fields["name"] = name
    if model_name is not None:
        fields["model_name"] = model_name
    if api_key is not None:
        fields["api_key"] = api_key
    if base_url is not None:
        fields["base_url"] = base_url.rstrip("/")
        if not dialect:
            fields["dialect"] = detect_dialect(base_url, config).value
    if dialect:
        fields["dialect"] = Dialect(dialect).value
    return provider_from_row(update_provider_row(conn, provider_id, fields))


def deactivate_provider(conn, provider_id: int) -> ProviderConfig | None:
    row = set_provider_active(conn, provider_id, False)
    return provider_from_row(row) if row else None


def provider_diagnostics(conn) -> List[Dict[str, Any]]:
    return [
        {
            "id": row["id"],
            "name": row["name"],
            "model_name": row["model_name"],
            "dialect": row["dialect"],
            "is_active": bool(row["is_active"]),
            "has_key": bool((row.get("api_key") or "").strip()),
        }
        for row in list_provider_rows(conn)
    ]
