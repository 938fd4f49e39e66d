"""Utility helpers."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict

_DUPLICATE_SLASHES = re.compile(r"(?<!:)/{2,}")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def json_dumps(data: Dict[str, Any] | list[Any] | None) -> str:
    return json.dumps(data or {}, ensure_ascii=True, sort_keys=True)


def join_url(base: str, path: str) -> str:
    """Joins base and path, collapsing repeated slashes outside the scheme."""
    return _DUPLICATE_SLASHES.sub("/", f"{base}/{path}")
