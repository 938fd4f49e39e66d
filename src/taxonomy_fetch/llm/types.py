"""Shared LLM data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class Dialect(str, Enum):
    CHAT_COMPLETION = "chat_completion"
    GENERATE_CONTENT = "generate_content"


@dataclass
class ProviderConfig:
    name: str
    base_url: str
    model_name: str
    api_key: str | None
    dialect: Dialect
    is_active: bool = False
    id: int | None = None


@dataclass
class LLMRequest:
    prompt: str
    model: str
    temperature: float
    max_tokens: int
    timeout_seconds: int
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LLMResult:
    text: str
    provider: str
    model: str
    tokens_in: int = 0
    tokens_out: int = 0
    latency_ms: int = 0
    raw: Dict[str, Any] = field(default_factory=dict)


class ProviderError(RuntimeError):
    """Provider failed to return a usable generation."""


class NoActiveProviderError(ProviderError):
    """No provider is active, or the active one has no credential."""


class MalformedResponseError(ValueError):
    """Provider text was not parseable JSON after fence stripping."""
