"""Sends one prompt to the active provider and returns its raw text."""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import ai_setting
from .providers.base import LLMProvider
from .providers.chat_completion_provider import ChatCompletionProvider
from .providers.generate_content_provider import GenerateContentProvider
from .types import (
    Dialect,
    LLMRequest,
    LLMResult,
    NoActiveProviderError,
    ProviderConfig,
    ProviderError,
)

logger = logging.getLogger(__name__)

PROVIDER_CLASSES = {
    Dialect.CHAT_COMPLETION: ChatCompletionProvider,
    Dialect.GENERATE_CONTENT: GenerateContentProvider,
}


def build_provider(provider: ProviderConfig) -> LLMProvider:
    return PROVIDER_CLASSES[provider.dialect](provider)


def invoke(
    provider: ProviderConfig | None,
    prompt: str,
    config: Dict[str, Any] | None = None,
    temperature: float | None = None,
    meta: Dict[str, Any] | None = None,
) -> LLMResult:
    """Calls the provider with timeout and retry; the result text is never empty."""
    if provider is None or not (provider.api_key or "").strip():
        raise NoActiveProviderError("AI provider not configured")

    config = config or {}
    request = LLMRequest(
        prompt=prompt,
        model=provider.model_name,
        temperature=float(temperature if temperature is not None else ai_setting(config, "temperature")),
        max_tokens=int(ai_setting(config, "max_tokens")),
        timeout_seconds=int(ai_setting(config, "timeout_seconds")),
        meta=meta or {},
    )
    client = build_provider(provider)
    attempts = 1 + max(0, int(ai_setting(config, "retries")))

    last_error: ProviderError | None = None
    for attempt in range(1, attempts + 1):
        try:
            result = client.generate(request)
        except ProviderError as exc:
            last_error = exc
            logger.warning("%s attempt %d/%d failed: %s", provider.name, attempt, attempts, exc)
            continue
        if not (result.text or "").strip():
            raise ProviderError(f"{provider.name}: empty response")
        return result

    raise ProviderError(f"{provider.name}: {last_error}")
