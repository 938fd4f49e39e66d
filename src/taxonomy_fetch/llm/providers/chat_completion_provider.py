"""OpenAI-compatible chat completions provider."""

from __future__ import annotations

import time

import requests

from ...utils import join_url
from ..types import LLMRequest, LLMResult, ProviderConfig, ProviderError


class ChatCompletionProvider:
    def __init__(self, config: ProviderConfig) -> None:
        self.name = config.name
        self._base_url = config.base_url
        self._api_key = config.api_key

    def generate(self, request: LLMRequest) -> LLMResult:
        if not self._api_key:
            raise ProviderError(f"{self.name}: api key missing")

        url = join_url(self._base_url, "chat/completions")
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": request.model,
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "messages": [{"role": "user", "content": request.prompt}],
            "response_format": {"type": "json_object"},
        }

        start = time.perf_counter()
        try:
            res = requests.post(url, headers=headers, json=payload, timeout=request.timeout_seconds)
            res.raise_for_status()
            data = res.json()
        except Exception as exc:
            raise ProviderError(str(exc)) from exc

        latency_ms = int((time.perf_counter() - start) * 1000)
        if not isinstance(data, dict):
            raise ProviderError(f"{self.name}: unexpected response shape")
        text = ""
        choices = data.get("choices") or []
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message") or {}
            if not isinstance(message, dict):
                raise ProviderError(f"{self.name}: unexpected response shape")
            text = message.get("content") or ""
        if not isinstance(text, str):
            raise ProviderError(f"{self.name}: unexpected response shape")

        usage = data.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        return LLMResult(
            text=text,
            provider=self.name,
            model=request.model,
            tokens_in=int(usage.get("prompt_tokens", 0) or 0),
            tokens_out=int(usage.get("completion_tokens", 0) or 0),
            latency_ms=latency_ms,
            raw={"id": data.get("id")},
        )
