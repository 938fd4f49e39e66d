"""Google generateContent REST provider."""

from __future__ import annotations

import time

import requests

from ...utils import join_url
from ..types import LLMRequest, LLMResult, ProviderConfig, ProviderError


class GenerateContentProvider:
    def __init__(self, config: ProviderConfig) -> None:
        self.name = config.name
        self._base_url = config.base_url
        self._api_key = config.api_key

    def generate(self, request: LLMRequest) -> LLMResult:
        if not self._api_key:
            raise ProviderError(f"{self.name}: api key missing")

        url = join_url(self._base_url, f"{request.model}:generateContent") + f"?key={self._api_key}"
        payload = {
            "contents": [{"parts": [{"text": request.prompt}]}],
            "generationConfig": {
                "temperature": request.temperature,
                "maxOutputTokens": request.max_tokens,
                "response_mime_type": "application/json",
            },
        }

        start = time.perf_counter()
        try:
            res = requests.post(url, json=payload, timeout=request.timeout_seconds)
            res.raise_for_status()
            data = res.json()
        except Exception as exc:
            # HTTPError messages include the request URL, which carries the key
            raise ProviderError(str(exc).replace(self._api_key, "***")) from exc

        latency_ms = int((time.perf_counter() - start) * 1000)
        if not isinstance(data, dict):
            raise ProviderError(f"{self.name}: unexpected response shape")
        text = ""
        candidates = data.get("candidates") or []
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            content = candidates[0].get("content") or {}
            if not isinstance(content, dict):
                raise ProviderError(f"{self.name}: unexpected response shape")
            parts = content.get("parts") or []
            if isinstance(parts, list) and parts and isinstance(parts[0], dict):
                text = parts[0].get("text") or ""
        if not isinstance(text, str):
            raise ProviderError(f"{self.name}: unexpected response shape")

        usage = data.get("usageMetadata")
        if not isinstance(usage, dict):
            usage = {}
        return LLMResult(
            text=text,
            provider=self.name,
            model=request.model,
            tokens_in=int(usage.get("promptTokenCount", 0) or 0),
            tokens_out=int(usage.get("candidatesTokenCount", 0) or 0),
            latency_ms=latency_ms,
            raw={"responseId": data.get("responseId")},
        )
