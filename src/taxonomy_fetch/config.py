"""Configuration loading and defaults."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_SETTINGS: Dict[str, Any] = {
    "database": {
        "path": "data/taxonomy.db",
    },
    "ai": {
        "timeout_seconds": 30,
        "retries": 1,
        "temperature": 0.2,
        "mcq_temperature": 0.7,
        "max_tokens": 2048,
    },
    "fetch": {
        "default_count": 10,
        "mcq_default_count": 5,
        "max_name_length": 200,
        "stream_name_length": 100,
    },
    "dialects": {
        "chat_completion_hosts": [
            "api.openai.com",
            "api.groq.com",
            "openrouter.ai",
            "api.deepseek.com",
            "api.mistral.ai",
            "api.together.xyz",
        ],
        "generate_content_hosts": [
            "generativelanguage.googleapis.com",
        ],
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(settings_path: str = "config/settings.yaml") -> Dict[str, Any]:
    """Loads settings.yaml and merges it onto defaults."""
    merged = deepcopy(DEFAULT_SETTINGS)
    config_path = Path(settings_path)
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as f:
            user_cfg = yaml.safe_load(f) or {}
        merged = _deep_merge(merged, user_cfg)
    return merged


def ai_setting(config: Dict[str, Any], key: str) -> Any:
    return config.get("ai", {}).get(key, DEFAULT_SETTINGS["ai"][key])


def fetch_setting(config: Dict[str, Any], key: str) -> Any:
    return config.get("fetch", {}).get(key, DEFAULT_SETTINGS["fetch"][key])
