"""Deterministic mock data used when the live provider path fails."""

from __future__ import annotations

from typing import Any, Dict, List

from .kinds import ItemKind, parse_kind
from .validators import DEBUG_MARKER


def mock_structure(kind: ItemKind | str, context: str, reason: str = "Unknown") -> List[Dict[str, str]]:
    kind = parse_kind(kind)
    return [
        {"name": f"{DEBUG_MARKER}: {reason}"},
        {"name": f"Sample {kind.value} 1 ({context})"},
        {"name": f"Sample {kind.value} 2 ({context})"},
    ]


def mock_mcqs(topic: str, count: int, reason: str = "Unknown") -> List[Dict[str, Any]]:
    return [
        {
            "question": f"[MOCK] {topic} practice question {i + 1}?",
            "options": ["Option 1", "Option 2", "Option 3", "Option 4"],
            "correct_option": 0,
            "explanation": (
                f"This is a fallback mock explanation for {topic} ({reason}). "
                "Please check AI provider configuration."
            ),
            "subject": topic,
            "chapter": "General",
        }
        for i in range(count)
    ]
