import json

import requests

from taxonomy_fetch.llm.types import Dialect, ProviderConfig
from taxonomy_fetch.models import apply_migrations, get_connection
from taxonomy_fetch.normalizer import normalize_mcqs
from taxonomy_fetch.orchestrator import generate_and_save_mcqs, generate_mcqs
from taxonomy_fetch.validators import is_valid_mcq

GENERATE_POST = "taxonomy_fetch.llm.providers.generate_content_provider.requests.post"

PROVIDER = ProviderConfig(
    name="gemini",
    base_url="https://generativelanguage.googleapis.com/v1beta/models",
    model_name="gemini-1.5-flash",
    api_key="k",
    dialect=Dialect.GENERATE_CONTENT,
    is_active=True,
)


class DummyResponse:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        return None

    def json(self):
        return self._payload


def _mcq(question, options, correct=0, **extra):
    return {"question": question, "options": options, "correct_option": correct, **extra}


def test_malformed_options_are_dropped():
    raw = json.dumps(
        {
            "questions": [
                _mcq("What is 2+2?", ["3", "4", "5", "6"], 1, explanation="Basic addition"),
                _mcq("Only three options?", ["a", "b", "c"]),
                _mcq("Five options?", ["a", "b", "c", "d", "e"]),
                _mcq("Out of range", ["a", "b", "c", "d"], 4),
                _mcq("Bool index", ["a", "b", "c", "d"], True),
                _mcq("", ["a", "b", "c", "d"]),
                "not an object",
            ]
        }
    )
    mcqs = normalize_mcqs(raw, "Arithmetic", 10)

    assert len(mcqs) == 1
    assert mcqs[0] == {
        "question": "What is 2+2?",
        "options": ["3", "4", "5", "6"],
        "correct_option": 1,
        "explanation": "Basic addition",
        "subject": "Arithmetic",
        "chapter": "General",
    }


def test_correct_option_repairs():
    raw = json.dumps(
        [
            _mcq("Q1", ["a", "b", "c", "d"], "2"),
            _mcq("Q2", ["a", "b", "c", "d"], "d"),
        ]
    )
    mcqs = normalize_mcqs(raw, "T", 5)
    assert [m["correct_option"] for m in mcqs] == [2, 3]


def test_mcqs_are_capped_at_count():
    raw = json.dumps([_mcq(f"Q{i}", ["a", "b", "c", "d"], i % 4) for i in range(8)])
    mcqs = normalize_mcqs(raw, "T", 3)
    assert [m["question"] for m in mcqs] == ["Q0", "Q1", "Q2"]


def test_generate_mcqs_live_results_hold_shape(monkeypatch):
    text = json.dumps(
        {
            "mcqs": [
                _mcq("Q1", ["a", "b", "c", "d"], 3, chapter="Motion"),
                _mcq("Q2", ["a", "b", "c"], 0),
            ]
        }
    )

    def fake_post(url, json, timeout):
        assert json["generationConfig"]["temperature"] == 0.7
        return DummyResponse({"candidates": [{"content": {"parts": [{"text": text}]}}]})

    monkeypatch.setattr(GENERATE_POST, fake_post)

    mcqs = generate_mcqs(None, {}, "Physics", 5, provider=PROVIDER)
    assert [m["question"] for m in mcqs] == ["Q1"]
    assert all(is_valid_mcq(m) for m in mcqs)


def test_generate_mcqs_falls_back_to_mock():
    mcqs = generate_mcqs(None, {}, "Physics", 3)
    assert len(mcqs) == 3
    assert all(is_valid_mcq(m) for m in mcqs)
    assert mcqs[0]["question"].startswith("[MOCK] Physics")
    assert "AI provider not configured" in mcqs[0]["explanation"]


def test_mock_mcqs_are_not_saved(tmp_path):
    db_path = str(tmp_path / "app.db")
    apply_migrations(db_path)

    with get_connection(db_path) as conn:
        result = generate_and_save_mcqs(conn, {}, "Physics", 2)
        stored = conn.execute("SELECT COUNT(*) AS n FROM mcq_pool").fetchone()["n"]

    assert result["ok"] is False
    assert result["reason"] == "provider_unavailable"
    assert stored == 0


def test_live_mcqs_are_saved(tmp_path, monkeypatch):
    db_path = str(tmp_path / "app.db")
    apply_migrations(db_path)
    text = json.dumps([_mcq("Q1", ["a", "b", "c", "d"], 2)])
    monkeypatch.setattr(
        GENERATE_POST,
        lambda url, json, timeout: DummyResponse({"candidates": [{"content": {"parts": [{"text": text}]}}]}),
    )

    with get_connection(db_path) as conn:
        result = generate_and_save_mcqs(conn, {}, "Physics", 1, provider=PROVIDER)

    assert result["ok"] is True
    assert result["count"] == 1
    assert result["items"][0]["correct_option"] == 2


def test_explicit_zero_count_gives_no_mcqs():
    assert generate_mcqs(None, {}, "Physics", 0) == []
