import json

import main
from taxonomy_fetch.llm.registry import add_provider
from taxonomy_fetch.models import apply_migrations, get_connection, list_named

GENERATE_POST = "taxonomy_fetch.llm.providers.generate_content_provider.requests.post"


class DummyResponse:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        return None

    def json(self):
        return self._payload


def test_fetch_save_subjects_uses_scope_options(tmp_path, monkeypatch):
    db_path = str(tmp_path / "app.db")
    apply_migrations(db_path)
    text = json.dumps(["Mathematics", "Science"])
    monkeypatch.setattr(
        GENERATE_POST,
        lambda url, json, timeout: DummyResponse({"candidates": [{"content": {"parts": [{"text": text}]}}]}),
    )
    args = main._build_parser().parse_args(
        ["fetch", "subjects", "--context", "CBSE Class 10", "--save", "--board-id", "1", "--class-id", "10"]
    )

    with get_connection(db_path) as conn:
        add_provider(conn, "gemini", "https://generativelanguage.googleapis.com/v1beta/models", "g", "k", activate=True)
        result = main._save_fetch(conn, {}, args)
        subjects = list_named(conn, "subjects")

    assert result["ok"] is True
    assert result["count"] == 2
    assert {(s["board_id"], s["class_id"], s["stream_id"]) for s in subjects} == {(1, 10, None)}


def test_provider_admin_commands_parse():
    parser = main._build_parser()

    update = parser.parse_args(["update-provider", "3", "--api-key", "new", "--model", "gpt-4.1"])
    deactivate = parser.parse_args(["deactivate-provider", "3"])

    assert (update.provider_id, update.api_key, update.model, update.base_url) == (3, "new", "gpt-4.1", None)
    assert deactivate.command == "deactivate-provider"
    assert deactivate.provider_id == 3
