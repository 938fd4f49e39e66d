from taxonomy_fetch.llm.registry import (
    activate_provider,
    add_provider,
    deactivate_provider,
    detect_dialect,
    get_active_provider,
    provider_diagnostics,
    update_provider,
)
from taxonomy_fetch.llm.types import Dialect
from taxonomy_fetch.models import apply_migrations, get_connection


def test_dialect_detection_by_host():
    assert detect_dialect("https://api.openai.com/v1") is Dialect.CHAT_COMPLETION
    assert detect_dialect("https://api.groq.com/openai/v1") is Dialect.CHAT_COMPLETION
    assert (
        detect_dialect("https://generativelanguage.googleapis.com/v1beta/models")
        is Dialect.GENERATE_CONTENT
    )
    assert detect_dialect("https://llm.internal.example") is Dialect.GENERATE_CONTENT


def test_dialect_detection_uses_configured_hosts():
    config = {"dialects": {"chat_completion_hosts": ["llm.internal.example"]}}
    assert detect_dialect("https://llm.internal.example/v1", config) is Dialect.CHAT_COMPLETION


def test_no_active_provider_is_none(tmp_path):
    db_path = str(tmp_path / "app.db")
    apply_migrations(db_path)

    with get_connection(db_path) as conn:
        assert get_active_provider(conn) is None
        add_provider(conn, "gemini", "https://generativelanguage.googleapis.com/v1beta/models", "m", "k")
        assert get_active_provider(conn) is None


def test_active_provider_without_key_is_none(tmp_path):
    db_path = str(tmp_path / "app.db")
    apply_migrations(db_path)

    with get_connection(db_path) as conn:
        add_provider(conn, "openai", "https://api.openai.com/v1", "gpt-4.1-mini", "  ", activate=True)
        assert get_active_provider(conn) is None


def test_activating_one_provider_deactivates_others(tmp_path):
    db_path = str(tmp_path / "app.db")
    apply_migrations(db_path)

    with get_connection(db_path) as conn:
        first = add_provider(conn, "openai", "https://api.openai.com/v1/", "gpt-4.1-mini", "k1", activate=True)
        second = add_provider(conn, "gemini", "https://generativelanguage.googleapis.com/v1beta/models", "g", "k2")

        assert get_active_provider(conn).name == "openai"
        assert first.dialect is Dialect.CHAT_COMPLETION
        assert first.base_url == "https://api.openai.com/v1"

        activate_provider(conn, second.id)
        active = get_active_provider(conn)
        assert active.name == "gemini"
        assert active.dialect is Dialect.GENERATE_CONTENT

        diag = provider_diagnostics(conn)
        assert [d["is_active"] for d in diag] == [False, True]
        assert all("api_key" not in d for d in diag)
        assert all(d["has_key"] for d in diag)


def test_explicit_dialect_overrides_detection(tmp_path):
    db_path = str(tmp_path / "app.db")
    apply_migrations(db_path)

    with get_connection(db_path) as conn:
        provider = add_provider(
            conn, "proxy", "https://gateway.example/v1", "m", "k", dialect="chat_completion", activate=True
        )
        assert provider.dialect is Dialect.CHAT_COMPLETION
        assert get_active_provider(conn).dialect is Dialect.CHAT_COMPLETION


def test_update_provider_edits_fields_and_redetects_dialect(tmp_path):
    db_path = str(tmp_path / "app.db")
    apply_migrations(db_path)

    with get_connection(db_path) as conn:
        provider = add_provider(
            conn, "gemini", "https://generativelanguage.googleapis.com/v1beta/models", "g", "old", activate=True
        )
        updated = update_provider(
            conn, provider.id, name="openai", base_url="https://api.openai.com/v1/", model_name="gpt-4.1-mini"
        )
        rotated = update_provider(conn, provider.id, api_key="new")
        active = get_active_provider(conn)

    assert updated.name == "openai"
    assert updated.base_url == "https://api.openai.com/v1"
    assert updated.model_name == "gpt-4.1-mini"
    assert updated.dialect is Dialect.CHAT_COMPLETION
    assert updated.api_key == "old"
    assert rotated.api_key == "new"
    assert rotated.dialect is Dialect.CHAT_COMPLETION
    assert active.id == provider.id
    assert active.is_active is True


def test_update_provider_keeps_explicit_dialect(tmp_path):
    db_path = str(tmp_path / "app.db")
    apply_migrations(db_path)

    with get_connection(db_path) as conn:
        provider = add_provider(conn, "proxy", "https://gateway.example/v1", "m", "k")
        updated = update_provider(conn, provider.id, base_url="https://api.openai.com/v1", dialect="generate_content")
        missing = update_provider(conn, 999, name="nobody")

    assert updated.dialect is Dialect.GENERATE_CONTENT
    assert missing is None


def test_deactivate_provider_leaves_no_active(tmp_path):
    db_path = str(tmp_path / "app.db")
    apply_migrations(db_path)

    with get_connection(db_path) as conn:
        provider = add_provider(conn, "openai", "https://api.openai.com/v1", "gpt-4.1-mini", "k", activate=True)
        result = deactivate_provider(conn, provider.id)
        active = get_active_provider(conn)
        diag = provider_diagnostics(conn)
        missing = deactivate_provider(conn, 999)

    assert result.is_active is False
    assert active is None
    assert diag[0]["is_active"] is False
    assert missing is None
