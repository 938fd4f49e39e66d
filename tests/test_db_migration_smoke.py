from taxonomy_fetch.models import apply_migrations, get_connection


REQUIRED_TABLES = {
    "schema_migrations",
    "ai_providers",
    "ai_fetch_logs",
    "boards",
    "universities",
    "papers_stages",
    "streams",
    "subjects",
    "chapters",
    "mcq_pool",
}


def test_db_migrations_are_idempotent(tmp_path):
    db_path = str(tmp_path / "app.db")
    apply_migrations(db_path)
    apply_migrations(db_path)

    with get_connection(db_path) as conn:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        tables = {row["name"] for row in rows}
        versions = conn.execute("SELECT COUNT(*) AS n FROM schema_migrations").fetchone()["n"]

    assert REQUIRED_TABLES.issubset(tables)
    assert versions == 2
