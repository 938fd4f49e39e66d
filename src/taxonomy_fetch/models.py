"""SQLite schema, migrations, and data access helpers."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from .utils import json_dumps, utc_now_iso

MIGRATIONS: list[tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            applied_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS ai_providers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            base_url TEXT NOT NULL,
            model_name TEXT NOT NULL,
            api_key TEXT,
            dialect TEXT NOT NULL,
            is_active INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE UNIQUE INDEX IF NOT EXISTS idx_ai_providers_single_active
            ON ai_providers(is_active) WHERE is_active = 1;

        CREATE TABLE IF NOT EXISTS ai_fetch_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            kind TEXT NOT NULL,
            context TEXT NOT NULL DEFAULT '',
            provider TEXT,
            mode TEXT NOT NULL,
            item_count INTEGER NOT NULL DEFAULT 0,
            error TEXT,
            latency_ms INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_ai_fetch_logs_created ON ai_fetch_logs(created_at);
        """,
    ),
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS boards (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            state_id INTEGER,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            UNIQUE(state_id, name)
        );

        CREATE TABLE IF NOT EXISTS universities (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            state_id INTEGER,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            UNIQUE(state_id, name)
        );

        CREATE TABLE IF NOT EXISTS papers_stages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            category_id INTEGER,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            UNIQUE(category_id, name)
        );

        CREATE TABLE IF NOT EXISTS streams (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE COLLATE NOCASE,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS subjects (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            category_id INTEGER,
            board_id INTEGER,
            university_id INTEGER,
            class_id INTEGER,
            stream_id INTEGER,
            semester_id INTEGER,
            degree_type_id INTEGER,
            paper_stage_id INTEGER,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS chapters (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            subject_id INTEGER NOT NULL,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            UNIQUE(subject_id, name),
            FOREIGN KEY(subject_id) REFERENCES subjects(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS mcq_pool (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            question TEXT NOT NULL,
            options_json TEXT NOT NULL,
            correct_option INTEGER NOT NULL,
            explanation TEXT NOT NULL DEFAULT '',
            subject TEXT NOT NULL DEFAULT '',
            chapter TEXT NOT NULL DEFAULT '',
            is_approved INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_subjects_scope ON subjects(board_id, class_id, stream_id);
        CREATE INDEX IF NOT EXISTS idx_chapters_subject_id ON chapters(subject_id);
        """,
    ),
]

# table -> parent column for the simple (parent, name) taxonomy tables
NAMED_TABLES: Dict[str, str] = {
    "boards": "state_id",
    "universities": "state_id",
    "papers_stages": "category_id",
    "chapters": "subject_id",
}

SUBJECT_SCOPE_COLUMNS = (
    "category_id",
    "board_id",
    "university_id",
    "class_id",
    "stream_id",
    "semester_id",
    "degree_type_id",
    "paper_stage_id",
)


def get_connection(db_path: str) -> sqlite3.Connection:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def apply_migrations(db_path: str) -> None:
    with get_connection(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version INTEGER PRIMARY KEY,
                applied_at TEXT NOT NULL
            )
            """
        )
        applied = {
            row["version"]
            for row in conn.execute("SELECT version FROM schema_migrations").fetchall()
        }
        for version, sql in MIGRATIONS:
            if version in applied:
                continue
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_migrations(version, applied_at) VALUES (?, ?)",
                (version, utc_now_iso()),
            )
        conn.commit()


def _row_to_dict(row: sqlite3.Row | None) -> Dict[str, Any] | None:
    if row is None:
        return None
    return dict(row)


# --- AI providers ---


def create_provider(
    conn: sqlite3.Connection,
    name: str,
    base_url: str,
    model_name: str,
    api_key: str | None,
    dialect: str,
) -> Dict[str, Any]:
    cur = conn.execute(
        """
        INSERT INTO ai_providers(name, base_url, model_name, api_key, dialect, is_active, created_at)
        VALUES (?, ?, ?, ?, ?, 0, ?)
        """,
        (name, base_url, model_name, api_key, dialect, utc_now_iso()),
    )
    conn.commit()
    row = conn.execute("SELECT * FROM ai_providers WHERE id = ?", (cur.lastrowid,)).fetchone()
    return dict(row)


def get_provider_row(conn: sqlite3.Connection, provider_id: int) -> Dict[str, Any] | None:
    row = conn.execute("SELECT * FROM ai_providers WHERE id = ?", (provider_id,)).fetchone()
    return _row_to_dict(row)


def get_active_provider_row(conn: sqlite3.Connection) -> Dict[str, Any] | None:
    row = conn.execute("SELECT * FROM ai_providers WHERE is_active = 1 LIMIT 1").fetchone()
    return _row_to_dict(row)


def list_provider_rows(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    rows = conn.execute("SELECT * FROM ai_providers ORDER BY id ASC").fetchall()
    return [dict(r) for r in rows]


PROVIDER_EDITABLE_COLUMNS = ("name", "base_url", "model_name", "api_key", "dialect")


def update_provider_row(
    conn: sqlite3.Connection,
    provider_id: int,
    fields: Mapping[str, Any],
) -> Dict[str, Any] | None:
    """Updates the given provider columns; unknown columns raise ValueError."""
    unknown = set(fields) - set(PROVIDER_EDITABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Unknown provider fields: {sorted(unknown)}")
    if fields:
        columns = [col for col in PROVIDER_EDITABLE_COLUMNS if col in fields]
        with conn:
            conn.execute(
                f"UPDATE ai_providers SET {', '.join(f'{col} = ?' for col in columns)} WHERE id = ?",
                (*[fields[col] for col in columns], provider_id),
            )
    return get_provider_row(conn, provider_id)


def set_provider_active(conn: sqlite3.Connection, provider_id: int, is_active: bool) -> Dict[str, Any] | None:
    with conn:
        if is_active:
            conn.execute("UPDATE ai_providers SET is_active = 0")
        conn.execute(
            "UPDATE ai_providers SET is_active = ? WHERE id = ?",
            (1 if is_active else 0, provider_id),
        )
    return get_provider_row(conn, provider_id)


# --- fetch logs ---


def log_fetch_attempt(
    conn: sqlite3.Connection,
    kind: str,
    context: str,
    provider: str | None,
    mode: str,
    item_count: int,
    error: str | None = None,
    latency_ms: int = 0,
) -> Dict[str, Any]:
    cur = conn.execute(
        """
        INSERT INTO ai_fetch_logs(kind, context, provider, mode, item_count, error, latency_ms, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (kind, context, provider, mode, item_count, error, latency_ms, utc_now_iso()),
    )
    conn.commit()
    row = conn.execute("SELECT * FROM ai_fetch_logs WHERE id = ?", (cur.lastrowid,)).fetchone()
    return dict(row)


def list_fetch_logs(conn: sqlite3.Connection, limit: int = 50) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT * FROM ai_fetch_logs ORDER BY id DESC LIMIT ?",
        (limit,),
    ).fetchall()
    return [dict(r) for r in rows]


# --- taxonomy upserts ---


def insert_names(
    conn: sqlite3.Connection,
    table: str,
    parent_id: int | None,
    names: Iterable[str],
) -> tuple[List[Dict[str, Any]], int]:
    """Inserts names under a parent, skipping conflicts. Returns (saved rows, existing count)."""
    parent_col = NAMED_TABLES[table]
    saved: List[Dict[str, Any]] = []
    existing = 0
    with conn:
        for name in names:
            cur = conn.execute(
                f"""
                INSERT INTO {table}(name, {parent_col}, is_active, created_at)
                VALUES (?, ?, 1, ?)
                ON CONFLICT({parent_col}, name) DO NOTHING
                """,
                (name, parent_id, utc_now_iso()),
            )
            if cur.rowcount:
                row = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (cur.lastrowid,)).fetchone()
                saved.append(dict(row))
            else:
                existing += 1
    return saved, existing


def insert_subjects(
    conn: sqlite3.Connection,
    names: Iterable[str],
    scope: Mapping[str, Any],
) -> tuple[List[Dict[str, Any]], int]:
    """Inserts subjects unless the same name exists for board/class/stream (NULL-equal)."""
    values = [scope.get(col) for col in SUBJECT_SCOPE_COLUMNS]
    saved: List[Dict[str, Any]] = []
    existing = 0
    with conn:
        for name in names:
            cur = conn.execute(
                f"""
                INSERT INTO subjects(name, {", ".join(SUBJECT_SCOPE_COLUMNS)}, is_active, created_at)
                SELECT ?, ?, ?, ?, ?, ?, ?, ?, ?, 1, ?
                WHERE NOT EXISTS (
                    SELECT 1 FROM subjects
                    WHERE board_id IS ? AND class_id IS ? AND stream_id IS ? AND name = ?
                )
                """,
                (
                    name,
                    *values,
                    utc_now_iso(),
                    scope.get("board_id"),
                    scope.get("class_id"),
                    scope.get("stream_id"),
                    name,
                ),
            )
            if cur.rowcount:
                row = conn.execute("SELECT * FROM subjects WHERE id = ?", (cur.lastrowid,)).fetchone()
                saved.append(dict(row))
            else:
                existing += 1
    return saved, existing


def upsert_streams(conn: sqlite3.Connection, names: Iterable[str]) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    with conn:
        for name in names:
            conn.execute(
                "INSERT INTO streams(name, created_at) VALUES (?, ?) ON CONFLICT(name) DO NOTHING",
                (name, utc_now_iso()),
            )
            row = conn.execute(
                "SELECT * FROM streams WHERE name = ? COLLATE NOCASE LIMIT 1",
                (name,),
            ).fetchone()
            if row is not None and dict(row) not in rows:
                rows.append(dict(row))
    return rows


def list_streams(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    rows = conn.execute("SELECT * FROM streams ORDER BY name ASC").fetchall()
    return [dict(r) for r in rows]


def list_named(conn: sqlite3.Connection, table: str) -> List[Dict[str, Any]]:
    if table != "subjects" and table not in NAMED_TABLES:
        raise ValueError(f"Unknown taxonomy table: {table}")
    rows = conn.execute(f"SELECT * FROM {table} ORDER BY name ASC").fetchall()
    return [dict(r) for r in rows]


def insert_mcqs(conn: sqlite3.Connection, mcqs: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    saved: List[Dict[str, Any]] = []
    with conn:
        for mcq in mcqs:
            cur = conn.execute(
                """
                INSERT INTO mcq_pool(question, options_json, correct_option, explanation, subject, chapter, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    mcq["question"],
                    json_dumps(mcq["options"]),
                    mcq["correct_option"],
                    mcq.get("explanation", ""),
                    mcq.get("subject", ""),
                    mcq.get("chapter", ""),
                    utc_now_iso(),
                ),
            )
            row = conn.execute("SELECT * FROM mcq_pool WHERE id = ?", (cur.lastrowid,)).fetchone()
            saved.append(dict(row))
    return saved
