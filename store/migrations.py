"""Ordered schema migrations tracked in the ``schema_version`` table."""

from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy import Connection, Engine, inspect, text

from store.schemas import Base, SchemaVersionRecord

logger = logging.getLogger("tg.migrations")

Migration = Callable[[Connection], None]


def _has_column(conn: Connection, table: str, column: str) -> bool:
    return any(col["name"] == column for col in inspect(conn).get_columns(table))


def _create_baseline(conn: Connection) -> None:
    Base.metadata.create_all(conn)


def _upgrade_legacy_tasks(conn: Connection) -> None:
    # Databases created before titles, tags and completion stamps existed.
    for column, decl in (
        ("title", "TEXT"),
        ("tags", "JSON"),
        ("completed_at", "DATETIME"),
    ):
        if not _has_column(conn, "tasks", column):
            conn.execute(text(f"ALTER TABLE tasks ADD COLUMN {column} {decl}"))
            logger.info("Migration: added column tasks.%s", column)

    conn.execute(text("UPDATE tasks SET title = description WHERE title IS NULL"))
    conn.execute(text("CREATE INDEX IF NOT EXISTS idx_history_task ON history(task_id)"))
    conn.execute(text("CREATE INDEX IF NOT EXISTS idx_tasks_tags ON tasks(tags)"))


MIGRATIONS: list[Migration] = [
    _create_baseline,
    _upgrade_legacy_tasks,
]


def _current_version(conn: Connection) -> int:
    SchemaVersionRecord.__table__.create(conn, checkfirst=True)
    row = conn.execute(text("SELECT version FROM schema_version LIMIT 1")).first()
    if row is None:
        conn.execute(text("INSERT INTO schema_version (version) VALUES (0)"))
        return 0
    return int(row[0])


def run_migrations(engine: Engine) -> int:
    """Apply every pending migration and return the resulting version."""
    with engine.begin() as conn:
        version = _current_version(conn)
        while version < len(MIGRATIONS):
            MIGRATIONS[version](conn)
            version += 1
            conn.execute(text("UPDATE schema_version SET version = :v"), {"v": version})
            logger.info("Migration applied version=%s", version)
    return version
