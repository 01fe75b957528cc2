"""Schema migration tests."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import inspect, text

from store.migrations import MIGRATIONS
from store.sql_store import SQLStore


def test_fresh_database_reaches_latest_version(tmp_path: Path) -> None:
    store = SQLStore(db_path=tmp_path / "fresh.db")
    assert store.migrate() == len(MIGRATIONS)
    assert store.migrate() == len(MIGRATIONS)

    tables = set(inspect(store.engine).get_table_names())
    assert {"projects", "tasks", "dependencies", "history", "schema_version"} <= tables
    store.close()


def test_legacy_tasks_table_is_upgraded(tmp_path: Path) -> None:
    db_path = tmp_path / "legacy.db"
    store = SQLStore(db_path=db_path)
    with store.engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE projects (id INTEGER PRIMARY KEY, name VARCHAR(255) NOT NULL, "
                "client VARCHAR(255), description TEXT, created_at DATETIME, updated_at DATETIME)"
            )
        )
        conn.execute(
            text(
                "CREATE TABLE tasks (id INTEGER PRIMARY KEY, project_id INTEGER NOT NULL, "
                "description TEXT, status VARCHAR(32), priority VARCHAR(16), "
                "category VARCHAR(255), assignee VARCHAR(255), due_date DATE, "
                "created_at DATETIME, updated_at DATETIME)"
            )
        )
        conn.execute(text("INSERT INTO projects (id, name) VALUES (1, 'Old')"))
        conn.execute(
            text(
                "INSERT INTO tasks (id, project_id, description, status, priority) "
                "VALUES (1, 1, 'Migrate me', 'pending', 'medium')"
            )
        )

    assert store.migrate() == len(MIGRATIONS)

    columns = {col["name"] for col in inspect(store.engine).get_columns("tasks")}
    assert {"title", "tags", "completed_at"} <= columns
    with store.engine.connect() as conn:
        title = conn.execute(text("SELECT title FROM tasks WHERE id = 1")).scalar_one()
    assert title == "Migrate me"
    store.close()
