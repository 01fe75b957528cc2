"""CLI smoke tests."""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path

import pytest
from typer.testing import CliRunner

from core.errors import StorageError
from core.policy_runtime import ENV_DB_PATH
from ui.cli.cli import app
from ui.cli.commands import _json_safe

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    db_path = tmp_path / "cli.db"
    monkeypatch.setenv(ENV_DB_PATH, str(db_path))
    return db_path


def test_project_and_task_flow() -> None:
    result = runner.invoke(app, ["project", "create", "Website", "--client", "Acme"])
    assert result.exit_code == 0
    assert 'Project "Website" created with ID 1' in result.stdout

    assert runner.invoke(app, ["task", "add", "1", "Design"]).exit_code == 0
    result = runner.invoke(app, ["task", "add", "1", "Build", "--depends-on", "1", "--tags", "web,ui"])
    assert result.exit_code == 0
    assert "Task created with ID 2" in result.stdout

    blocked = json.loads(runner.invoke(app, ["task", "blocked", "--project-id", "1"]).stdout)
    assert [t["id"] for t in blocked] == [2]

    result = runner.invoke(app, ["task", "update", "1", "--status", "tested"])
    assert "Task 1 updated" in result.stdout

    actionable = json.loads(runner.invoke(app, ["task", "next", "--project-id", "1"]).stdout)
    assert [t["id"] for t in actionable] == [2]

    detail = json.loads(runner.invoke(app, ["task", "show", "2"]).stdout)
    assert detail["tags"] == ["web", "ui"]
    assert [d["id"] for d in detail["dependencies"]] == [1]

    summary = json.loads(runner.invoke(app, ["project", "summary", "1"]).stdout)
    assert summary["total"] == 2
    assert summary["progress_percentage"] == 50


def test_engine_errors_exit_nonzero() -> None:
    runner.invoke(app, ["project", "create", "Website"])
    runner.invoke(app, ["task", "add", "1", "A"])
    runner.invoke(app, ["task", "add", "1", "B", "--depends-on", "1"])

    result = runner.invoke(app, ["deps", "add", "1", "2"])
    assert result.exit_code == 1
    assert "would create a cycle" in result.output

    result = runner.invoke(app, ["task", "update", "2", "--status", "deployed"])
    assert result.exit_code == 1
    assert "1 unresolved dependency" in result.output

    result = runner.invoke(app, ["task", "update", "1", "--status", "finished"])
    assert result.exit_code == 1
    assert "Invalid status" in result.output

    result = runner.invoke(app, ["task", "delete", "99"])
    assert result.exit_code == 1
    assert "Task with ID 99 not found" in result.output


def test_deps_commands() -> None:
    runner.invoke(app, ["project", "create", "Deps"])
    runner.invoke(app, ["task", "add", "1", "A"])
    runner.invoke(app, ["task", "add", "1", "B"])

    assert "Dependency added" in runner.invoke(app, ["deps", "add", "2", "1"]).stdout
    assert "Dependency already exists" in runner.invoke(app, ["deps", "add", "2", "1"]).stdout

    listed = json.loads(runner.invoke(app, ["deps", "list", "2"]).stdout)
    assert [d["id"] for d in listed] == [1]

    check = runner.invoke(app, ["deps", "check"])
    assert check.exit_code == 0
    assert "No dependency cycles found" in check.stdout

    assert "Dependency removed" in runner.invoke(app, ["deps", "remove", "2", "1"]).stdout
    assert runner.invoke(app, ["deps", "remove", "2", "1"]).exit_code == 1


def test_config_show_reports_db_override(isolated_db: Path) -> None:
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["paths"]["db_path"] == str(isolated_db)


def test_unopenable_database_reports_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # A directory cannot be opened as a SQLite database file.
    monkeypatch.setenv(ENV_DB_PATH, str(tmp_path))

    result = runner.invoke(app, ["project", "list"])
    assert result.exit_code == 1
    assert "Error:" in result.output
    assert not isinstance(result.exception, StorageError)


def test_json_output_renders_dates() -> None:
    payload = {"due": date(2026, 11, 1), "items": [datetime(2026, 1, 2, 3, 4, 5)], "n": 3}
    assert _json_safe(payload) == {
        "due": "2026-11-01",
        "items": ["2026-01-02T03:04:05"],
        "n": 3,
    }
