"""Project summary statistics tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import NotFoundError
from core.orchestrator import Orchestrator, RuntimeBundle
from planner.project_summary import percentage
from store.sql_store import SQLStore


def build_engine(tmp_path: Path) -> RuntimeBundle:
    store = SQLStore(db_path=tmp_path / "summary.db")
    store.migrate()
    return Orchestrator.wire(store)


def test_percentage_rounds_half_up() -> None:
    assert percentage(0, 0) == 0
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67
    assert percentage(1, 8) == 13
    assert percentage(4, 4) == 100


def test_summary_counts_and_percentages(tmp_path: Path) -> None:
    engine = build_engine(tmp_path)
    project_id = engine.tasks.create_project("Summary")
    deployed = engine.tasks.create_task(project_id, "Deployed", priority="high")
    tested = engine.tasks.create_task(project_id, "Tested")
    waiting = engine.tasks.create_task(project_id, "Waiting", depends_on=[tested])
    engine.tasks.create_task(project_id, "Idle", priority="critical")
    engine.tasks.update_task(deployed, {"status": "deployed"})
    engine.tasks.update_task(tested, {"status": "developed"})

    summary = engine.summary.get_project_summary(project_id)
    assert summary["dependency_stats"] == {
        "total_dependencies": 1,
        "blocked_tasks": 1,
        "actionable_tasks": 1,
    }

    engine.tasks.update_task(tested, {"status": "tested"})
    summary = engine.summary.get_project_summary(project_id)

    assert summary["project_name"] == "Summary"
    assert summary["total"] == 4
    assert summary["deployed"] == 1
    assert summary["tested"] == 1
    assert summary["pending"] == 2
    assert summary["in-progress"] == 0
    assert summary["critical"] == 1
    assert summary["high"] == 1
    assert summary["medium"] == 2
    assert summary["low"] == 0
    assert summary["completion_percentage"] == 25
    assert summary["progress_percentage"] == 50
    assert summary["dependency_stats"]["blocked_tasks"] == 0
    assert summary["dependency_stats"]["actionable_tasks"] == 2
    assert waiting in [t["id"] for t in engine.graph.get_next_actionable(project_id)]


def test_empty_project_summary(tmp_path: Path) -> None:
    engine = build_engine(tmp_path)
    project_id = engine.tasks.create_project("Empty")

    summary = engine.summary.get_project_summary(project_id)
    assert summary["total"] == 0
    assert summary["completion_percentage"] == 0
    assert summary["progress_percentage"] == 0
    assert summary["dependency_stats"]["total_dependencies"] == 0


def test_summary_for_missing_project(tmp_path: Path) -> None:
    engine = build_engine(tmp_path)
    with pytest.raises(NotFoundError):
        engine.summary.get_project_summary(404)
