"""Typer command handlers."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any

import typer

from core.errors import NotFoundError, TaskGraphError
from core.orchestrator import Orchestrator, RuntimeBundle


@contextmanager
def _runtime(root: Path | None = None) -> Iterator[RuntimeBundle]:
    bundle: RuntimeBundle | None = None
    try:
        bundle = Orchestrator(root=root).build()
        yield bundle
    except TaskGraphError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        if bundle is not None:
            bundle.close()


def _emit(payload: object) -> None:
    typer.echo(json.dumps(_json_safe(payload), indent=2))


def _provided(**fields: Any) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


# ---- projects ----


def project_create(name: str, client: str | None, description: str | None) -> None:
    """Create a project."""
    with _runtime() as bundle:
        project_id = bundle.tasks.create_project(name, client=client, description=description)
        typer.echo(f'Project "{name}" created with ID {project_id}')


def project_list(client: str | None) -> None:
    """List projects."""
    with _runtime() as bundle:
        _emit(bundle.tasks.list_projects(client=client))


def project_update(
    project_id: int, name: str | None, client: str | None, description: str | None
) -> None:
    """Patch project fields."""
    with _runtime() as bundle:
        bundle.tasks.update_project(
            project_id, _provided(name=name, client=client, description=description)
        )
        typer.echo(f"Project {project_id} updated")


def project_delete(project_id: int) -> None:
    """Delete a project and everything it owns."""
    with _runtime() as bundle:
        if not bundle.tasks.delete_project(project_id):
            raise NotFoundError("Project", project_id)
        typer.echo(f"Project {project_id} deleted")


def project_summary(project_id: int) -> None:
    """Show project statistics."""
    with _runtime() as bundle:
        _emit(bundle.summary.get_project_summary(project_id))


# ---- tasks ----


def task_add(
    project_id: int,
    title: str,
    description: str | None,
    priority: str,
    category: str | None,
    assignee: str | None,
    due_date: str | None,
    tags: str | None,
    depends_on: list[int] | None,
) -> None:
    """Create a task."""
    with _runtime() as bundle:
        task_id = bundle.tasks.create_task(
            project_id,
            title=title,
            description=description,
            priority=priority,
            category=category,
            assignee=assignee,
            due_date=due_date,
            tags=tags,
            depends_on=depends_on or [],
        )
        typer.echo(f"Task created with ID {task_id}")


def task_list(filters: dict[str, Any]) -> None:
    """List tasks matching filters."""
    with _runtime() as bundle:
        _emit(bundle.tasks.get_tasks(_provided(**filters)))


def task_show(task_id: int) -> None:
    """Show one task with its dependencies."""
    with _runtime() as bundle:
        _emit(bundle.tasks.get_task_by_id(task_id))


def task_update(task_id: int, fields: dict[str, Any]) -> None:
    """Patch task fields."""
    with _runtime() as bundle:
        changed = bundle.tasks.update_task(task_id, _provided(**fields))
        typer.echo(f"Task {task_id} updated" if changed else f"Task {task_id} unchanged")


def task_delete(task_id: int) -> None:
    """Delete a task."""
    with _runtime() as bundle:
        if not bundle.tasks.delete_task(task_id):
            raise NotFoundError("Task", task_id)
        typer.echo(f"Task {task_id} deleted")


def task_history(task_id: int, limit: int) -> None:
    """Show field history, newest first."""
    with _runtime() as bundle:
        _emit(bundle.tasks.get_task_history(task_id, limit))


def task_blocked(project_id: int | None) -> None:
    """List blocked tasks."""
    with _runtime() as bundle:
        _emit(bundle.graph.get_blocked_tasks(project_id))


def task_next(project_id: int | None) -> None:
    """List actionable tasks in work order."""
    with _runtime() as bundle:
        _emit(bundle.graph.get_next_actionable(project_id))


# ---- dependencies ----


def deps_add(task_id: int, depends_on: int) -> None:
    """Add a dependency edge."""
    with _runtime() as bundle:
        added = bundle.graph.add_dependency(task_id, depends_on)
        typer.echo("Dependency added" if added else "Dependency already exists")


def deps_remove(task_id: int, depends_on: int) -> None:
    """Remove a dependency edge."""
    with _runtime() as bundle:
        if not bundle.graph.remove_dependency(task_id, depends_on):
            raise NotFoundError("Dependency", f"{task_id}->{depends_on}")
        typer.echo("Dependency removed")


def deps_list(task_id: int) -> None:
    """List direct dependencies of a task."""
    with _runtime() as bundle:
        _emit(bundle.graph.get_task_dependencies(task_id))


def deps_check(project_id: int | None) -> None:
    """Audit the edge table for cycles."""
    with _runtime() as bundle:
        cycles = bundle.graph.find_cycles(project_id)
        if cycles:
            _emit({"cycles": cycles})
            raise typer.Exit(code=1)
        typer.echo("No dependency cycles found")


def config_show() -> None:
    """Show effective runtime config."""
    with _runtime() as bundle:
        _emit(bundle.config)


def _json_safe(payload: object) -> object:
    """Convert datetimes and dates to strings for JSON output."""
    if isinstance(payload, dict):
        return {k: _json_safe(v) for k, v in payload.items()}
    if isinstance(payload, list):
        return [_json_safe(v) for v in payload]
    if isinstance(payload, date):
        return payload.isoformat()
    return payload
