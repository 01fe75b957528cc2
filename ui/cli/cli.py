"""CLI entrypoint for the task dependency graph engine."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from core.orchestrator import Orchestrator
from core.policy_runtime import load_effective_config
from ui.cli import commands

app = typer.Typer(help="Task dependency graph tracker")
project_app = typer.Typer(help="Project commands")
task_app = typer.Typer(help="Task commands")
deps_app = typer.Typer(help="Dependency commands")
config_app = typer.Typer(help="Configuration commands")


@project_app.command("create")
def project_create_cmd(
    name: str = typer.Argument(..., help="Project name"),
    client: Optional[str] = typer.Option(None, help="Client name"),
    description: Optional[str] = typer.Option(None, help="Project description"),
) -> None:
    """Create a project."""
    commands.project_create(name=name, client=client, description=description)


@project_app.command("list")
def project_list_cmd(client: Optional[str] = typer.Option(None, help="Filter by client")) -> None:
    """List projects, most recently active first."""
    commands.project_list(client=client)


@project_app.command("update")
def project_update_cmd(
    project_id: int,
    name: Optional[str] = typer.Option(None),
    client: Optional[str] = typer.Option(None),
    description: Optional[str] = typer.Option(None),
) -> None:
    """Update project fields."""
    commands.project_update(project_id, name=name, client=client, description=description)


@project_app.command("delete")
def project_delete_cmd(project_id: int) -> None:
    """Delete a project and all of its tasks."""
    commands.project_delete(project_id)


@project_app.command("summary")
def project_summary_cmd(project_id: int) -> None:
    """Show project summary statistics."""
    commands.project_summary(project_id)


@task_app.command("add")
def task_add_cmd(
    project_id: int = typer.Argument(..., help="Owning project ID"),
    title: str = typer.Argument(..., help="Task title"),
    description: Optional[str] = typer.Option(None),
    priority: str = typer.Option("medium", help="low, medium, high or critical"),
    category: Optional[str] = typer.Option(None),
    assignee: Optional[str] = typer.Option(None),
    due_date: Optional[str] = typer.Option(None, help="YYYY-MM-DD"),
    tags: Optional[str] = typer.Option(None, help="Comma separated tags"),
    depends_on: Optional[list[int]] = typer.Option(None, "--depends-on", help="Dependency task ID"),
) -> None:
    """Add a task, optionally with dependencies."""
    commands.task_add(
        project_id=project_id,
        title=title,
        description=description,
        priority=priority,
        category=category,
        assignee=assignee,
        due_date=due_date,
        tags=tags,
        depends_on=depends_on,
    )


@task_app.command("list")
def task_list_cmd(
    project_id: Optional[int] = typer.Option(None),
    status: Optional[str] = typer.Option(None),
    priority: Optional[str] = typer.Option(None),
    category: Optional[str] = typer.Option(None),
    assignee: Optional[str] = typer.Option(None),
    tag: Optional[str] = typer.Option(None),
    search: Optional[str] = typer.Option(None),
) -> None:
    """List tasks."""
    commands.task_list(
        {
            "project_id": project_id,
            "status": status,
            "priority": priority,
            "category": category,
            "assignee": assignee,
            "tag": tag,
            "search": search,
        }
    )


@task_app.command("show")
def task_show_cmd(task_id: int) -> None:
    """Show a task with dependencies and dependents."""
    commands.task_show(task_id)


@task_app.command("update")
def task_update_cmd(
    task_id: int,
    title: Optional[str] = typer.Option(None),
    description: Optional[str] = typer.Option(None),
    status: Optional[str] = typer.Option(None),
    priority: Optional[str] = typer.Option(None),
    category: Optional[str] = typer.Option(None),
    assignee: Optional[str] = typer.Option(None),
    due_date: Optional[str] = typer.Option(None),
    tags: Optional[str] = typer.Option(None),
) -> None:
    """Update task fields."""
    commands.task_update(
        task_id,
        {
            "title": title,
            "description": description,
            "status": status,
            "priority": priority,
            "category": category,
            "assignee": assignee,
            "due_date": due_date,
            "tags": tags,
        },
    )


@task_app.command("delete")
def task_delete_cmd(task_id: int) -> None:
    """Delete a task."""
    commands.task_delete(task_id)


@task_app.command("history")
def task_history_cmd(task_id: int, limit: int = typer.Option(50, min=1, max=500)) -> None:
    """Show task field history."""
    commands.task_history(task_id, limit=limit)


@task_app.command("blocked")
def task_blocked_cmd(project_id: Optional[int] = typer.Option(None)) -> None:
    """List blocked tasks."""
    commands.task_blocked(project_id)


@task_app.command("next")
def task_next_cmd(project_id: Optional[int] = typer.Option(None)) -> None:
    """List actionable tasks in work order."""
    commands.task_next(project_id)


@deps_app.command("add")
def deps_add_cmd(task_id: int, depends_on: int) -> None:
    """Make TASK_ID depend on DEPENDS_ON."""
    commands.deps_add(task_id, depends_on)


@deps_app.command("remove")
def deps_remove_cmd(task_id: int, depends_on: int) -> None:
    """Remove a dependency."""
    commands.deps_remove(task_id, depends_on)


@deps_app.command("list")
def deps_list_cmd(task_id: int) -> None:
    """List direct dependencies."""
    commands.deps_list(task_id)


@deps_app.command("check")
def deps_check_cmd(project_id: Optional[int] = typer.Option(None)) -> None:
    """Report dependency cycles present in the store."""
    commands.deps_check(project_id)


@config_app.command("show")
def config_show_cmd() -> None:
    """Show effective configuration."""
    commands.config_show()


app.add_typer(project_app, name="project")
app.add_typer(task_app, name="task")
app.add_typer(deps_app, name="deps")
app.add_typer(config_app, name="config")


def main() -> None:
    """Console script entrypoint."""
    config = load_effective_config(Orchestrator().root)
    logging.basicConfig(
        level=str(config.get("logging", {}).get("level", "WARNING")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app()


if __name__ == "__main__":
    main()
