"""Project and task lifecycle over SQL persistence."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from typing import Any

from sqlalchemy import func, or_

from core.errors import DependenciesUnresolvedError, InvalidInputError, NotFoundError
from governance.history_tracker import HistoryTracker
from planner.dependency_graph import DependencyGraph
from store.records import project_to_dict, task_to_dict, touch_project
from store.schemas import ProjectRecord, TaskRecord, utc_now
from store.sql_store import SQLStore
from store.types import (
    TRACKED_FIELDS,
    ProjectCreate,
    ProjectPatch,
    TaskCreate,
    TaskFilter,
    TaskPatch,
    TaskStatus,
    validate_payload,
)

logger = logging.getLogger("tg.tasks")


class TaskManager:
    """Creates, updates and deletes projects and tasks.

    Each public mutation is one unit of work: field writes, history rows,
    dependency edges and the owning project's timestamp bump commit together.
    """

    def __init__(
        self,
        sql_store: SQLStore,
        graph: DependencyGraph,
        history: HistoryTracker,
        history_limit: int = 50,
    ) -> None:
        self.sql_store = sql_store
        self.graph = graph
        self.history = history
        self.history_limit = history_limit

    # ---- projects ----

    def create_project(
        self, name: str, client: str | None = None, description: str | None = None
    ) -> int:
        """Insert project record and return its id."""
        payload = validate_payload(
            ProjectCreate, {"name": name, "client": client, "description": description}
        )
        record = ProjectRecord(
            name=payload.name, client=payload.client, description=payload.description
        )
        with self.sql_store.session() as sess:
            sess.add(record)
            sess.flush()
            project_id = record.id
        logger.info("Project created id=%s name=%s", project_id, payload.name)
        return project_id

    def get_project(self, project_id: int) -> dict[str, Any] | None:
        with self.sql_store.session() as sess:
            row = sess.get(ProjectRecord, project_id)
            return project_to_dict(row) if row else None

    def list_projects(self, client: str | None = None) -> list[dict[str, Any]]:
        """List projects with task counts, most recently active first."""
        with self.sql_store.session() as sess:
            query = (
                sess.query(ProjectRecord, func.count(TaskRecord.id))
                .outerjoin(TaskRecord, TaskRecord.project_id == ProjectRecord.id)
                .group_by(ProjectRecord.id)
            )
            if client:
                query = query.filter(ProjectRecord.client == client)
            rows = query.order_by(ProjectRecord.updated_at.desc(), ProjectRecord.id.desc()).all()
            result = []
            for row, task_count in rows:
                payload = project_to_dict(row)
                payload["task_count"] = int(task_count)
                result.append(payload)
            return result

    def update_project(self, project_id: int, patch: ProjectPatch | Mapping[str, Any]) -> bool:
        """Apply a partial project update."""
        changes = validate_payload(ProjectPatch, patch).changes()
        if not changes:
            raise InvalidInputError("No valid fields to update")
        with self.sql_store.session() as sess:
            row = sess.get(ProjectRecord, project_id)
            if row is None:
                raise NotFoundError("Project", project_id)
            for field, value in changes.items():
                setattr(row, field, value)
            row.updated_at = utc_now()
        logger.info("Project updated id=%s fields=%s", project_id, sorted(changes))
        return True

    def delete_project(self, project_id: int) -> bool:
        """Delete a project; tasks, edges and history cascade."""
        with self.sql_store.session() as sess:
            deleted = (
                sess.query(ProjectRecord)
                .filter(ProjectRecord.id == project_id)
                .delete(synchronize_session=False)
            )
        if deleted:
            logger.info("Project deleted id=%s", project_id)
        return deleted > 0

    # ---- tasks ----

    def create_task(
        self,
        project_id: int,
        title: str | None = None,
        description: str | None = None,
        priority: str = "medium",
        category: str | None = None,
        assignee: str | None = None,
        due_date: date | str | None = None,
        tags: list[str] | str | None = None,
        depends_on: list[int] | None = None,
    ) -> int:
        """Insert a task and its initial dependency edges atomically.

        Any rejected dependency (self reference, missing task, cycle) rolls
        back the whole call, including the task row.
        """
        payload = validate_payload(
            TaskCreate,
            {
                "project_id": project_id,
                "title": title,
                "description": description,
                "priority": priority,
                "category": category,
                "assignee": assignee,
                "due_date": due_date,
                "tags": tags,
                "depends_on": depends_on or [],
            },
        )
        if not (payload.title or payload.description):
            raise InvalidInputError("title or description is required")

        with self.sql_store.session() as sess:
            if sess.get(ProjectRecord, payload.project_id) is None:
                raise NotFoundError("Project", payload.project_id)
            now = utc_now()
            record = TaskRecord(
                project_id=payload.project_id,
                title=payload.title or payload.description,
                description=payload.description,
                status=TaskStatus.PENDING.value,
                priority=str(payload.priority),
                category=payload.category,
                assignee=payload.assignee,
                due_date=payload.due_date,
                tags=payload.tags,
                created_at=now,
                updated_at=now,
            )
            sess.add(record)
            sess.flush()
            task_id = record.id
            for dep_id in dict.fromkeys(payload.depends_on):
                self.graph.attach(sess, task_id, dep_id)
            touch_project(sess, payload.project_id, now)

        logger.info(
            "Task created id=%s project_id=%s deps=%s",
            task_id,
            payload.project_id,
            len(payload.depends_on),
        )
        return task_id

    def update_task(self, task_id: int, patch: TaskPatch | Mapping[str, Any]) -> bool:
        """Apply a partial task update.

        Returns True when at least one field changed and False for a patch
        that matches the stored values (nothing is written in that case).
        """
        changes = validate_payload(TaskPatch, patch).changes()
        if not changes:
            raise InvalidInputError("No valid fields to update")

        with self.sql_store.session() as sess:
            row = sess.get(TaskRecord, task_id)
            if row is None:
                raise NotFoundError("Task", task_id)

            if "title" in changes and not changes["title"]:
                description = changes.get("description", row.description)
                changes["title"] = description or f"Task #{row.id}"

            current = {field: getattr(row, field) for field in TRACKED_FIELDS}
            field_changes = self.history.diff(current, changes)
            if not field_changes:
                logger.debug("Task update is a no-op id=%s", task_id)
                return False

            entering_deploy = (
                changes.get("status") == TaskStatus.DEPLOYED.value
                and row.status != TaskStatus.DEPLOYED.value
            )
            if entering_deploy:
                open_count = self.graph.count_incomplete(sess, task_id)
                if open_count:
                    logger.info(
                        "Rejected deploy task_id=%s unresolved=%s", task_id, open_count
                    )
                    raise DependenciesUnresolvedError(task_id, open_count)

            self.history.record(sess, task_id, field_changes)
            now = utc_now()
            for change in field_changes:
                setattr(row, change.field, changes[change.field])
            if entering_deploy and row.completed_at is None:
                row.completed_at = now
            row.updated_at = now
            touch_project(sess, row.project_id, now)

        logger.info(
            "Task updated id=%s fields=%s", task_id, [c.field for c in field_changes]
        )
        return True

    def delete_task(self, task_id: int) -> bool:
        """Delete a task; its edges (both directions) and history cascade."""
        with self.sql_store.session() as sess:
            row = sess.get(TaskRecord, task_id)
            if row is None:
                return False
            project_id = row.project_id
            sess.query(TaskRecord).filter(TaskRecord.id == task_id).delete(
                synchronize_session=False
            )
            touch_project(sess, project_id)
        logger.info("Task deleted id=%s project_id=%s", task_id, project_id)
        return True

    def get_task(self, task_id: int) -> dict[str, Any] | None:
        with self.sql_store.session() as sess:
            row = sess.get(TaskRecord, task_id)
            return task_to_dict(row) if row else None

    def get_task_by_id(self, task_id: int) -> dict[str, Any]:
        """Task with its dependencies, dependents and open dependency count."""
        with self.sql_store.session() as sess:
            row = sess.get(TaskRecord, task_id)
            if row is None:
                raise NotFoundError("Task", task_id)
            payload = task_to_dict(row)
            payload["dependencies"] = self.graph.dependency_rows(
                sess, task_id, incomplete_only=False
            )
            payload["dependents"] = self.graph.dependent_ids(sess, task_id)
            payload["incomplete_dependency_count"] = self.graph.count_incomplete(sess, task_id)
            return payload

    def get_tasks(self, filters: TaskFilter | Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """List tasks matching filters, newest first."""
        criteria = validate_payload(TaskFilter, filters or {})
        with self.sql_store.session() as sess:
            query = sess.query(TaskRecord)
            if criteria.project_id is not None:
                query = query.filter(TaskRecord.project_id == criteria.project_id)
            if criteria.status is not None:
                query = query.filter(TaskRecord.status == criteria.status.value)
            if criteria.priority is not None:
                query = query.filter(TaskRecord.priority == criteria.priority.value)
            if criteria.category:
                query = query.filter(TaskRecord.category == criteria.category)
            if criteria.assignee:
                query = query.filter(TaskRecord.assignee == criteria.assignee)
            if criteria.search:
                term = f"%{criteria.search}%"
                query = query.filter(
                    or_(TaskRecord.title.like(term), TaskRecord.description.like(term))
                )
            rows = query.order_by(TaskRecord.created_at.desc(), TaskRecord.id.desc()).all()
            tasks = [task_to_dict(row) for row in rows]
        if criteria.tag:
            tasks = [task for task in tasks if criteria.tag in task["tags"]]
        return tasks

    def get_task_history(self, task_id: int, limit: int | None = None) -> list[dict[str, Any]]:
        """History entries for a task, newest first."""
        return self.history.list_for_task(task_id, limit or self.history_limit)
