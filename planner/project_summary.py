"""Per-project aggregate statistics, recomputed on every read."""

from __future__ import annotations

import logging
import math
from typing import Any

from sqlalchemy import func

from core.errors import NotFoundError
from planner.dependency_graph import DependencyGraph
from store.schemas import DependencyRecord, ProjectRecord, TaskRecord
from store.sql_store import SQLStore
from store.types import TaskPriority, TaskStatus

logger = logging.getLogger("tg.summary")


def percentage(part: int, total: int) -> int:
    """Whole-number percentage rounded half up; 0 when total is 0."""
    if total <= 0:
        return 0
    return int(math.floor(part * 100 / total + 0.5))


class ProjectSummary:
    """Builds project summaries from the store and the dependency graph."""

    def __init__(self, sql_store: SQLStore, graph: DependencyGraph) -> None:
        self.sql_store = sql_store
        self.graph = graph

    def get_project_summary(self, project_id: int) -> dict[str, Any]:
        with self.sql_store.session() as sess:
            project = sess.get(ProjectRecord, project_id)
            if project is None:
                raise NotFoundError("Project", project_id)

            status_counts = dict(
                sess.query(TaskRecord.status, func.count(TaskRecord.id))
                .filter(TaskRecord.project_id == project_id)
                .group_by(TaskRecord.status)
                .all()
            )
            priority_counts = dict(
                sess.query(TaskRecord.priority, func.count(TaskRecord.id))
                .filter(TaskRecord.project_id == project_id)
                .group_by(TaskRecord.priority)
                .all()
            )
            total_dependencies = (
                sess.query(DependencyRecord)
                .join(TaskRecord, TaskRecord.id == DependencyRecord.task_id)
                .filter(TaskRecord.project_id == project_id)
                .count()
            )
            blocked = len(self.graph.blocked_rows(sess, project_id))
            actionable = len(self.graph.actionable_rows(sess, project_id))
            project_name = project.name

        summary: dict[str, Any] = {
            "project_id": project_id,
            "project_name": project_name,
            "total": sum(status_counts.values()),
        }
        for status in TaskStatus:
            summary[status.value] = int(status_counts.get(status.value, 0))
        for priority in TaskPriority:
            summary[priority.value] = int(priority_counts.get(priority.value, 0))

        total = summary["total"]
        deployed = summary[TaskStatus.DEPLOYED.value]
        progressed = (
            summary[TaskStatus.DEVELOPED.value] + summary[TaskStatus.TESTED.value] + deployed
        )
        summary["completion_percentage"] = percentage(deployed, total)
        summary["progress_percentage"] = percentage(progressed, total)
        summary["dependency_stats"] = {
            "total_dependencies": total_dependencies,
            "blocked_tasks": blocked,
            "actionable_tasks": actionable,
        }
        logger.debug("Summary computed project_id=%s total=%s", project_id, total)
        return summary
