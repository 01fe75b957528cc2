"""Row serialization and shared write helpers used by engine components."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from store.schemas import ProjectRecord, TaskRecord, utc_now


def task_title(row: TaskRecord) -> str:
    """Title with fallback to description, then to a synthesized label."""
    return row.title or row.description or f"Task #{row.id}"


def task_to_dict(row: TaskRecord) -> dict[str, Any]:
    return {
        "id": row.id,
        "project_id": row.project_id,
        "title": task_title(row),
        "description": row.description,
        "status": row.status,
        "priority": row.priority,
        "category": row.category,
        "assignee": row.assignee,
        "due_date": row.due_date,
        "tags": list(row.tags or []),
        "created_at": row.created_at,
        "updated_at": row.updated_at,
        "completed_at": row.completed_at,
    }


def project_to_dict(row: ProjectRecord) -> dict[str, Any]:
    return {
        "id": row.id,
        "name": row.name,
        "client": row.client,
        "description": row.description,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    }


def touch_project(sess: Session, project_id: int, now: datetime | None = None) -> None:
    """Bump a project's updated_at so task activity reorders projects."""
    sess.query(ProjectRecord).filter(ProjectRecord.id == project_id).update(
        {ProjectRecord.updated_at: now or utc_now()}, synchronize_session=False
    )
