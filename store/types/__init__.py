"""Typed payload models for the task graph engine."""

from store.types.project import ProjectCreate, ProjectPatch
from store.types.task import (
    ACTIONABLE_STATUSES,
    PRIORITY_RANK,
    RESOLVED_STATUSES,
    TRACKED_FIELDS,
    TaskCreate,
    TaskFilter,
    TaskPatch,
    TaskPriority,
    TaskStatus,
)
from store.types.validation import validate_payload

__all__ = [
    "ACTIONABLE_STATUSES",
    "PRIORITY_RANK",
    "RESOLVED_STATUSES",
    "TRACKED_FIELDS",
    "ProjectCreate",
    "ProjectPatch",
    "TaskCreate",
    "TaskFilter",
    "TaskPatch",
    "TaskPriority",
    "TaskStatus",
    "validate_payload",
]
