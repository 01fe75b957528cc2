"""Task payload models."""

from __future__ import annotations

from datetime import date
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskStatus(StrEnum):
    """Task lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    DEVELOPED = "developed"
    TESTED = "tested"
    DEPLOYED = "deployed"
    BLOCKED = "blocked"


class TaskPriority(StrEnum):
    """Task priority, ordered by severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# "tested" unblocks dependents even though only "deployed" counts as complete.
RESOLVED_STATUSES: frozenset[str] = frozenset(
    {TaskStatus.DEPLOYED.value, TaskStatus.TESTED.value}
)
ACTIONABLE_STATUSES: frozenset[str] = frozenset(
    {TaskStatus.PENDING.value, TaskStatus.IN_PROGRESS.value, TaskStatus.BLOCKED.value}
)
PRIORITY_RANK: dict[str, int] = {"critical": 4, "high": 3, "medium": 2, "low": 1}

TRACKED_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "status",
    "priority",
    "category",
    "assignee",
    "due_date",
    "tags",
)


def _split_tags(value: Any) -> Any:
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    return value


class TaskCreate(BaseModel):
    """Validated arguments for task creation."""

    model_config = ConfigDict(extra="ignore")

    project_id: int = Field(gt=0)
    title: str | None = None
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    category: str | None = None
    assignee: str | None = None
    due_date: date | None = None
    tags: list[str] | None = None
    depends_on: list[int] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value: Any) -> Any:
        return _split_tags(value)


class TaskPatch(BaseModel):
    """Partial task update. Only explicitly provided fields are applied."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category: str | None = None
    assignee: str | None = None
    due_date: date | None = None
    tags: list[str] | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value: Any) -> Any:
        return _split_tags(value)

    @field_validator("status", "priority", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        # Both columns are NOT NULL; an explicit null is a bad enum value.
        if value is None:
            raise ValueError("value cannot be null")
        return value

    def changes(self) -> dict[str, Any]:
        """Return provided fields with enums reduced to their stored text."""
        data = self.model_dump(exclude_unset=True)
        for key in ("status", "priority"):
            if data.get(key) is not None:
                data[key] = str(data[key])
        return data


class TaskFilter(BaseModel):
    """Filters accepted by task listing."""

    model_config = ConfigDict(extra="ignore")

    project_id: int | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category: str | None = None
    assignee: str | None = None
    tag: str | None = None
    search: str | None = None
