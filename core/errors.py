"""Error taxonomy for the task graph engine."""

from __future__ import annotations


class TaskGraphError(Exception):
    """Base class for all engine errors."""

    retryable = False


class NotFoundError(TaskGraphError, LookupError):
    """Referenced project, task or dependency does not exist."""

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} with ID {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidInputError(TaskGraphError, ValueError):
    """Missing required field, empty patch or malformed id."""


class InvalidEnumError(InvalidInputError):
    """Value outside a recognized enum set."""

    def __init__(self, field: str, value: object, allowed: list[str]) -> None:
        super().__init__(
            f"Invalid {field}: {value}. Must be one of: {', '.join(allowed)}"
        )
        self.field = field
        self.value = value
        self.allowed = allowed


class InvalidStatusError(InvalidEnumError):
    """Status outside the task lifecycle states."""


class InvalidPriorityError(InvalidEnumError):
    """Priority outside low/medium/high/critical."""


class SelfDependencyError(TaskGraphError):
    """A task was asked to depend on itself."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} cannot depend on itself")
        self.task_id = task_id


class CycleDetectedError(TaskGraphError):
    """Adding the edge would break the DAG invariant."""

    def __init__(self, task_id: int, depends_on_task_id: int) -> None:
        super().__init__(
            f"Adding dependency {task_id} -> {depends_on_task_id} would create a cycle"
        )
        self.task_id = task_id
        self.depends_on_task_id = depends_on_task_id


class DependenciesUnresolvedError(TaskGraphError):
    """Deploy attempted while dependencies are still open."""

    def __init__(self, task_id: int, count: int) -> None:
        super().__init__(
            f"Task {task_id} cannot be deployed: {count} unresolved "
            f"{'dependency' if count == 1 else 'dependencies'}"
        )
        self.task_id = task_id
        self.count = count


class StorageError(TaskGraphError):
    """Underlying storage I/O failure. Callers may retry."""

    retryable = True
