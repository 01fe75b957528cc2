"""Boundary validation: turn raw mappings into typed payloads."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from core.errors import (
    InvalidInputError,
    InvalidPriorityError,
    InvalidStatusError,
    TaskGraphError,
)
from store.types.task import TaskPriority, TaskStatus

ModelT = TypeVar("ModelT", bound=BaseModel)


def _translate(exc: ValidationError) -> TaskGraphError:
    first = exc.errors()[0]
    loc = first.get("loc") or ("input",)
    field = str(loc[0])
    value = first.get("input")
    if field == "status":
        return InvalidStatusError("status", value, [s.value for s in TaskStatus])
    if field == "priority":
        return InvalidPriorityError("priority", value, [p.value for p in TaskPriority])
    return InvalidInputError(f"Invalid {field}: {first.get('msg', 'invalid value')}")


def validate_payload(model: type[ModelT], data: ModelT | Mapping[str, Any]) -> ModelT:
    """Validate ``data`` into ``model``, mapping failures onto the error taxonomy."""
    if isinstance(data, model):
        return data
    if not isinstance(data, Mapping):
        raise InvalidInputError(f"Expected a mapping for {model.__name__}")
    try:
        return model.model_validate(dict(data))
    except ValidationError as exc:
        raise _translate(exc) from exc
