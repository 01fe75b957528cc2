"""Project payload models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


def _require_name(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
    if not value:
        raise ValueError("Name is required and must be a non-empty string")
    return value


class ProjectCreate(BaseModel):
    """Validated arguments for project creation."""

    model_config = ConfigDict(extra="ignore")

    name: str
    client: str | None = None
    description: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def check_name(cls, value: Any) -> Any:
        return _require_name(value)


class ProjectPatch(BaseModel):
    """Partial project update over name, client and description."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    client: str | None = None
    description: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def check_name(cls, value: Any) -> Any:
        return _require_name(value)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
