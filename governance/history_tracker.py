"""Field-level change tracking for tasks."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from store.schemas import HistoryRecord
from store.sql_store import SQLStore

logger = logging.getLogger("tg.history")


def render_value(value: Any) -> str:
    """Render a field value as comparable text (None renders as ``"null"``)."""
    if value is None:
        return "null"
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value), ensure_ascii=False)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class FieldChange:
    """One field whose rendered value differs."""

    field: str
    old_value: str | None
    new_value: str | None


class HistoryTracker:
    """Detects per-field changes and appends immutable history records."""

    def __init__(self, sql_store: SQLStore) -> None:
        self.sql_store = sql_store

    @staticmethod
    def diff(current: Mapping[str, Any], proposed: Mapping[str, Any]) -> list[FieldChange]:
        """Compare proposed values against current ones as rendered text."""
        changes: list[FieldChange] = []
        for field, new in proposed.items():
            old = current.get(field)
            old_text = render_value(old)
            new_text = render_value(new)
            if old_text == new_text:
                continue
            changes.append(
                FieldChange(
                    field=field,
                    old_value=None if old is None else old_text,
                    new_value=None if new is None else new_text,
                )
            )
        return changes

    @staticmethod
    def record(sess: Session, task_id: int, changes: Iterable[FieldChange]) -> int:
        """Append history rows inside the caller's unit of work."""
        count = 0
        for change in changes:
            sess.add(
                HistoryRecord(
                    task_id=task_id,
                    field=change.field,
                    old_value=change.old_value,
                    new_value=change.new_value,
                )
            )
            count += 1
        if count:
            logger.debug("Recorded %s history entries task_id=%s", count, task_id)
        return count

    def list_for_task(self, task_id: int, limit: int = 50) -> list[dict[str, Any]]:
        """List history for one task, newest first."""
        with self.sql_store.session() as sess:
            rows = (
                sess.query(HistoryRecord)
                .filter(HistoryRecord.task_id == task_id)
                .order_by(HistoryRecord.changed_at.desc(), HistoryRecord.id.desc())
                .limit(max(1, int(limit)))
                .all()
            )
            return [self._history_to_dict(row) for row in rows]

    @staticmethod
    def _history_to_dict(row: HistoryRecord) -> dict[str, Any]:
        return {
            "id": row.id,
            "task_id": row.task_id,
            "field": row.field,
            "old_value": row.old_value,
            "new_value": row.new_value,
            "changed_at": row.changed_at,
        }
