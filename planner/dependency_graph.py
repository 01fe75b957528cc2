"""Task dependency graph: cycle prevention and blocked/actionable resolution.

Edges are stored as ``task_id -> depends_on_task_id``. The relation must stay
a DAG, so every insert first walks the graph reachable from the proposed
target; reaching the source means the new edge would close a loop.

"tested" and "deployed" both satisfy a dependency. Completion math in the
summary layer only counts "deployed".
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from sqlalchemy import case, select
from sqlalchemy.orm import Session, aliased
from sqlalchemy.sql.expression import Exists

from core.errors import CycleDetectedError, NotFoundError, SelfDependencyError
from store.records import task_title, task_to_dict, touch_project
from store.schemas import DependencyRecord, TaskRecord, utc_now
from store.sql_store import SQLStore
from store.types import ACTIONABLE_STATUSES, PRIORITY_RANK, RESOLVED_STATUSES, TaskStatus

logger = logging.getLogger("tg.graph")

_RESOLVED = sorted(RESOLVED_STATUSES)


def _incomplete_dependency_exists() -> Exists:
    """EXISTS clause correlated to ``TaskRecord``: some dependency is unresolved."""
    target = aliased(TaskRecord)
    return (
        select(DependencyRecord.task_id)
        .join(target, target.id == DependencyRecord.depends_on_task_id)
        .where(
            DependencyRecord.task_id == TaskRecord.id,
            target.status.not_in(_RESOLVED),
        )
        .correlate(TaskRecord)
        .exists()
    )


def _priority_order() -> list[Any]:
    rank = case(PRIORITY_RANK, value=TaskRecord.priority, else_=0)
    return [rank.desc(), TaskRecord.created_at.asc(), TaskRecord.id.asc()]


class DependencyGraph:
    """Dependency edge operations and graph queries over the store."""

    def __init__(self, sql_store: SQLStore) -> None:
        self.sql_store = sql_store

    # ---- cycle detection ----

    def would_create_cycle(self, task_id: int, depends_on_task_id: int) -> bool:
        """Return True if adding ``task_id -> depends_on_task_id`` closes a loop."""
        with self.sql_store.session() as sess:
            return self._reaches(sess, depends_on_task_id, task_id)

    @staticmethod
    def _reaches(sess: Session, start: int, target: int) -> bool:
        # Stack-based walk with a visited set: terminates on diamonds and deep chains.
        visited: set[int] = set()
        stack = [start]
        while stack:
            current = stack.pop()
            if current == target:
                return True
            if current in visited:
                continue
            visited.add(current)
            rows = (
                sess.query(DependencyRecord.depends_on_task_id)
                .filter(DependencyRecord.task_id == current)
                .all()
            )
            stack.extend(nxt for (nxt,) in rows if nxt not in visited)
        return False

    def find_cycles(self, project_id: int | None = None) -> list[list[int]]:
        """Report cycles already present in the edge table.

        Inserts are checked one at a time, so two concurrent inserts that are
        each acyclic can still jointly form a loop. This audit surfaces them.
        Each cycle is listed as the path ``[a, b, ...]`` with an edge from the
        last element back to ``a``.
        """
        adjacency: dict[int, list[int]] = defaultdict(list)
        with self.sql_store.session() as sess:
            query = sess.query(DependencyRecord.task_id, DependencyRecord.depends_on_task_id)
            if project_id is not None:
                query = query.join(TaskRecord, TaskRecord.id == DependencyRecord.task_id).filter(
                    TaskRecord.project_id == project_id
                )
            for source, target in query.all():
                adjacency[source].append(target)

        visiting, done = 1, 2
        state: dict[int, int] = {}
        cycles: list[list[int]] = []
        for root in sorted(adjacency):
            if root in state:
                continue
            state[root] = visiting
            path = [root]
            frames = [iter(adjacency[root])]
            while frames:
                nxt = next(frames[-1], None)
                if nxt is None:
                    state[path.pop()] = done
                    frames.pop()
                    continue
                seen = state.get(nxt)
                if seen == visiting:
                    cycles.append(path[path.index(nxt):])
                elif seen is None:
                    state[nxt] = visiting
                    path.append(nxt)
                    frames.append(iter(adjacency.get(nxt, ())))
        if cycles:
            logger.warning("Dependency cycles present project_id=%s cycles=%s", project_id, cycles)
        return cycles

    # ---- edge mutations ----

    def add_dependency(self, task_id: int, depends_on_task_id: int) -> bool:
        """Add an edge. Returns False when it already existed."""
        with self.sql_store.session() as sess:
            return self.attach(sess, task_id, depends_on_task_id)

    def attach(self, sess: Session, task_id: int, depends_on_task_id: int) -> bool:
        """Validate and insert an edge inside the caller's unit of work."""
        if task_id == depends_on_task_id:
            raise SelfDependencyError(task_id)
        task = sess.get(TaskRecord, task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        target = sess.get(TaskRecord, depends_on_task_id)
        if target is None:
            raise NotFoundError("Task", depends_on_task_id)
        if sess.get(DependencyRecord, (task_id, depends_on_task_id)) is not None:
            return False
        if self._reaches(sess, depends_on_task_id, task_id):
            logger.info("Rejected dependency %s -> %s: cycle", task_id, depends_on_task_id)
            raise CycleDetectedError(task_id, depends_on_task_id)

        now = utc_now()
        sess.add(DependencyRecord(task_id=task_id, depends_on_task_id=depends_on_task_id))
        task.updated_at = now
        touch_project(sess, task.project_id, now)
        if target.project_id != task.project_id:
            touch_project(sess, target.project_id, now)
        sess.flush()
        logger.info("Dependency added %s -> %s", task_id, depends_on_task_id)
        return True

    def remove_dependency(self, task_id: int, depends_on_task_id: int) -> bool:
        """Remove an edge. Returns False when it did not exist."""
        with self.sql_store.session() as sess:
            removed = (
                sess.query(DependencyRecord)
                .filter(
                    DependencyRecord.task_id == task_id,
                    DependencyRecord.depends_on_task_id == depends_on_task_id,
                )
                .delete(synchronize_session=False)
            )
            if removed:
                task = sess.get(TaskRecord, task_id)
                if task is not None:
                    now = utc_now()
                    task.updated_at = now
                    touch_project(sess, task.project_id, now)
                logger.info("Dependency removed %s -> %s", task_id, depends_on_task_id)
            return removed > 0

    # ---- edge reads ----

    def dependency_exists(self, task_id: int, depends_on_task_id: int) -> bool:
        with self.sql_store.session() as sess:
            return sess.get(DependencyRecord, (task_id, depends_on_task_id)) is not None

    def get_dependency_ids(self, task_id: int) -> list[int]:
        with self.sql_store.session() as sess:
            rows = (
                sess.query(DependencyRecord.depends_on_task_id)
                .filter(DependencyRecord.task_id == task_id)
                .order_by(DependencyRecord.depends_on_task_id)
                .all()
            )
            return [dep_id for (dep_id,) in rows]

    def get_dependent_ids(self, task_id: int) -> list[int]:
        with self.sql_store.session() as sess:
            return self.dependent_ids(sess, task_id)

    @staticmethod
    def dependent_ids(sess: Session, task_id: int) -> list[int]:
        rows = (
            sess.query(DependencyRecord.task_id)
            .filter(DependencyRecord.depends_on_task_id == task_id)
            .order_by(DependencyRecord.task_id)
            .all()
        )
        return [dependent for (dependent,) in rows]

    def get_task_dependencies(self, task_id: int) -> list[dict[str, Any]]:
        """Direct dependencies of a task with their current status."""
        with self.sql_store.session() as sess:
            return self.dependency_rows(sess, task_id, incomplete_only=False)

    def incomplete_dependencies(self, task_id: int) -> list[dict[str, Any]]:
        """Direct dependencies whose status is neither tested nor deployed."""
        with self.sql_store.session() as sess:
            return self.dependency_rows(sess, task_id, incomplete_only=True)

    @staticmethod
    def dependency_rows(
        sess: Session, task_id: int, *, incomplete_only: bool
    ) -> list[dict[str, Any]]:
        query = (
            sess.query(TaskRecord)
            .join(DependencyRecord, DependencyRecord.depends_on_task_id == TaskRecord.id)
            .filter(DependencyRecord.task_id == task_id)
        )
        if incomplete_only:
            query = query.filter(TaskRecord.status.not_in(_RESOLVED))
        rows = query.order_by(TaskRecord.id).all()
        return [
            {
                "id": row.id,
                "title": task_title(row),
                "status": row.status,
                "priority": row.priority,
            }
            for row in rows
        ]

    @staticmethod
    def count_incomplete(sess: Session, task_id: int) -> int:
        target = aliased(TaskRecord)
        return (
            sess.query(DependencyRecord)
            .join(target, target.id == DependencyRecord.depends_on_task_id)
            .filter(DependencyRecord.task_id == task_id, target.status.not_in(_RESOLVED))
            .count()
        )

    # ---- resolution queries ----

    def get_blocked_tasks(self, project_id: int | None = None) -> list[dict[str, Any]]:
        """Non-deployed tasks with at least one unresolved direct dependency."""
        with self.sql_store.session() as sess:
            return self.blocked_rows(sess, project_id)

    def blocked_rows(self, sess: Session, project_id: int | None) -> list[dict[str, Any]]:
        query = sess.query(TaskRecord).filter(
            TaskRecord.status != TaskStatus.DEPLOYED.value,
            _incomplete_dependency_exists(),
        )
        if project_id is not None:
            query = query.filter(TaskRecord.project_id == project_id)
        rows = query.order_by(*_priority_order()).all()
        if not rows:
            return []

        target = aliased(TaskRecord)
        edges = (
            sess.query(DependencyRecord.task_id, DependencyRecord.depends_on_task_id)
            .join(target, target.id == DependencyRecord.depends_on_task_id)
            .filter(
                DependencyRecord.task_id.in_([row.id for row in rows]),
                target.status.not_in(_RESOLVED),
            )
            .order_by(DependencyRecord.depends_on_task_id)
            .all()
        )
        blocked_by: dict[int, list[int]] = defaultdict(list)
        for source, dep_id in edges:
            blocked_by[source].append(dep_id)

        result = []
        for row in rows:
            payload = task_to_dict(row)
            payload["blocked_by"] = blocked_by[row.id]
            result.append(payload)
        return result

    def get_next_actionable(self, project_id: int | None = None) -> list[dict[str, Any]]:
        """Open tasks with no unresolved dependency, most urgent then oldest first."""
        with self.sql_store.session() as sess:
            return self.actionable_rows(sess, project_id)

    def actionable_rows(self, sess: Session, project_id: int | None) -> list[dict[str, Any]]:
        query = sess.query(TaskRecord).filter(
            TaskRecord.status.in_(sorted(ACTIONABLE_STATUSES)),
            ~_incomplete_dependency_exists(),
        )
        if project_id is not None:
            query = query.filter(TaskRecord.project_id == project_id)
        rows = query.order_by(*_priority_order()).all()
        return [task_to_dict(row) for row in rows]
