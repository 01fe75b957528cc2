"""Top-level engine wiring."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.errors import StorageError
from core.policy_runtime import ensure_runtime_dirs, load_effective_config
from governance.history_tracker import HistoryTracker
from planner.dependency_graph import DependencyGraph
from planner.project_summary import ProjectSummary
from planner.task_manager import TaskManager
from store.sql_store import SQLStore


@dataclass
class RuntimeBundle:
    """Holds initialized engine components sharing one store handle."""

    config: dict[str, Any]
    store: SQLStore
    graph: DependencyGraph
    tasks: TaskManager
    history: HistoryTracker
    summary: ProjectSummary

    def close(self) -> None:
        self.store.close()


class Orchestrator:
    """Creates and wires engine components for CLI or embedding use."""

    def __init__(self, root: Path | None = None) -> None:
        default_root = Path(__file__).resolve().parents[1]
        self.root = (root or default_root).resolve()

    def build(self, config: dict[str, Any] | None = None) -> RuntimeBundle:
        config = config if config is not None else load_effective_config(self.root)
        paths = ensure_runtime_dirs(self.root, config)

        store = SQLStore(paths["db_path"])
        try:
            store.migrate()
        except StorageError:
            store.close()
            raise
        return self.wire(store, config)

    @staticmethod
    def wire(store: SQLStore, config: dict[str, Any] | None = None) -> RuntimeBundle:
        """Build engine components around an already-open store."""
        config = config or {}
        history_limit = int(config.get("history", {}).get("default_limit", 50))
        graph = DependencyGraph(store)
        history = HistoryTracker(store)
        tasks = TaskManager(store, graph, history, history_limit=history_limit)
        return RuntimeBundle(
            config=config,
            store=store,
            graph=graph,
            tasks=tasks,
            history=history,
            summary=ProjectSummary(store, graph),
        )
