"""Configuration loading tests."""

from __future__ import annotations

from pathlib import Path

from core.orchestrator import Orchestrator
from core.policy_runtime import (
    ENV_DB_PATH,
    ENV_LOG_LEVEL,
    ensure_runtime_dirs,
    load_effective_config,
    load_yaml,
    merge_dicts,
)


def _write_default(root: Path) -> None:
    (root / "config").mkdir()
    (root / "config" / "default.yaml").write_text(
        "paths:\n  db_path: data/app.db\nlogging:\n  level: WARNING\nhistory:\n  default_limit: 20\n",
        encoding="utf-8",
    )


def test_load_yaml_missing_file_is_empty(tmp_path: Path) -> None:
    assert load_yaml(tmp_path / "absent.yaml") == {}


def test_merge_dicts_is_recursive() -> None:
    merged = merge_dicts({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}})
    assert merged == {"a": {"x": 1, "y": 3}, "b": 1}


def test_local_and_env_overrides(tmp_path: Path) -> None:
    _write_default(tmp_path)
    (tmp_path / "config" / "local.yaml").write_text(
        "history:\n  default_limit: 5\n", encoding="utf-8"
    )

    config = load_effective_config(
        tmp_path, environ={ENV_DB_PATH: str(tmp_path / "env.db"), ENV_LOG_LEVEL: "debug"}
    )
    assert config["history"]["default_limit"] == 5
    assert config["paths"]["db_path"] == str(tmp_path / "env.db")
    assert config["logging"]["level"] == "DEBUG"


def test_runtime_dirs_are_created(tmp_path: Path) -> None:
    _write_default(tmp_path)
    config = load_effective_config(tmp_path, environ={})

    paths = ensure_runtime_dirs(tmp_path, config)
    assert paths["db_path"] == (tmp_path / "data" / "app.db").resolve()
    assert paths["db_path"].parent.is_dir()


def test_orchestrator_builds_working_bundle(tmp_path: Path) -> None:
    _write_default(tmp_path)
    bundle = Orchestrator(root=tmp_path).build(load_effective_config(tmp_path, environ={}))
    try:
        assert bundle.tasks.history_limit == 20
        project_id = bundle.tasks.create_project("Wired")
        assert bundle.tasks.get_project(project_id)["name"] == "Wired"
    finally:
        bundle.close()
