"""Configuration loading and runtime directory bootstrapping."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

ENV_DB_PATH = "TASKGRAPH_DB_PATH"
ENV_LOG_LEVEL = "TASKGRAPH_LOG_LEVEL"


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML from file, returning empty mapping when missing."""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge dictionaries."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Config fragments taken from environment variables."""
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    if env.get(ENV_DB_PATH):
        overrides["paths"] = {"db_path": env[ENV_DB_PATH]}
    if env.get(ENV_LOG_LEVEL):
        overrides["logging"] = {"level": env[ENV_LOG_LEVEL].upper()}
    return overrides


def ensure_runtime_dirs(root: Path, config: dict[str, Any]) -> dict[str, Path]:
    """Resolve the database path and make sure its directory exists."""
    paths_cfg = config.get("paths", {})
    db_path = (root / paths_cfg.get("db_path", "workspace/taskgraph.db")).resolve()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return {"db_path": db_path}


def load_effective_config(root: Path, environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Load the default config file and apply environment overrides."""
    default_cfg = load_yaml(root / "config" / "default.yaml")
    local_cfg = load_yaml(root / "config" / "local.yaml")
    merged = merge_dicts(default_cfg, local_cfg)
    return merge_dicts(merged, env_overrides(environ))
