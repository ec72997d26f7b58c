# Copyright (c) Syntropy Systems
"""Configuration management for workflowsets."""
from __future__ import annotations

import importlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, cast

import yaml

CONFIG_FILENAME = "workflowsets.yaml"


@dataclass
class WorkflowSetConfig:
    """Defaults for batch execution and ranking."""

    # Operation run by workflow_map when none is given
    operation: str = "tune_grid"

    # Print a progress line before and after each entry
    verbose: bool = False

    # Re-run entries that already hold a result
    force: bool = False

    # Keep only the best configuration per entry when ranking
    select_best: bool = False


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find the nearest workflowsets.yaml by walking up from start_path.

    Returns None if no config file is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        current = current.parent

    # Check root
    candidate = current / CONFIG_FILENAME
    if candidate.is_file():
        return candidate

    return None


def get_global_config_dir() -> Path:
    """Get the global config directory (~/.workflowsets)."""
    return Path.home() / ".workflowsets"


def load_config(config_path: Path | None = None) -> WorkflowSetConfig:
    """Load configuration from a YAML file or defaults.

    Looks for config in:
    1. Provided config_path
    2. Nearest workflowsets.yaml walking up from the working directory
    3. ~/.workflowsets/config.yaml
    4. Defaults
    """
    config = WorkflowSetConfig()

    if config_path is None:
        config_path = find_config_file()
    if config_path is None:
        global_config = get_global_config_dir() / "config.yaml"
        if global_config.exists():
            config_path = global_config

    if config_path is not None and config_path.exists():
        with config_path.open() as f:
            data = cast("dict[str, object]", yaml.safe_load(f) or {})

        operation = data.get("operation")
        if isinstance(operation, str) and operation:
            config.operation = operation
        verbose = data.get("verbose")
        if isinstance(verbose, bool):
            config.verbose = verbose
        force = data.get("force")
        if isinstance(force, bool):
            config.force = force
        select_best = data.get("select_best")
        if isinstance(select_best, bool):
            config.select_best = select_best

    return config


def import_object(reference: str) -> Any:
    """Import an object from a ``module:attribute`` reference."""
    module_name, sep, attr_path = reference.partition(":")
    if not sep or not module_name or not attr_path:
        msg = f"Expected 'module:attribute', got '{reference}'"
        raise ValueError(msg)

    obj: Any = importlib.import_module(module_name)
    for attr in attr_path.split("."):
        obj = getattr(obj, attr)
    return obj


@dataclass
class RunSpec:
    """Declarative definition of a batch, loaded from YAML."""

    preprocessors: dict[str, str]
    models: dict[str, str]
    resamples: str
    mode: str = "cross"
    operation: str | None = None
    options: dict[str, Any] = field(default_factory=dict)
    entry_options: dict[str, dict[str, Any]] = field(default_factory=dict)
    metric: str | None = None

    @classmethod
    def from_yaml(cls, path: Path) -> RunSpec:
        """Load a run specification from a YAML file."""
        with path.open() as f:
            data = cast("dict[str, object]", yaml.safe_load(f) or {})

        for required in ("preprocessors", "models", "resamples"):
            if required not in data:
                msg = f"Run spec must have '{required}' field"
                raise ValueError(msg)

        return cls(
            preprocessors=cast("dict[str, str]", data["preprocessors"]),
            models=cast("dict[str, str]", data["models"]),
            resamples=cast("str", data["resamples"]),
            mode=cast("str", data.get("mode", "cross")),
            operation=cast("Optional[str]", data.get("operation")),
            options=cast("dict[str, Any]", data.get("options") or {}),
            entry_options=cast(
                "dict[str, dict[str, Any]]", data.get("entry_options") or {}
            ),
            metric=cast("Optional[str]", data.get("metric")),
        )

    def resolve_options(self, options: dict[str, Any]) -> dict[str, Any]:
        """Import ``module:attribute`` references found under a ``metrics`` key."""
        resolved = dict(options)
        metrics = resolved.get("metrics")
        if isinstance(metrics, str):
            resolved["metrics"] = import_object(metrics)
        elif isinstance(metrics, list):
            resolved["metrics"] = [
                import_object(m) if isinstance(m, str) else m
                for m in cast("list[object]", metrics)
            ]
        return resolved
