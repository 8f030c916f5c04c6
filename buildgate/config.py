"""Configuration loading for buildgate (.buildgate.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".buildgate.yml"
HANDOFF_MODES = ("exec", "spawn")

ENV_EXECUTOR_PATH = "BUILDGATE_EXECUTOR_PATH"
ENV_HANDOFF = "BUILDGATE_HANDOFF"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ExecutorConfig:
    """Image builder binary and how control is handed to it."""

    # See https://github.com/GoogleContainerTools/kaniko/blob/main/deploy/Dockerfile
    path: str = "/kaniko/executor"
    name: str = "executor"
    handoff: str = "exec"
    extra_args: List[str] = field(default_factory=list)


@dataclass
class GitConfig:
    executable: str = "git"
    remote: str = "origin"


@dataclass
class StatusConfig:
    """Status file conventions shared by the check and build stages."""

    success_marker: Optional[str] = None


@dataclass
class BuildGateConfig:
    """Represents the settings defined in .buildgate.yml."""

    executor: ExecutorConfig = field(default_factory=ExecutorConfig)
    git: GitConfig = field(default_factory=GitConfig)
    status: StatusConfig = field(default_factory=StatusConfig)
    source: Optional[Path] = None


def load_config(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> BuildGateConfig:
    """Load configuration from disk and apply environment overrides.

    ``config_path`` may point at a file or a directory containing
    ``.buildgate.yml``. A missing file yields the defaults.
    """
    env = os.environ if environ is None else environ
    config = BuildGateConfig()

    config_file = _resolve_config_path(config_path) if config_path is not None else None
    if config_file is not None and config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{config_file.name} must contain a mapping at the root")
        config = _build_config(data)
        config.source = config_file

    executor_path = env.get(ENV_EXECUTOR_PATH, "").strip()
    if executor_path:
        config.executor.path = executor_path
    handoff = env.get(ENV_HANDOFF, "").strip()
    if handoff:
        config.executor.handoff = handoff

    if config.executor.handoff not in HANDOFF_MODES:
        raise ConfigError(
            f"executor.handoff must be one of {', '.join(HANDOFF_MODES)}, "
            f"got {config.executor.handoff!r}"
        )
    return config


def _build_config(data: Dict[str, Any]) -> BuildGateConfig:
    config = BuildGateConfig()

    executor_data = _as_dict(data.get("executor"))
    if executor_data:
        config.executor.path = _as_str(executor_data.get("path")) or config.executor.path
        config.executor.name = _as_str(executor_data.get("name")) or config.executor.name
        config.executor.handoff = (
            _as_str(executor_data.get("handoff")) or config.executor.handoff
        )
        config.executor.extra_args = _as_str_list(executor_data.get("extra_args"))

    git_data = _as_dict(data.get("git"))
    if git_data:
        config.git.executable = _as_str(git_data.get("executable")) or config.git.executable
        config.git.remote = _as_str(git_data.get("remote")) or config.git.remote

    status_data = _as_dict(data.get("status"))
    if status_data:
        config.status.success_marker = _as_str(status_data.get("success_marker"))

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "BuildGateConfig",
    "ConfigError",
    "ExecutorConfig",
    "GitConfig",
    "StatusConfig",
    "load_config",
]
