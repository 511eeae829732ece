"""Helpers for environment flags shared across the app."""

from __future__ import annotations

import os
from pathlib import Path


def resolve_config_path(default_path: Path) -> Path:
    """Pick config path based on environment overrides."""

    env_path = os.environ.get("LECTIO_CONFIG_PATH")
    if env_path:
        return Path(env_path)
    env_dir = os.environ.get("LECTIO_CONFIG_DIR")
    if env_dir:
        return Path(env_dir) / "settings.yaml"
    return default_path


def resolve_state_path(default_path: Path) -> Path:
    """Return the session state file, honoring `LECTIO_STATE_PATH`."""

    env_path = os.environ.get("LECTIO_STATE_PATH")
    if env_path:
        return Path(env_path)
    return default_path


def resolve_logs_dir(default_path: Path | None = None) -> Path:
    env_path = os.environ.get("LECTIO_LOG_DIR")
    if env_path:
        return Path(env_path)
    if default_path is not None:
        return default_path
    return Path.cwd() / "logs"
