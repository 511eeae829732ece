"""Application configuration management package.

The public API is available as `lectio.core.config` while implementation is
split into focused modules.
"""

from __future__ import annotations

from .defaults import DEFAULT_CONFIG, LOG_LEVELS
from .settings import SettingsManager

__all__ = [
    "DEFAULT_CONFIG",
    "LOG_LEVELS",
    "SettingsManager",
]
