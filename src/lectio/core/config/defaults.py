"""Default configuration values."""

from __future__ import annotations

from typing import Any, Dict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_CONFIG: Dict[str, Any] = {
    "general": {
        "language": "en",
    },
    "reader": {
        "tick_interval_seconds": 0.1,
        "queue_radius": 2,
        "scope": "reader",
    },
    "sources": {
        "bible_structure": None,
        "reading_plan": None,
    },
    "state": {
        "path": "state/session.yaml",
    },
    "diagnostics": {
        "log_level": "WARNING",
    },
}
