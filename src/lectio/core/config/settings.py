"""YAML-backed settings for the reader host."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .defaults import DEFAULT_CONFIG, LOG_LEVELS
from lectio.core.env import resolve_config_path, resolve_state_path


def _merge_defaults(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge_defaults(result[key], value)  # type: ignore[arg-type]
        else:
            result[key] = value
    return result


@dataclass
class SettingsManager:
    """Simple YAML configuration with default values."""

    config_path: Path = Path("config/settings.yaml")

    def __post_init__(self) -> None:
        self.config_path = resolve_config_path(self.config_path)
        self._data: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        if self.config_path.exists():
            with self.config_path.open("r", encoding="utf-8") as file:
                user_config = yaml.safe_load(file) or {}
            if not isinstance(user_config, dict):
                user_config = {}
            self._data = _merge_defaults(DEFAULT_CONFIG, user_config)
        else:
            self._data = copy.deepcopy(DEFAULT_CONFIG)

    def save(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with self.config_path.open("w", encoding="utf-8") as file:
            yaml.safe_dump(self._data, file, allow_unicode=False, sort_keys=True)

    def get_raw(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    def _resolve_relative(self, value: Path) -> Path:
        if value.is_absolute():
            return value
        return self.config_path.parent / value

    # --- general ---
    def get_language(self) -> str:
        value = self._section("general").get("language", DEFAULT_CONFIG["general"]["language"])
        return str(value or DEFAULT_CONFIG["general"]["language"])

    def set_language(self, language: str) -> None:
        general = self._data.setdefault("general", {})
        general["language"] = str(language)

    # --- reader ---
    def get_tick_interval(self) -> float:
        value = self._section("reader").get("tick_interval_seconds", DEFAULT_CONFIG["reader"]["tick_interval_seconds"])
        try:
            interval = float(value)
        except (TypeError, ValueError):
            return DEFAULT_CONFIG["reader"]["tick_interval_seconds"]
        return interval if interval > 0.0 else DEFAULT_CONFIG["reader"]["tick_interval_seconds"]

    def set_tick_interval(self, seconds: float) -> None:
        if seconds <= 0:
            raise ValueError("Tick interval must be positive")
        reader = self._data.setdefault("reader", {})
        reader["tick_interval_seconds"] = float(seconds)

    def get_queue_radius(self) -> int:
        value = self._section("reader").get("queue_radius", DEFAULT_CONFIG["reader"]["queue_radius"])
        try:
            return max(0, int(value))
        except (TypeError, ValueError):
            return DEFAULT_CONFIG["reader"]["queue_radius"]

    def set_queue_radius(self, radius: int) -> None:
        reader = self._data.setdefault("reader", {})
        reader["queue_radius"] = max(0, int(radius))

    def get_reader_scope(self) -> str:
        value = self._section("reader").get("scope")
        text = str(value).strip() if value is not None else ""
        return text or DEFAULT_CONFIG["reader"]["scope"]

    # --- sources ---
    def get_bible_structure_path(self) -> Optional[Path]:
        value = self._section("sources").get("bible_structure")
        if not value:
            return None
        return self._resolve_relative(Path(str(value)))

    def set_bible_structure_path(self, path: Path | None) -> None:
        sources = self._data.setdefault("sources", {})
        sources["bible_structure"] = str(path) if path else None

    def get_reading_plan_path(self) -> Optional[Path]:
        value = self._section("sources").get("reading_plan")
        if not value:
            return None
        return self._resolve_relative(Path(str(value)))

    def set_reading_plan_path(self, path: Path | None) -> None:
        sources = self._data.setdefault("sources", {})
        sources["reading_plan"] = str(path) if path else None

    # --- state ---
    def get_state_path(self) -> Path:
        value = self._section("state").get("path") or DEFAULT_CONFIG["state"]["path"]
        return resolve_state_path(self._resolve_relative(Path(str(value))))

    def set_state_path(self, path: Path) -> None:
        state = self._data.setdefault("state", {})
        state["path"] = str(path)

    # --- diagnostics ---
    def get_diagnostics_log_level(self) -> str:
        diagnostics = self._section("diagnostics")
        level = str(diagnostics.get("log_level", DEFAULT_CONFIG["diagnostics"]["log_level"])).upper()
        return level if level in LOG_LEVELS else DEFAULT_CONFIG["diagnostics"]["log_level"]

    def set_diagnostics_log_level(self, level: str) -> None:
        diagnostics = self._data.setdefault("diagnostics", {})
        diagnostics["log_level"] = str(level).upper()
