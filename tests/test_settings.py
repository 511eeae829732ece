from pathlib import Path

import pytest

from lectio.core.config import DEFAULT_CONFIG, SettingsManager


def _settings_path(tmp_path: Path) -> Path:
    return tmp_path / "settings.yaml"


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in ("LECTIO_CONFIG_PATH", "LECTIO_CONFIG_DIR", "LECTIO_STATE_PATH"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_when_file_missing(tmp_path):
    manager = SettingsManager(config_path=_settings_path(tmp_path))

    assert manager.get_language() == "en"
    assert manager.get_tick_interval() == 0.1
    assert manager.get_queue_radius() == 2
    assert manager.get_reader_scope() == "reader"
    assert manager.get_bible_structure_path() is None
    assert manager.get_reading_plan_path() is None
    assert manager.get_state_path() == tmp_path / "state" / "session.yaml"
    assert manager.get_diagnostics_log_level() == "WARNING"
    assert manager.get_raw() == DEFAULT_CONFIG


def test_partial_file_is_merged_with_defaults(tmp_path):
    path = _settings_path(tmp_path)
    path.write_text("reader:\n  queue_radius: 4\nsources:\n  reading_plan: plans/year.yaml\n", encoding="utf-8")

    manager = SettingsManager(config_path=path)

    assert manager.get_queue_radius() == 4
    assert manager.get_tick_interval() == 0.1
    assert manager.get_reading_plan_path() == tmp_path / "plans" / "year.yaml"


def test_settings_persist(tmp_path):
    path = _settings_path(tmp_path)
    manager = SettingsManager(config_path=path)
    manager.set_tick_interval(0.25)
    manager.set_queue_radius(3)
    manager.set_diagnostics_log_level("debug")
    manager.set_state_path(tmp_path / "elsewhere.yaml")
    manager.save()

    reloaded = SettingsManager(config_path=path)

    assert reloaded.get_tick_interval() == 0.25
    assert reloaded.get_queue_radius() == 3
    assert reloaded.get_diagnostics_log_level() == "DEBUG"
    assert reloaded.get_state_path() == tmp_path / "elsewhere.yaml"


def test_invalid_values_fall_back_to_defaults(tmp_path):
    path = _settings_path(tmp_path)
    path.write_text(
        "reader:\n  tick_interval_seconds: -1\n  queue_radius: many\n  scope: ''\ndiagnostics:\n  log_level: loud\n",
        encoding="utf-8",
    )

    manager = SettingsManager(config_path=path)

    assert manager.get_tick_interval() == 0.1
    assert manager.get_queue_radius() == 2
    assert manager.get_reader_scope() == "reader"
    assert manager.get_diagnostics_log_level() == "WARNING"
    with pytest.raises(ValueError):
        manager.set_tick_interval(0)


def test_environment_overrides(tmp_path, monkeypatch):
    config_dir = tmp_path / "conf"
    monkeypatch.setenv("LECTIO_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("LECTIO_STATE_PATH", str(tmp_path / "override.yaml"))

    manager = SettingsManager()

    assert manager.config_path == config_dir / "settings.yaml"
    assert manager.get_state_path() == tmp_path / "override.yaml"
