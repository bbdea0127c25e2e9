"""Tests for YAML/env configuration loading."""

import pytest
import yaml
from pydantic import ValidationError

from pomocycle.core.config import Config


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data))
    return path


def test_defaults_without_file(tmp_path):
    config = Config.load(tmp_path / "missing.yaml")

    assert config.timer.tick_interval_ms == 250
    assert config.timer.auto_start_breaks
    assert config.storage.backend == "sqlite"
    assert config.db_path.name == "pomocycle.db"


def test_yaml_values_are_loaded(tmp_path):
    path = write_yaml(
        tmp_path / "config.yaml",
        {"log_level": "DEBUG", "timer": {"tick_interval_ms": 100}, "storage": {"backend": "memory"}},
    )

    config = Config.load(path)

    assert config.log_level == "DEBUG"
    assert config.timer.tick_interval_ms == 100
    assert config.storage.backend == "memory"


def test_environment_outranks_yaml(tmp_path, monkeypatch):
    path = write_yaml(tmp_path / "config.yaml", {"log_level": "ERROR", "timer": {"tick_interval_ms": 100}})
    monkeypatch.setenv("POMOCYCLE_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("POMOCYCLE_TIMER__TICK_INTERVAL_MS", "500")

    config = Config.load(path)

    assert config.log_level == "DEBUG"
    assert config.timer.tick_interval_ms == 500


def test_invalid_values_are_rejected(tmp_path):
    path = write_yaml(tmp_path / "config.yaml", {"storage": {"backend": "redis"}})
    with pytest.raises(ValidationError):
        Config.load(path)


def test_save_round_trips(tmp_path):
    config = Config(data_dir=tmp_path / "data", config_dir=tmp_path / "conf")
    config.timer.auto_start_breaks = False
    config.save()

    loaded = Config.load(config.config_file)
    assert loaded.data_dir == tmp_path / "data"
    assert not loaded.timer.auto_start_breaks


def test_ensure_directories(tmp_path):
    config = Config(
        data_dir=tmp_path / "data",
        log_dir=tmp_path / "logs",
        config_dir=tmp_path / "conf",
    )
    config.ensure_directories()

    assert config.data_dir.is_dir()
    assert config.log_dir.is_dir()
    assert config.config_dir.is_dir()
