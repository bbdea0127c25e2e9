"""Configuration management with Pydantic and YAML support."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TimerConfig(BaseModel):
    """Countdown scheduling configuration."""

    tick_interval_ms: int = Field(default=250, ge=10, le=5000, description="Delay between ticks")
    auto_start_breaks: bool = Field(default=True, description="Start breaks without user input")
    auto_start_delay_seconds: float = Field(default=1.0, ge=0, le=60)


class StorageConfig(BaseModel):
    """Persistence backend configuration."""

    backend: str = Field(default="sqlite", pattern="^(sqlite|memory)$")


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POMOCYCLE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/pomocycle")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".local/state/pomocycle")
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config/pomocycle")

    # Log level
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # Sub-configurations
    timer: TimerConfig = Field(default_factory=TimerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @property
    def db_path(self) -> Path:
        """Path to SQLite database."""
        return self.data_dir / "pomocycle.db"

    @property
    def config_file(self) -> Path:
        """Path to YAML config file."""
        return self.config_dir / "config.yaml"

    def ensure_directories(self) -> None:
        """Create all required directories."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        os.chmod(self.data_dir, 0o700)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from YAML file, environment variables, and defaults.

        Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values
        """
        config_path = config_path or Path.home() / ".config/pomocycle/config.yaml"

        yaml_config: dict[str, Any] = {}
        if config_path.exists():
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f) or {}

        # Init kwargs outrank env vars in pydantic-settings
        _drop_env_overrides(yaml_config, "POMOCYCLE_")

        return cls(**yaml_config)

    def save(self, config_path: Path | None = None) -> None:
        """Save current configuration to YAML file."""
        config_path = config_path or self.config_file
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(exclude_none=True)

        for key in ["data_dir", "log_dir", "config_dir"]:
            if key in data:
                data[key] = str(data[key])

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def _drop_env_overrides(data: dict[str, Any], prefix: str) -> None:
    """Remove YAML keys that an environment variable also sets."""
    env_keys = {k.upper() for k in os.environ}
    for key in list(data):
        name = f"{prefix}{key}".upper()
        if name in env_keys:
            data.pop(key)
        elif isinstance(data[key], dict):
            _drop_env_overrides(data[key], f"{name}__")


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.load()
