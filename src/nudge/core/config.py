"""Configuration management with Pydantic and YAML support."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FocusConfig(BaseModel):
    """Focus timer defaults."""

    default_focus_minutes: int = Field(default=25, ge=1, description="Used when start() gets no duration")
    default_break_minutes: int = Field(default=5, ge=1)
    presets: list[int] = Field(default_factory=lambda: [15, 25, 45, 60])
    notifications_enabled: bool = True
    auto_start_breaks: bool = Field(default=False, description="Start a break after a finished focus session")

    @field_validator("presets")
    @classmethod
    def _presets_positive(cls, value: list[int]) -> list[int]:
        if any(minutes < 1 for minutes in value):
            raise ValueError("presets must be at least 1 minute")
        return value


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="NUDGE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/nudge")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".local/state/nudge/logs")
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config/nudge")

    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    focus: FocusConfig = Field(default_factory=FocusConfig)

    @property
    def db_path(self) -> Path:
        """Path to the statistics database."""
        return self.data_dir / "nudge.db"

    @property
    def session_store_path(self) -> Path:
        """Path to the key-value file holding the in-progress session."""
        return self.data_dir / "session.json"

    @property
    def control_file(self) -> Path:
        """Path used to pass commands to a running timer."""
        return self.data_dir / "control.json"

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
        config_path = config_path or Path.home() / ".config/nudge/config.yaml"

        yaml_config: dict[str, Any] = {}
        if config_path.exists():
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f) or {}

        # Init kwargs outrank env vars in pydantic-settings, so drop keys the env overrides
        cls._drop_env_overrides(yaml_config)

        return cls(**yaml_config)

    @classmethod
    def _drop_env_overrides(cls, yaml_config: dict[str, Any]) -> None:
        """Remove YAML entries, nested ones included, that an env var also sets."""
        prefix = cls.model_config["env_prefix"].upper()
        delimiter = cls.model_config["env_nested_delimiter"]

        for name in os.environ:
            if not name.upper().startswith(prefix):
                continue
            path = name[len(prefix):].lower().split(delimiter)

            section: Any = yaml_config
            for part in path[:-1]:
                section = section.get(part) if isinstance(section, dict) else None
            if isinstance(section, dict):
                section.pop(path[-1], None)

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

        os.chmod(config_path, 0o600)


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.load()
