"""Engine configuration.

Where the snapshot lives and how loudly to log, resolved from keyword
arguments or ``TAB_SESSION_*`` environment variables.

Classes
-------
- ConfigError   — invalid configuration value
- EngineConfig  — storage location and log level
"""
from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

ENV_STORAGE_DIR = "TAB_SESSION_DIR"
ENV_SNAPSHOT_FILE = "TAB_SESSION_FILE"
ENV_LOG_LEVEL = "TAB_SESSION_LOG_LEVEL"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class ConfigError(Exception):
    """Raised when a configuration value cannot be used."""


def get_optional_env(name: str, default: str) -> str:
    return os.environ.get(name) or default


class EngineConfig(BaseModel):
    """Runtime configuration for the session engine.

    Parameters
    ----------
    storage_dir:
        Directory holding the snapshot file.
    snapshot_file:
        File name of the snapshot inside ``storage_dir``.
    log_level:
        Level name for the package logger.
    """

    storage_dir: Path = Field(default_factory=lambda: Path.home() / ".tab-session")
    snapshot_file: str = "session.json"
    log_level: str = "WARNING"

    model_config = {"frozen": True}

    @field_validator("snapshot_file")
    @classmethod
    def _plain_file_name(cls, value: str) -> str:
        if not value or Path(value).name != value:
            raise ValueError(f"snapshot_file must be a bare file name, got {value!r}")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level {value!r}")
        return level

    @property
    def snapshot_path(self) -> Path:
        return self.storage_dir / self.snapshot_file

    @classmethod
    def from_env(cls, **overrides: object) -> "EngineConfig":
        """Build a config from the environment; ``overrides`` win when not None.

        Raises
        ------
        ConfigError
            If any resulting value is invalid.
        """
        values: dict[str, object] = {
            "storage_dir": Path(
                get_optional_env(ENV_STORAGE_DIR, str(Path.home() / ".tab-session"))
            ).expanduser(),
            "snapshot_file": get_optional_env(ENV_SNAPSHOT_FILE, "session.json"),
            "log_level": get_optional_env(ENV_LOG_LEVEL, "WARNING"),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return cls(**values)  # type: ignore[arg-type]
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc
