"""Library configuration using Pydantic Settings.

Configuration is environment-aware:
- CALLGATE_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
CALLGATE_ENV = os.getenv("CALLGATE_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(CALLGATE_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (deployments may inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


def load_env_file(path: str | None) -> bool:
    """Populate os.environ from a .env file without touching variables already set.

    Nested BaseSettings don't inherit env_file, so this runs before any
    settings object is built. The host process environment always wins.

    Returns:
        True if a file was loaded.
    """

    if not path:
        return False

    from dotenv import load_dotenv

    load_dotenv(path, override=False)
    return True


load_env_file(_env_file)


def _build_gate_settings() -> "GateSettings":
    """Build wrapper defaults from environment."""

    return GateSettings()


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()


class GateSettings(BaseSettings):
    """Defaults applied when a wrapper is built without explicit values."""

    debounce_delay_seconds: float = Field(
        0.5,
        description="Quiet period used by @debounce when no delay is given",
        gt=0,
    )
    throttle_interval_seconds: float = Field(
        0.5,
        description="Interval used by @throttle when no interval is given",
        gt=0,
    )
    throttle_variant: Literal["lock", "timestamp"] = Field(
        "lock",
        description="Throttle bookkeeping: timer-cleared lock or last-run timestamp",
    )
    memo_warn_entries: int | None = Field(
        10000,
        description="Warn once when a memo table grows past this size (None disables)",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="CALLGATE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level name")
    format: Literal["json", "plain"] = Field(
        "json",
        description="json for machine-friendly lines, plain for local debugging",
    )
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(
        None,
        description="Log file path when output=file (defaults to logs/callgate.log)",
    )
    max_bytes: int = Field(
        0,
        description="Rotate the log file at this size; 0 disables rotation",
        ge=0,
    )
    backup_count: int = Field(3, description="Rotated files to keep", ge=0)

    model_config = SettingsConfigDict(
        env_prefix="CALLGATE_LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main settings container.

    Automatically loads from the appropriate .env.{CALLGATE_ENV} file.
    Raises validation errors on first import if a value is malformed.
    """

    env: str = CALLGATE_ENV
    gate: GateSettings = Field(default_factory=_build_gate_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        env_prefix="CALLGATE_",
        case_sensitive=False,
    )


# Global settings instance; nested settings use default_factory so env loading works.
settings = Settings()
