"""Application settings.

Centralises environment variables (pydantic-settings) for the CLI and the
adapters. The codec itself takes explicit arguments and never reads settings.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no extra deps)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "fmdump"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "fmdump"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "fmdump"
    return Path.home() / ".config" / "fmdump"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Central settings.

    Every value can be overridden with an `FMDUMP_*` environment variable or
    a `.env` file (project first, then the per-user config directory).
    """

    model_config = SettingsConfigDict(
        env_prefix="FMDUMP_",
        extra="ignore",
        case_sensitive=False,
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    check_future_dates: bool = Field(
        default=True,
        description="Emit a warning for records dated after the current time.",
    )
    json_indent: int = Field(
        default=2,
        ge=0,
        le=8,
        description="Indentation of exported JSON files.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level for the adapters (DEBUG, INFO, WARNING...).",
    )
    output_dir: Path = Field(
        default=Path("out"),
        description="Default directory for exported files.",
    )

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value!r}")
        return level
