"""
Torego: Centralized configuration.

Loads all settings from .env and the environment.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)

_DEFAULT_DATABASE_PATH = str(
    Path.home() / ".config" / "torego" / "storage" / "torego.db"
)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # SQLite
    DATABASE_PATH: str = _DEFAULT_DATABASE_PATH

    # Period used when `remind` is given no period
    DEFAULT_PERIOD: str = "daily"

    # Logging
    LOG_LEVEL: str = "WARNING"

    @field_validator("DATABASE_PATH", mode="before")
    @classmethod
    def expand_path(cls, v: str) -> str:
        if not v:
            return _DEFAULT_DATABASE_PATH
        if v == ":memory:":
            return v
        return str(Path(v).expanduser())

    @field_validator("DEFAULT_PERIOD")
    @classmethod
    def check_period(cls, v: str) -> str:
        from src.core.period import parse_period

        return str(parse_period(v))

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        level = str(v).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v!r}")
        return level


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        DATABASE_PATH=os.getenv("TOREGO_DATABASE_PATH", ""),
        DEFAULT_PERIOD=os.getenv("TOREGO_DEFAULT_PERIOD", "daily"),
        LOG_LEVEL=os.getenv("TOREGO_LOG_LEVEL", "WARNING"),
    )


# Singleton, imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
