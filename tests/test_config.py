"""Tests for src.config: Settings validation."""

import pytest
from pydantic import ValidationError

from src.config import Settings


def test_defaults():
    settings = Settings()
    assert settings.DEFAULT_PERIOD == "daily"
    assert settings.LOG_LEVEL == "WARNING"
    assert settings.DATABASE_PATH.endswith("torego.db")


def test_empty_database_path_falls_back_to_default():
    assert Settings(DATABASE_PATH="").DATABASE_PATH == Settings().DATABASE_PATH


def test_database_path_expands_home():
    assert "~" not in Settings(DATABASE_PATH="~/reminders.db").DATABASE_PATH


def test_default_period_is_normalized():
    assert Settings(DEFAULT_PERIOD=" Weekly ").DEFAULT_PERIOD == "weekly"


def test_invalid_default_period_rejected():
    with pytest.raises(ValidationError):
        Settings(DEFAULT_PERIOD="sometimes")


def test_log_level_normalized():
    assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"


def test_invalid_log_level_rejected():
    with pytest.raises(ValidationError):
        Settings(LOG_LEVEL="chatty")
