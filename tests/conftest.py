"""Shared test fixtures and configuration.

Sets up environment variables so src.config never touches the real
~/.config/torego database, and provides a temp-file ReminderDB plus the
services built on it.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("TOREGO_DATABASE_PATH", ":memory:")
os.environ.setdefault("TOREGO_DEFAULT_PERIOD", "daily")
os.environ.setdefault("TOREGO_LOG_LEVEL", "WARNING")

import pytest


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_torego.db")


@pytest.fixture
def reminder_db(tmp_db_path):
    """Return a ReminderDB backed by a temp file, closed after the test."""
    from src.data.db import ReminderDB

    db = ReminderDB(db_path=tmp_db_path)
    yield db
    db.close()


@pytest.fixture
def reminder_service(reminder_db):
    from src.core.reminders import ReminderService
    return ReminderService(reminder_db, default_period="daily")


@pytest.fixture
def firing_engine(reminder_db):
    from src.core.firing import FiringEngine
    return FiringEngine(reminder_db)


@pytest.fixture
def notification_service(reminder_db):
    from src.core.notifications import NotificationService
    return NotificationService(reminder_db)
