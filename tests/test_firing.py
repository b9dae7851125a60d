"""Tests for src.core.firing: FiringEngine (checkout)."""

import sqlite3

import pytest
from datetime import date, datetime, timedelta
from unittest.mock import patch

from src.core.errors import StorageFailure
from src.core.firing import CheckoutResult, FiringEngine


def _days_ago(n: int) -> date:
    return date.today() - timedelta(days=n)


class TestOneShotReminders:
    def test_fires_once_then_finishes(self, reminder_service, firing_engine, reminder_db):
        r = reminder_service.create_reminder("Dentist", once=True, start_date=_days_ago(1))

        result = firing_engine.fire_due_reminders()
        assert result == CheckoutResult(spawned=1, finished=1, rescheduled=0)
        notifications = reminder_db.query_active_notifications()
        assert len(notifications) == 1
        assert notifications[0].title == "Dentist"
        assert notifications[0].reminder_id == r.id
        assert reminder_db.get_active_reminder(r.id) is None

        second = firing_engine.fire_due_reminders()
        assert second == CheckoutResult()
        assert len(reminder_db.query_active_notifications()) == 1

    def test_future_reminder_not_fired(self, reminder_service, firing_engine, reminder_db):
        reminder_service.create_reminder("Later", once=True, start_date=date.today() + timedelta(days=1))
        assert firing_engine.fire_due_reminders().spawned == 0
        assert len(reminder_service.list_active_reminders()) == 1

    def test_reminder_due_today_fires(self, reminder_service, firing_engine):
        reminder_service.create_reminder("Today", once=True)
        assert firing_engine.fire_due_reminders().spawned == 1

    def test_deleted_reminder_not_fired(self, reminder_service, firing_engine, reminder_db):
        r = reminder_service.create_reminder("Forgotten", start_date=_days_ago(2))
        reminder_service.delete_reminder(r.id)
        assert firing_engine.fire_due_reminders() == CheckoutResult()
        assert reminder_db.query_active_notifications() == []


class TestPeriodicReminders:
    def test_weekly_backlog_catches_up_one_period_per_checkout(
        self, reminder_service, firing_engine, reminder_db,
    ):
        r = reminder_service.create_reminder("Review budget", "weekly", start_date=_days_ago(10))

        first = firing_engine.fire_due_reminders()
        assert first == CheckoutResult(spawned=1, finished=0, rescheduled=1)
        assert reminder_db.get_active_reminder(r.id).scheduled_at == _days_ago(3).isoformat()

        second = firing_engine.fire_due_reminders()
        assert second.spawned == 1
        assert reminder_db.get_active_reminder(r.id).scheduled_at == (
            date.today() + timedelta(days=4)
        ).isoformat()

        third = firing_engine.fire_due_reminders()
        assert third == CheckoutResult()

        assert len(reminder_db.query_active_notifications()) == 2
        assert reminder_service.get_reminder(r.id).active is True

    def test_daily_due_today_fires_once_per_day(self, reminder_service, firing_engine, reminder_db):
        r = reminder_service.create_reminder("Meds")
        firing_engine.fire_due_reminders()
        firing_engine.fire_due_reminders()
        assert len(reminder_db.query_active_notifications()) == 1
        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        assert reminder_db.get_active_reminder(r.id).scheduled_at == tomorrow

    def test_monthly_advances_from_scheduled_day(self, reminder_db):
        from src.core.reminders import ReminderService

        clock = lambda: datetime(2026, 3, 5, 8, 0)
        ReminderService(reminder_db, clock=clock).create_reminder(
            "Rent", "monthly", start_date="2026-01-31",
        )
        engine = FiringEngine(reminder_db, clock=clock)

        engine.fire_due_reminders()
        assert reminder_db.query_active_reminders()[0].scheduled_at == "2026-02-28"
        engine.fire_due_reminders()
        assert reminder_db.query_active_reminders()[0].scheduled_at == "2026-03-28"
        assert engine.fire_due_reminders() == CheckoutResult()

    def test_unrecognized_stored_period_is_not_rescheduled(self, reminder_db, firing_engine):
        today = date.today().isoformat()
        r = reminder_db.insert_reminder("Legacy", today, "fortnightly", f"{today}T08:00:00")

        result = firing_engine.fire_due_reminders()
        assert result == CheckoutResult(spawned=1, finished=0, rescheduled=0)
        assert reminder_db.get_active_reminder(r.id).scheduled_at == today

    def test_notification_created_at_uses_clock(self, reminder_db):
        clock = lambda: datetime(2026, 10, 19, 18, 45, 2, 5000)
        reminder_db.insert_reminder("Clocked", "2026-10-19", "daily", "2026-10-19T08:00:00")
        FiringEngine(reminder_db, clock=clock).fire_due_reminders()
        assert reminder_db.query_active_notifications()[0].created_at == "2026-10-19T18:45:02"


    def test_overflowing_stored_period_does_not_block_checkout(
        self, reminder_service, reminder_db, firing_engine,
    ):
        fine = reminder_service.create_reminder("Fine", "daily", start_date=_days_ago(1))
        today = date.today().isoformat()
        huge = reminder_db.insert_reminder("Huge", today, "10000y", f"{today}T08:00:00")

        result = firing_engine.fire_due_reminders()
        assert result == CheckoutResult(spawned=2, finished=0, rescheduled=1)
        assert reminder_db.get_active_reminder(fine.id).scheduled_at == today
        assert reminder_db.get_active_reminder(huge.id).scheduled_at == today
        titles = sorted(n.title for n in reminder_db.query_active_notifications())
        assert titles == ["Fine", "Huge"]


class TestCheckoutAtomicity:
    def test_failure_in_reschedule_rolls_back_notifications(
        self, reminder_service, firing_engine, reminder_db,
    ):
        r = reminder_service.create_reminder("Atomic", "weekly", start_date=_days_ago(1))
        reminder_service.create_reminder("Once", once=True, start_date=_days_ago(1))

        boom = StorageFailure("Failed to reschedule reminder: disk I/O error")
        with patch.object(reminder_db, "reschedule_reminder", side_effect=boom):
            with pytest.raises(StorageFailure):
                firing_engine.fire_due_reminders()

        assert reminder_db.query_active_notifications() == []
        assert len(reminder_service.list_active_reminders()) == 2
        assert reminder_db.get_active_reminder(r.id).scheduled_at == _days_ago(1).isoformat()

        # A retry after the failure fires each reminder exactly once
        result = firing_engine.fire_due_reminders()
        assert result == CheckoutResult(spawned=2, finished=1, rescheduled=1)
        assert len(reminder_db.query_active_notifications()) == 2

    def test_storage_error_surfaces(self, reminder_service, firing_engine, reminder_db):
        reminder_service.create_reminder("Doomed", start_date=_days_ago(1))
        with sqlite3.connect(reminder_db.db_path) as conn:
            conn.execute("DROP TABLE notifications")
        with pytest.raises(StorageFailure):
            firing_engine.fire_due_reminders()
