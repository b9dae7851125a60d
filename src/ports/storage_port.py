"""Storage port: abstract interface for reminder persistence.

Core services depend on this protocol, never on SQLite directly.
Implementations raise src.core.errors.StorageFailure on I/O errors.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

from src.data.models import GroupKey, Notification, NotificationGroup, Reminder


class ReminderStore(Protocol):
    """Abstract persistence interface used by core modules."""

    def transaction(self) -> AbstractContextManager[None]: ...

    # Reminders

    def insert_reminder(
        self, title: str, scheduled_at: str, period: str | None, at: str,
    ) -> Reminder: ...

    def get_active_reminder(self, reminder_id: int) -> Reminder | None: ...

    def query_active_reminders(self) -> list[Reminder]: ...

    def finish_reminder(self, reminder_id: int, at: str) -> int: ...

    def finish_due_one_shot_reminders(self, today: str, at: str) -> int: ...

    def query_due_periodic_reminders(self, today: str) -> list[Reminder]: ...

    def reschedule_reminder(self, reminder_id: int, new_scheduled_at: str) -> None: ...

    # Notifications

    def insert_notification(
        self, title: str, at: str, reminder_id: int | None = None,
    ) -> Notification: ...

    def insert_notifications_for_due_reminders(self, today: str, at: str) -> int: ...

    def query_active_notifications(self) -> list[Notification]: ...

    def query_active_notifications_grouped(self) -> list[NotificationGroup]: ...

    def dismiss_notifications_by_group_key(self, key: GroupKey, at: str) -> int: ...
