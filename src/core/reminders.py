"""
Torego: Reminder Lifecycle Manager.

Creates reminders, lists the active ones and finishes them when the user
forgets them. Firing lives in src.core.firing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime
from typing import TYPE_CHECKING

from src.core.errors import InvalidArgument, NotFound, OutOfRange
from src.core.period import parse_period

if TYPE_CHECKING:
    from src.data.models import Reminder
    from src.ports.storage_port import ReminderStore

logger = logging.getLogger(__name__)


class ReminderService:
    """Stateless service over a ReminderStore.

    Every call re-reads what it needs; nothing is cached between calls.
    """

    def __init__(
        self,
        store: ReminderStore,
        clock: Callable[[], datetime] | None = None,
        default_period: str | None = None,
    ) -> None:
        if default_period is None:
            from src.config import settings
            default_period = settings.DEFAULT_PERIOD

        self._store = store
        self._clock = clock or datetime.now
        self._default_period = default_period

    def _now(self) -> str:
        return self._clock().isoformat(timespec="seconds")

    def create_reminder(
        self,
        title: str,
        period: str | None = None,
        *,
        once: bool = False,
        start_date: date | str | None = None,
    ) -> Reminder:
        """Create an active reminder due on `start_date` (default: today).

        Args:
            title: Non-empty description.
            period: Recurrence text; falls back to the default period
                ("daily") when omitted.
            once: Create a one-shot reminder instead. Cannot be combined
                with `period`.
            start_date: First due day, as a date or ISO string.

        Raises:
            InvalidArgument: blank title, bad period or bad start date.
        """
        title = (title or "").strip()
        if not title:
            raise InvalidArgument("Reminder title must not be empty")

        if once:
            if period is not None:
                raise InvalidArgument("A one-shot reminder cannot have a period")
            canonical_period = None
        else:
            canonical_period = str(parse_period(period or self._default_period))

        scheduled_at = self._resolve_start_date(start_date)
        return self._store.insert_reminder(title, scheduled_at, canonical_period, self._now())

    def _resolve_start_date(self, start_date: date | str | None) -> str:
        if start_date is None:
            return self._clock().date().isoformat()
        if isinstance(start_date, date):
            return start_date.isoformat()
        try:
            return date.fromisoformat(start_date.strip()).isoformat()
        except ValueError as exc:
            raise InvalidArgument(
                f"Invalid start date {start_date!r}: expected YYYY-MM-DD"
            ) from exc

    def delete_reminder(self, reminder_id: int) -> None:
        """Finish a reminder. Unknown or already finished ids are silently accepted."""
        if self._store.finish_reminder(reminder_id, self._now()) == 0:
            logger.debug("delete_reminder: #%d was not active", reminder_id)

    def forget_reminder_by_index(self, index: int) -> Reminder:
        """Finish the reminder at `index` in list_active_reminders() order."""
        reminders = self.list_active_reminders()
        if not 0 <= index < len(reminders):
            raise OutOfRange(f"{index} is not a valid index of a reminder")
        reminder = reminders[index]
        self.delete_reminder(reminder.id)
        return reminder

    def get_reminder(self, reminder_id: int) -> Reminder:
        """Fetch an active reminder or raise NotFound."""
        reminder = self._store.get_active_reminder(reminder_id)
        if reminder is None:
            raise NotFound(f"No reminder found with id {reminder_id}")
        return reminder

    def update_reminder(
        self,
        reminder_id: int,
        title: str | None = None,
        period: str | None = None,
    ) -> Reminder:
        """Replace a reminder with a fresh one carrying the new title/period.

        The old reminder is finished and the new one is scheduled for today,
        in a single transaction.
        """
        with self._store.transaction():
            current = self.get_reminder(reminder_id)
            new_title = title if title is not None else current.title
            self.delete_reminder(reminder_id)
            if period is None and current.period is None:
                replacement = self.create_reminder(new_title, once=True)
            else:
                replacement = self.create_reminder(new_title, period or current.period)
        logger.info("Reminder #%d replaced by #%d", reminder_id, replacement.id)
        return replacement

    def list_active_reminders(self) -> list[Reminder]:
        """Return unfinished reminders, most recently scheduled first."""
        return self._store.query_active_reminders()
