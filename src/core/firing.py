"""
Torego: Notification Firing Engine.

Checkout is pull-based: nothing runs in the background, the caller invokes
fire_due_reminders() whenever it wants due reminders turned into
notifications. The three steps run in one store transaction, so a failure
in any of them leaves the store untouched and a retry cannot duplicate
notifications.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING

from src.core.period import try_parse_period

if TYPE_CHECKING:
    from src.ports.storage_port import ReminderStore

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    spawned: int = 0       # notifications created
    finished: int = 0      # one-shot reminders finished
    rescheduled: int = 0   # periodic reminders moved forward one period


class FiringEngine:
    """Turns due reminders into notifications."""

    def __init__(
        self,
        store: ReminderStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or datetime.now

    def fire_due_reminders(self) -> CheckoutResult:
        """Fire every active reminder scheduled on or before today.

        1. Insert one notification per due reminder.
        2. Finish due one-shot reminders.
        3. Move due periodic reminders one period past their current
           scheduled day (not past today), so a backlog catches up one
           period per checkout.

        Raises:
            StorageFailure: the store failed; nothing was applied.
        """
        moment = self._clock()
        today = moment.date().isoformat()
        at = moment.isoformat(timespec="seconds")
        result = CheckoutResult()

        with self._store.transaction():
            result.spawned = self._store.insert_notifications_for_due_reminders(today, at)
            result.finished = self._store.finish_due_one_shot_reminders(today, at)

            for reminder in self._store.query_due_periodic_reminders(today):
                period = try_parse_period(reminder.period)
                if period is None:
                    logger.warning(
                        "Reminder #%d has unrecognized period %r; not rescheduled",
                        reminder.id, reminder.period,
                    )
                    continue
                try:
                    next_day = period.advance(date.fromisoformat(reminder.scheduled_at))
                except (ValueError, OverflowError) as exc:
                    logger.warning(
                        "Reminder #%d cannot advance by %s from %s (%s); not rescheduled",
                        reminder.id, reminder.period, reminder.scheduled_at, exc,
                    )
                    continue
                self._store.reschedule_reminder(reminder.id, next_day.isoformat())
                result.rescheduled += 1

        logger.info(
            "Checkout %s: %d notification(s), %d finished, %d rescheduled",
            today, result.spawned, result.finished, result.rescheduled,
        )
        return result
