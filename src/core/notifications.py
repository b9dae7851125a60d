"""
Torego: Notification Grouping & Dismissal.

The user sees one line per group: every active notification spawned by the
same reminder collapses into a single entry, while ad-hoc notifications
always stand alone. Dismissing an entry clears all of its notifications.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from src.core.errors import InvalidArgument, OutOfRange

if TYPE_CHECKING:
    from src.data.models import GroupKey, Notification, NotificationGroup
    from src.ports.storage_port import ReminderStore

logger = logging.getLogger(__name__)


class NotificationService:
    """Lists, creates and dismisses notifications.

    Display indices are resolved against a fresh listing on every call.
    Two processes dismissing by index at the same time may therefore hit
    different groups than intended; a single user is assumed.
    """

    def __init__(
        self,
        store: ReminderStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or datetime.now

    def _now(self) -> str:
        return self._clock().isoformat(timespec="seconds")

    def list_active_groups(self) -> list[NotificationGroup]:
        """Active notification groups, earliest first."""
        return self._store.query_active_notifications_grouped()

    def list_active_notifications(self) -> list[Notification]:
        return self._store.query_active_notifications()

    def create_notification(self, title: str) -> Notification:
        """Create an ad-hoc notification not tied to any reminder."""
        title = (title or "").strip()
        if not title:
            raise InvalidArgument("Notification title must not be empty")
        return self._store.insert_notification(title, self._now())

    def dismiss_group(self, key: GroupKey) -> int:
        """Dismiss every active notification in the group. Returns the count cleared."""
        return self._store.dismiss_notifications_by_group_key(key, self._now())

    def dismiss_group_by_display_index(self, index: int) -> int:
        """Dismiss the group at `index` in list_active_groups() order.

        Returns:
            How many notifications were cleared.

        Raises:
            OutOfRange: `index` is not within the current active groups.
        """
        groups = self.list_active_groups()
        if not 0 <= index < len(groups):
            raise OutOfRange(f"{index} is not a valid index of an active notification")
        group = groups[index]
        cleared = self.dismiss_group(group.key)
        logger.info("Dismissed group #%d '%s' (%d cleared)", index, group.title, cleared)
        return cleared
