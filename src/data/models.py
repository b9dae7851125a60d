"""
Torego: Data Models.

Reminders and notifications persist in SQLite between invocations.
Notification groups are derived on read and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass
class Reminder:
    """A stored intent to be notified, possibly recurring."""

    id: int
    title: str
    created_at: str                 # ISO local timestamp
    scheduled_at: str               # ISO date YYYY-MM-DD, next due day
    period: str | None = None       # canonical period text, None if one-shot
    finished_at: str | None = None  # set once fired (one-shot) or forgotten

    @property
    def active(self) -> bool:
        return self.finished_at is None

    @property
    def is_periodic(self) -> bool:
        return self.period is not None


@dataclass
class Notification:
    """A single firing event shown to the user until dismissed."""

    id: int
    title: str
    created_at: str                  # ISO local timestamp
    dismissed_at: str | None = None
    reminder_id: int | None = None   # None for ad-hoc notifications

    @property
    def active(self) -> bool:
        return self.dismissed_at is None

    @property
    def group_key(self) -> GroupKey:
        if self.reminder_id is not None:
            return GroupKey.by_reminder(self.reminder_id)
        return GroupKey.standalone(self.id)


class GroupKind(Enum):
    BY_REMINDER = "reminder"
    STANDALONE = "notification"


@dataclass(frozen=True)
class GroupKey:
    """Identifies a notification group.

    Notifications of the same reminder share one key; an ad-hoc
    notification is always a group of its own.
    """

    kind: GroupKind
    value: int

    @classmethod
    def by_reminder(cls, reminder_id: int) -> GroupKey:
        return cls(GroupKind.BY_REMINDER, reminder_id)

    @classmethod
    def standalone(cls, notification_id: int) -> GroupKey:
        return cls(GroupKind.STANDALONE, notification_id)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.value}"


@dataclass
class NotificationGroup:
    """Active notifications sharing a group key, collapsed into one entry.

    `title` and `created_at` come from the member with the lowest id.
    """

    key: GroupKey
    count: int
    notification_id: int
    title: str
    created_at: str
