"""Error taxonomy shared by the core services and the store.

Services raise these; the CLI adapter turns them into user-facing messages.
"""

from __future__ import annotations


class ReminderError(Exception):
    """Base class for every error raised by the reminder core."""


class InvalidArgument(ReminderError, ValueError):
    """Raised for a blank title, an unparseable period or a malformed id."""


class OutOfRange(ReminderError, IndexError):
    """Raised when a display index is not in the current active list."""


class NotFound(ReminderError, LookupError):
    """Raised when a lookup by id finds no active row."""


class StorageFailure(ReminderError):
    """Raised when the underlying store reports an I/O or query error."""
