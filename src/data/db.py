"""
Torego: Reminder Database.

The persistence gateway: reminders and notifications live in one SQLite
file and survive between CLI invocations. A ReminderDB owns a single
connection for its lifetime (open, use, close); nothing here is global.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from src.core.errors import StorageFailure
from src.data.models import (
    GroupKey,
    GroupKind,
    Notification,
    NotificationGroup,
    Reminder,
)

logger = logging.getLogger(__name__)


class ReminderDB:
    """SQLite-backed storage for reminders and notifications."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from src.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        if db_path != ":memory:":
            try:
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                logger.error("Cannot create directory for %s: %s", db_path, exc)
                raise StorageFailure(f"Cannot create directory for {db_path}: {exc}") from exc
        self._in_transaction = False
        self._conn: sqlite3.Connection | None = self._connect()
        self._init_db()

    @property
    def db_path(self) -> str:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self._db_path)
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as exc:
            logger.error("Cannot open database %s: %s", self._db_path, exc)
            raise StorageFailure(f"Cannot open database {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        return conn

    def close(self) -> None:
        """Close the connection. Further calls raise StorageFailure."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug("Database %s closed", self._db_path)

    def __enter__(self) -> ReminderDB:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Connection helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _guard(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Translate sqlite3 errors into StorageFailure."""
        if self._conn is None:
            raise StorageFailure(f"Failed to {operation}: database is closed")
        try:
            yield self._conn
        except sqlite3.Error as exc:
            logger.error("Database error (%s): %s", operation, exc)
            raise StorageFailure(f"Failed to {operation}: {exc}") from exc

    @contextmanager
    def _session(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Run statements, committing unless an outer transaction is open."""
        with self._guard(operation) as conn:
            if self._in_transaction:
                yield conn
            else:
                with conn:
                    yield conn

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group several store calls into one commit.

        Any exception raised inside the block rolls every statement back.
        Nested calls join the outer transaction.
        """
        if self._in_transaction:
            yield
            return

        with self._guard("commit transaction") as conn:
            self._in_transaction = True
            try:
                with conn:
                    yield
            finally:
                self._in_transaction = False

    def _init_db(self) -> None:
        """Create the tables if they don't exist, and migrate schema."""
        with self._session("initialize schema") as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS reminders (
                    id           INTEGER PRIMARY KEY AUTOINCREMENT,
                    title        TEXT NOT NULL,
                    created_at   TEXT NOT NULL,
                    scheduled_at TEXT NOT NULL,
                    period       TEXT,
                    finished_at  TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS notifications (
                    id           INTEGER PRIMARY KEY AUTOINCREMENT,
                    title        TEXT NOT NULL,
                    created_at   TEXT NOT NULL,
                    dismissed_at TEXT,
                    reminder_id  INTEGER REFERENCES reminders(id)
                )
            """)
            # Migrate existing DBs: notifications predating reminders lack the link
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(notifications)").fetchall()
            }
            if "reminder_id" not in existing_cols:
                conn.execute(
                    "ALTER TABLE notifications ADD COLUMN reminder_id INTEGER "
                    "REFERENCES reminders(id)"
                )
                logger.info("Migrated notifications table: added reminder_id")
        logger.debug("Reminder tables initialized at %s", self._db_path)

    @staticmethod
    def _row_to_reminder(row: sqlite3.Row) -> Reminder:
        return Reminder(
            id=row["id"],
            title=row["title"],
            created_at=row["created_at"],
            scheduled_at=row["scheduled_at"],
            period=row["period"],
            finished_at=row["finished_at"],
        )

    @staticmethod
    def _row_to_notification(row: sqlite3.Row) -> Notification:
        return Notification(
            id=row["id"],
            title=row["title"],
            created_at=row["created_at"],
            dismissed_at=row["dismissed_at"],
            reminder_id=row["reminder_id"],
        )

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    def insert_reminder(
        self, title: str, scheduled_at: str, period: str | None, at: str,
    ) -> Reminder:
        """Insert a new active reminder."""
        with self._session("create reminder") as conn:
            cursor = conn.execute(
                """
                INSERT INTO reminders (title, created_at, scheduled_at, period)
                VALUES (?, ?, ?, ?)
                """,
                (title, at, scheduled_at, period),
            )
            reminder_id = cursor.lastrowid

        logger.info(
            "Reminder added: #%d '%s' on %s every %s",
            reminder_id, title, scheduled_at, period or "(once)",
        )
        return Reminder(
            id=reminder_id,
            title=title,
            created_at=at,
            scheduled_at=scheduled_at,
            period=period,
        )

    def get_active_reminder(self, reminder_id: int) -> Reminder | None:
        """Fetch a single unfinished reminder by ID."""
        with self._session("load reminder") as conn:
            row = conn.execute(
                "SELECT * FROM reminders WHERE id = ? AND finished_at IS NULL",
                (reminder_id,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_reminder(row)

    def query_active_reminders(self) -> list[Reminder]:
        """Return unfinished reminders, most recently scheduled first."""
        with self._session("load reminders") as conn:
            rows = conn.execute(
                """
                SELECT * FROM reminders WHERE finished_at IS NULL
                ORDER BY scheduled_at DESC, id DESC
                """
            ).fetchall()
        return [self._row_to_reminder(r) for r in rows]

    def finish_reminder(self, reminder_id: int, at: str) -> int:
        """Mark a reminder finished. Already finished or unknown ids are a no-op."""
        with self._session("finish reminder") as conn:
            cursor = conn.execute(
                "UPDATE reminders SET finished_at = ? WHERE id = ? AND finished_at IS NULL",
                (at, reminder_id),
            )
        if cursor.rowcount:
            logger.info("Reminder #%d finished", reminder_id)
        return cursor.rowcount

    def finish_due_one_shot_reminders(self, today: str, at: str) -> int:
        """Finish every due reminder that has no period."""
        with self._session("finish due reminders") as conn:
            cursor = conn.execute(
                """
                UPDATE reminders SET finished_at = ?
                WHERE scheduled_at <= ? AND finished_at IS NULL AND period IS NULL
                """,
                (at, today),
            )
        return cursor.rowcount

    def query_due_periodic_reminders(self, today: str) -> list[Reminder]:
        """Return active periodic reminders scheduled on or before today."""
        with self._session("load due reminders") as conn:
            rows = conn.execute(
                """
                SELECT * FROM reminders
                WHERE scheduled_at <= ? AND finished_at IS NULL AND period IS NOT NULL
                ORDER BY id
                """,
                (today,),
            ).fetchall()
        return [self._row_to_reminder(r) for r in rows]

    def reschedule_reminder(self, reminder_id: int, new_scheduled_at: str) -> None:
        with self._session("reschedule reminder") as conn:
            conn.execute(
                "UPDATE reminders SET scheduled_at = ? WHERE id = ?",
                (new_scheduled_at, reminder_id),
            )
        logger.debug("Reminder #%d rescheduled to %s", reminder_id, new_scheduled_at)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def insert_notification(
        self, title: str, at: str, reminder_id: int | None = None,
    ) -> Notification:
        with self._session("create notification") as conn:
            cursor = conn.execute(
                "INSERT INTO notifications (title, created_at, reminder_id) VALUES (?, ?, ?)",
                (title, at, reminder_id),
            )
            notification_id = cursor.lastrowid

        logger.info("Notification added: #%d '%s'", notification_id, title)
        return Notification(
            id=notification_id,
            title=title,
            created_at=at,
            reminder_id=reminder_id,
        )

    def insert_notifications_for_due_reminders(self, today: str, at: str) -> int:
        """Insert one notification per active reminder due on or before today."""
        with self._session("fire due reminders") as conn:
            cursor = conn.execute(
                """
                INSERT INTO notifications (title, created_at, reminder_id)
                SELECT title, ?, id FROM reminders
                WHERE scheduled_at <= ? AND finished_at IS NULL
                ORDER BY id
                """,
                (at, today),
            )
        return cursor.rowcount

    def query_active_notifications(self) -> list[Notification]:
        """Return undismissed notifications in creation order."""
        with self._session("load notifications") as conn:
            rows = conn.execute(
                """
                SELECT * FROM notifications WHERE dismissed_at IS NULL
                ORDER BY created_at, id
                """
            ).fetchall()
        return [self._row_to_notification(r) for r in rows]

    def query_active_notifications_grouped(self) -> list[NotificationGroup]:
        """Collapse undismissed notifications by group key.

        Notifications of one reminder form one group; each ad-hoc
        notification is its own group. The member with the lowest id
        represents the group. Groups are ordered by their earliest member.
        """
        with self._session("load notification groups") as conn:
            rows = conn.execute(
                """
                SELECT n.id, n.title, n.created_at, n.reminder_id,
                       g.group_count
                FROM (
                    SELECT MIN(id) AS first_id,
                           MIN(created_at) AS first_created_at,
                           COUNT(*) AS group_count
                    FROM notifications
                    WHERE dismissed_at IS NULL
                    GROUP BY reminder_id,
                             CASE WHEN reminder_id IS NULL THEN id END
                ) AS g
                JOIN notifications AS n ON n.id = g.first_id
                ORDER BY g.first_created_at, g.first_id
                """
            ).fetchall()

        groups: list[NotificationGroup] = []
        for row in rows:
            if row["reminder_id"] is not None:
                key = GroupKey.by_reminder(row["reminder_id"])
            else:
                key = GroupKey.standalone(row["id"])
            groups.append(
                NotificationGroup(
                    key=key,
                    count=row["group_count"],
                    notification_id=row["id"],
                    title=row["title"],
                    created_at=row["created_at"],
                )
            )
        return groups

    def dismiss_notifications_by_group_key(self, key: GroupKey, at: str) -> int:
        """Dismiss every active notification in a group. Returns rows cleared."""
        if key.kind is GroupKind.BY_REMINDER:
            query = """
                UPDATE notifications SET dismissed_at = ?
                WHERE dismissed_at IS NULL AND reminder_id = ?
            """
        else:
            query = """
                UPDATE notifications SET dismissed_at = ?
                WHERE dismissed_at IS NULL AND reminder_id IS NULL AND id = ?
            """
        with self._session("dismiss notifications") as conn:
            cursor = conn.execute(query, (at, key.value))
        if cursor.rowcount:
            logger.info("Dismissed %d notification(s) in group %s", cursor.rowcount, key)
        return cursor.rowcount
