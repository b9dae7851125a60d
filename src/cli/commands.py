"""
Torego: Command-line interface.

The terminal is the only user interface. Each command opens the database,
calls one core service and renders the returned dataclasses as plain text.
Running without a command shows the active notifications.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TextIO

from src.core.errors import ReminderError
from src.core.firing import FiringEngine
from src.core.notifications import NotificationService
from src.core.reminders import ReminderService
from src.data.db import ReminderDB
from src.data.models import GroupKey, NotificationGroup, Reminder

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

_PERIOD_HELP = """\
The period can be one of the following:
- "daily"
- "weekly"
- "monthly"
- "annually"
- A custom interval like "2d", "3w", "4m", "5y"

If not provided, the period defaults to "daily".
"""


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _display_time(timestamp: str) -> str:
    return timestamp.replace("T", " ")[:16]


def render_groups(groups: list[NotificationGroup]) -> list[str]:
    """One line per group: `index: [count] title (created)`."""
    lines = []
    for i, group in enumerate(groups):
        created = _display_time(group.created_at)
        if group.count == 1:
            lines.append(f"{i}: {group.title} ({created})")
        else:
            lines.append(f"{i}: [{group.count}] {group.title} ({created})")
    return lines


def render_reminders(reminders: list[Reminder]) -> list[str]:
    """Aligned table of reminders; `#` is the index `forget --index` accepts."""
    title_width = max([len("Title")] + [len(r.title) for r in reminders])
    header = f"{'#':>3}  {'ID':>4}  {'Title':<{title_width}}  {'Scheduled':<10}  Period"
    lines = [header, "-" * len(header)]
    for i, r in enumerate(reminders):
        lines.append(
            f"{i:>3}  {r.id:>4}  {r.title:<{title_width}}  {r.scheduled_at:<10}  "
            f"{r.period or 'once'}"
        )
    return lines


def _print_lines(lines: list[str], out: TextIO) -> None:
    for line in lines:
        print(line, file=out)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def cmd_notifications(args: argparse.Namespace, db: ReminderDB) -> int:
    """Show active notification groups."""
    groups = NotificationService(db).list_active_groups()
    if not groups:
        print("No active notifications.")
        return 0
    _print_lines(render_groups(groups), sys.stdout)
    return 0


def cmd_remind(args: argparse.Namespace, db: ReminderDB) -> int:
    reminder = ReminderService(db).create_reminder(
        args.title, args.period, once=args.once, start_date=args.on,
    )
    print(f"Reminder set! (#{reminder.id}, due {reminder.scheduled_at})")
    return 0


def cmd_forget(args: argparse.Namespace, db: ReminderDB) -> int:
    service = ReminderService(db)
    if args.index is not None and args.id is not None:
        print("Usage: torego forget <id> | --index N (not both)", file=sys.stderr)
        return 1
    if args.index is not None:
        reminder = service.forget_reminder_by_index(args.index)
        print(f"Reminder forgotten! ({reminder.title})")
        return 0
    if args.id is None:
        print("Usage: torego forget <id> | --index N", file=sys.stderr)
        return 1
    service.delete_reminder(args.id)
    print("Reminder forgotten!")
    return 0


def cmd_list(args: argparse.Namespace, db: ReminderDB) -> int:
    reminders = ReminderService(db).list_active_reminders()
    if not reminders:
        print("No reminders found.")
        print("Use 'torego remind <title> [period]' to set a reminder.")
        return 0
    _print_lines(render_reminders(reminders), sys.stdout)
    return 0


def cmd_checkout(args: argparse.Namespace, db: ReminderDB) -> int:
    result = FiringEngine(db).fire_due_reminders()
    print(
        f"Reminders checked out! {result.spawned} new notification(s), "
        f"{result.finished} finished, {result.rescheduled} rescheduled."
    )
    return 0


def cmd_notify(args: argparse.Namespace, db: ReminderDB) -> int:
    NotificationService(db).create_notification(args.title)
    print("Notification added!")
    return 0


def cmd_dismiss(args: argparse.Namespace, db: ReminderDB) -> int:
    service = NotificationService(db)
    targets = [args.index, args.reminder, args.notification]
    if sum(t is not None for t in targets) > 1:
        print(
            "Usage: torego dismiss <index> | --reminder ID | --notification ID (only one)",
            file=sys.stderr,
        )
        return 1
    if args.reminder is not None:
        cleared = service.dismiss_group(GroupKey.by_reminder(args.reminder))
    elif args.notification is not None:
        cleared = service.dismiss_group(GroupKey.standalone(args.notification))
    elif args.index is not None:
        cleared = service.dismiss_group_by_display_index(args.index)
    else:
        print("Usage: torego dismiss <index> | --reminder ID | --notification ID", file=sys.stderr)
        return 1

    if cleared == 0:
        print("Nothing to dismiss.")
    else:
        print(f"Dismissed {cleared} notification(s).")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="torego",
        description="Torego is a lightweight reminder and notification tool",
    )
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (default: TOREGO_DATABASE_PATH or ~/.config/torego)",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("init", help="Initialize the Torego database")
    sub.add_parser("version", help="Print the version number of Torego")

    p = sub.add_parser(
        "remind",
        aliases=["r"],
        help="Set a reminder",
        description="Set a reminder with a title and an optional period.\n\n" + _PERIOD_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("title")
    p.add_argument("period", nargs="?", default=None)
    p.add_argument("--once", action="store_true", help="Fire once, then finish")
    p.add_argument("--on", default=None, metavar="YYYY-MM-DD", help="First due day")
    p.set_defaults(handler=cmd_remind)

    p = sub.add_parser("forget", aliases=["f"], help="Forget a reminder")
    p.add_argument("id", type=int, nargs="?", default=None)
    p.add_argument("--index", type=int, default=None, help="Position in 'torego list'")
    p.set_defaults(handler=cmd_forget)

    p = sub.add_parser("list", aliases=["l"], help="List active reminders")
    p.set_defaults(handler=cmd_list)

    p = sub.add_parser("checkout", aliases=["c"], help="Fire due reminders")
    p.set_defaults(handler=cmd_checkout)

    p = sub.add_parser("notifications", aliases=["n"], help="Show active notifications")
    p.set_defaults(handler=cmd_notifications)

    p = sub.add_parser("notify", help="Add a notification not tied to a reminder")
    p.add_argument("title")
    p.set_defaults(handler=cmd_notify)

    p = sub.add_parser("dismiss", aliases=["d"], help="Dismiss a notification group")
    p.add_argument("index", type=int, nargs="?", default=None)
    target = p.add_mutually_exclusive_group()
    target.add_argument("--reminder", type=int, default=None, metavar="ID")
    target.add_argument("--notification", type=int, default=None, metavar="ID")
    p.set_defaults(handler=cmd_dismiss)

    return parser


def _resolve_db_path(args: argparse.Namespace) -> str:
    if args.db_path:
        return str(Path(args.db_path).expanduser())
    from src.config import settings
    return settings.DATABASE_PATH


def _is_initialized(db_path: str) -> bool:
    return db_path == ":memory:" or Path(db_path).exists()


def main(argv: list[str] | None = None) -> int:
    """Parse `argv`, run one command and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        print(f"Torego v{VERSION}")
        return 0

    db_path = _resolve_db_path(args)

    if args.command == "init":
        if _is_initialized(db_path):
            print("Database already initialized")
            return 0
        try:
            ReminderDB(db_path).close()
        except ReminderError as exc:
            print(f"Error initializing database: {exc}", file=sys.stderr)
            return 1
        print(f"Database initialized at {db_path}")
        return 0

    if not _is_initialized(db_path):
        print(
            "[FATAL] Database is not initialized. "
            "Please run 'torego init' to initialize the database.",
            file=sys.stderr,
        )
        return 1

    handler: Callable[[argparse.Namespace, ReminderDB], int] = getattr(
        args, "handler", cmd_notifications,
    )
    try:
        with ReminderDB(db_path) as db:
            return handler(args, db)
    except ReminderError as exc:
        logger.debug("Command %s failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def run() -> None:
    """Console-script entry point: configure logging, run, exit."""
    from src.config import settings

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    sys.exit(main())
