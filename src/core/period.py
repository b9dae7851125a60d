"""
Torego: Recurrence periods.

A period is parsed once from text such as "weekly" or "3d" and knows how to
advance a scheduled date by one step. Month and year steps use calendar
arithmetic, clamping to the last day of the month (Jan 31 + 1 month = Feb 28).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum

from dateutil.relativedelta import relativedelta

from src.core.errors import InvalidArgument


class PeriodUnit(Enum):
    DAY = "d"
    WEEK = "w"
    MONTH = "m"
    YEAR = "y"


@dataclass(frozen=True)
class Period:
    """One recurrence step: `count` units, optionally under a keyword name."""

    count: int
    unit: PeriodUnit
    name: str | None = None  # "daily" | "weekly" | "monthly" | "annually"

    def __str__(self) -> str:
        if self.name is not None:
            return self.name
        return f"{self.count}{self.unit.value}"

    @property
    def delta(self) -> relativedelta:
        if self.unit is PeriodUnit.DAY:
            return relativedelta(days=self.count)
        if self.unit is PeriodUnit.WEEK:
            return relativedelta(weeks=self.count)
        if self.unit is PeriodUnit.MONTH:
            return relativedelta(months=self.count)
        return relativedelta(years=self.count)

    def advance(self, day: date) -> date:
        """Return the date one period after `day`."""
        return day + self.delta


NAMED_PERIODS: dict[str, Period] = {
    "daily": Period(1, PeriodUnit.DAY, "daily"),
    "weekly": Period(1, PeriodUnit.WEEK, "weekly"),
    "monthly": Period(1, PeriodUnit.MONTH, "monthly"),
    "annually": Period(1, PeriodUnit.YEAR, "annually"),
}

_CUSTOM_RE = re.compile(r"^(\d+)([dwmy])$")


def try_parse_period(text: str | None) -> Period | None:
    """Parse period text, returning None if it is not recognized."""
    if not text:
        return None
    normalized = text.strip().lower()

    named = NAMED_PERIODS.get(normalized)
    if named is not None:
        return named

    match = _CUSTOM_RE.match(normalized)
    if match is None:
        return None
    count = int(match.group(1))
    if count < 1:
        return None
    return Period(count, PeriodUnit(match.group(2)))


def parse_period(text: str) -> Period:
    """Parse period text or raise InvalidArgument.

    Accepts "daily", "weekly", "monthly", "annually" or a custom
    interval like "2d", "3w", "4m", "5y".
    """
    period = try_parse_period(text)
    if period is None:
        raise InvalidArgument(
            f"Invalid period {text!r}: use daily, weekly, monthly, annually "
            f"or <n><unit> with unit one of d, w, m, y (e.g. 3d)"
        )
    try:
        period.advance(date.today())
    except (ValueError, OverflowError) as exc:
        raise InvalidArgument(f"Invalid period {text!r}: interval is too large") from exc
    return period
