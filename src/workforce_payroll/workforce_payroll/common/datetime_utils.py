from __future__ import annotations

import calendar
from datetime import date, datetime


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """First and last calendar day of the month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def weekday_count(month: int, year: int) -> int:
    """Number of Monday-Friday days in the month (no holiday calendar)."""
    _, days_in_month = calendar.monthrange(year, month)
    return sum(1 for day in range(1, days_in_month + 1) if date(year, month, day).weekday() < 5)


def ranges_overlap(start: date, end: date, window_start: date, window_end: date) -> bool:
    return start <= window_end and end >= window_start
