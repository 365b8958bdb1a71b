"""
Dates -- Calendar helpers for month-aligned billing arithmetic.

Responsibility:
    Coerce caller date-likes to ``date`` and answer calendar questions
    (month length, first/last day, month stepping) for the proration and
    cycle engines.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Time-of-day is always dropped; engines only ever see ``date``.
    - ``add_months`` preserves the day of month.  Callers must only step
      days that exist in every month (1..28); anything else raises.

Failure modes:
    - InvalidParameterError for unsupported types or string formats.
    - ValueError from ``add_months`` when the day does not exist in the
      target month.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

from billing_kernel.exceptions import InvalidParameterError

DATE_FMT = "%Y-%m-%d"
COMPACT_FMT = "%Y%m%d"

ONE_DAY = timedelta(days=1)

# Fixed English abbreviations; month labels must not depend on the locale.
MONTH_ABBREVIATIONS: tuple[str, ...] = (
    "", "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def to_date(value: date | datetime | str, field: str = "date") -> date:
    """
    Normalize a date-like to a calendar ``date``.

    Accepts ``date``, ``datetime`` (time-of-day dropped) and strings in
    ``YYYY-MM-DD`` or ``YYYYMMDD`` format.
    """
    # datetime is a subclass of date; check it first.
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        for fmt in (DATE_FMT, COMPACT_FMT):
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        raise InvalidParameterError(field, value, "unsupported date string format")
    raise InvalidParameterError(field, value, f"unsupported type {type(value).__name__}")


def days_in_month(year: int, month: int) -> int:
    """Calendar length of a month (28/29/30/31)."""
    return calendar.monthrange(year, month)[1]


def first_day_of_month(d: date) -> date:
    return d.replace(day=1)


def last_day_of_month(d: date) -> date:
    return d.replace(day=days_in_month(d.year, d.month))


def next_month_start(d: date) -> date:
    """First day of the month after ``d``'s month."""
    if d.month == 12:
        return date(d.year + 1, 1, 1)
    return date(d.year, d.month + 1, 1)


def add_months(d: date, months: int) -> date:
    """Step ``months`` calendar months, keeping the day of month."""
    year = d.year + (d.month - 1 + months) // 12
    month = (d.month - 1 + months) % 12 + 1
    return date(year, month, d.day)


def month_label(year: int, month: int) -> str:
    """Short display label, e.g. ``"Feb 2025"``."""
    return f"{MONTH_ABBREVIATIONS[month]} {year}"


def inclusive_days(start: date, end: date) -> int:
    """Number of days in ``start .. end`` counting both endpoints."""
    return (end - start).days + 1
