"""Calendar-day arithmetic for Taskflow.

Every function accepts a ``YYYY-MM-DD`` string (longer ISO strings are cut
down to their calendar part), a ``date`` or a ``datetime``. Only the calendar
day participates in comparisons; time-of-day never does.
Absent or invalid input yields ``False`` / ``""`` / ``None`` instead of raising.
Only an omitted ``today`` means the system date; an invalid one matches nothing.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any, Iterator

_DATE_KEY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:$|[T ])")


def parse_date(value: Any) -> date | None:
    """Return the calendar day of *value*, or None when it is not a date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    m = _DATE_KEY_RE.match(value.strip())
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def to_date_key(value: Any) -> str:
    """Canonicalize to ``YYYY-MM-DD``; empty string for invalid input."""
    d = parse_date(value)
    return d.isoformat() if d else ""


def is_valid_date_key(value: Any) -> bool:
    """True iff *value* is already a canonical ``YYYY-MM-DD`` string."""
    return isinstance(value, str) and to_date_key(value) == value


def _today(today: Any = None) -> date | None:
    # only an absent reference day reads the system clock
    if today is None:
        return date.today()
    return parse_date(today)


def shift(d: date, days: int) -> date | None:
    """``d + days``, or None past the representable calendar range."""
    try:
        return d + timedelta(days=days)
    except OverflowError:
        return None


def add_days(value: Any, days: int) -> date | None:
    d = parse_date(value)
    if d is None:
        return None
    return shift(d, days)


def days_between(a: Any, b: Any) -> int:
    """Non-negative number of days between two dates, in either order.

    Returns 0 when either side is invalid.
    """
    da, db = parse_date(a), parse_date(b)
    if da is None or db is None:
        return 0
    return abs((db - da).days)


def is_same_calendar_day(a: Any, b: Any) -> bool:
    da, db = parse_date(a), parse_date(b)
    if da is None or db is None:
        return False
    return da == db


def is_overdue(value: Any, today: Any = None) -> bool:
    """True iff the calendar day of *value* is strictly before today."""
    d, ref = parse_date(value), _today(today)
    if d is None or ref is None:
        return False
    return d < ref


def is_today(value: Any, today: Any = None) -> bool:
    d, ref = parse_date(value), _today(today)
    if d is None or ref is None:
        return False
    return d == ref


def is_tomorrow(value: Any, today: Any = None) -> bool:
    d, ref = parse_date(value), _today(today)
    if d is None or ref is None:
        return False
    return d == shift(ref, 1)


def is_future_date(value: Any, today: Any = None) -> bool:
    """True iff *value* falls on a day after today."""
    d, ref = parse_date(value), _today(today)
    if d is None or ref is None:
        return False
    return d > ref


def days_overdue(value: Any, today: Any = None) -> int:
    ref = _today(today)
    if ref is None or not is_overdue(value, ref):
        return 0
    return days_between(value, ref)


# ── Weeks (Sunday to Saturday) ────────────────────────────────


def start_of_week(value: Any) -> date | None:
    """The Sunday on or before *value*."""
    d = parse_date(value)
    if d is None:
        return None
    # date.weekday(): Monday=0 .. Sunday=6
    return shift(d, -((d.weekday() + 1) % 7))


def end_of_week(value: Any) -> date | None:
    """The Saturday on or after *value*."""
    start = start_of_week(value)
    if start is None:
        return None
    return shift(start, 6)


def week_dates(value: Any) -> list[date]:
    """The seven days (Sunday..Saturday) of the week containing *value*."""
    start = start_of_week(value)
    if start is None:
        return []
    days = [shift(start, i) for i in range(7)]
    return [d for d in days if d is not None]


def date_range(start: Any, end: Any) -> Iterator[date]:
    """Yield every day from *start* to *end* inclusive (nothing if reversed)."""
    ds, de = parse_date(start), parse_date(end)
    if ds is None or de is None:
        return
    current: date | None = ds
    while current is not None and current <= de:
        yield current
        current = shift(current, 1)


def relative_day_label(value: Any, today: Any = None) -> str:
    """Human label relative to today: 'Today', 'In 3 days', '2 days ago'."""
    d, ref = parse_date(value), _today(today)
    if d is None or ref is None:
        return ""
    diff = (d - ref).days
    if diff == 0:
        return "Today"
    if diff == 1:
        return "Tomorrow"
    if diff == -1:
        return "Yesterday"
    if diff > 1:
        return f"In {diff} days"
    return f"{-diff} days ago"
