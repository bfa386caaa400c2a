"""Streak engine: current/longest streaks and completion rates.

Single source of truth for streak rules. Every function is a pure function
of a completion set, a frequency and an explicit reference day; nothing is
read from the system clock and nothing is cached between calls.
Unparseable entries in a completion set are treated as absent.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Any, Iterable

from taskflow.dates import parse_date, shift, start_of_week, to_date_key
from taskflow.models import Habit, HabitCalendar, StreakInfo


ONE_DAY = timedelta(days=1)
ONE_WEEK = timedelta(days=7)


def percentage(part: int, whole: int) -> int:
    """Integer percentage rounded half-up; 0 when *whole* is 0."""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def completed_days(completions: Iterable[Any]) -> set[date]:
    days = set()
    for entry in completions or ():
        d = parse_date(entry)
        if d is not None:
            days.add(d)
    return days


def _completed_weeks(days: set[date]) -> set[date]:
    weeks = {start_of_week(d) for d in days}
    weeks.discard(None)
    return weeks


# ── Current streak ────────────────────────────────────────────


def current_daily_streak(completions: Iterable[Any], today: Any) -> int:
    days = completed_days(completions)
    ref = parse_date(today)
    if not days or ref is None:
        return 0
    # An unchecked today does not break a streak that ended yesterday, so the
    # count may start from a day that is not itself completed.
    cursor = ref if ref in days else shift(ref, -1)
    streak = 0
    while cursor is not None and cursor in days:
        streak += 1
        cursor = shift(cursor, -1)
    return streak


def current_weekly_streak(completions: Iterable[Any], today: Any) -> int:
    """Consecutive completed Sunday-based weeks, counted back from this week."""
    days = completed_days(completions)
    ref = parse_date(today)
    if not days or ref is None:
        return 0
    weeks = _completed_weeks(days)
    cursor = start_of_week(ref)
    streak = 0
    while cursor is not None and cursor in weeks:
        streak += 1
        cursor = shift(cursor, -7)
    return streak


def current_streak(completions: Iterable[Any], frequency: str, today: Any) -> int:
    if frequency == "weekly":
        return current_weekly_streak(completions, today)
    return current_daily_streak(completions, today)


# ── Longest streak ────────────────────────────────────────────


def _longest_run(periods: Iterable[date], step: timedelta) -> int:
    ordered = sorted(periods)
    if not ordered:
        return 0
    longest = run = 1
    for prev, cur in zip(ordered, ordered[1:]):
        if cur - prev == step:
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest


def longest_daily_streak(completions: Iterable[Any]) -> int:
    return _longest_run(completed_days(completions), ONE_DAY)


def longest_weekly_streak(completions: Iterable[Any]) -> int:
    return _longest_run(_completed_weeks(completed_days(completions)), ONE_WEEK)


def longest_streak(completions: Iterable[Any], frequency: str = "daily") -> int:
    if frequency == "weekly":
        return longest_weekly_streak(completions)
    return longest_daily_streak(completions)


# ── Rates ─────────────────────────────────────────────────────


def completion_rate(completions: Iterable[Any], today: Any, days: int = 30) -> int:
    """Percentage of days in ``[today - days + 1, today]`` that are completed."""
    ref = parse_date(today)
    if ref is None or days <= 0:
        return 0
    done = completed_days(completions)
    if not done:
        return 0
    hits = sum(1 for offset in range(days) if shift(ref, -offset) in done)
    return percentage(hits, days)


def streak_info(habit: Habit, today: Any, rate_days: int = 30) -> StreakInfo:
    """Current and longest streak plus the trailing completion rate."""
    return StreakInfo(
        current=current_streak(habit.completions, habit.frequency, today),
        longest=longest_streak(habit.completions, habit.frequency),
        percentage=completion_rate(habit.completions, today, rate_days),
    )


def habit_calendar(habit: Habit, year: int, month: int) -> HabitCalendar:
    """Per-day completion flags for one calendar month (month is 1-12)."""
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        return HabitCalendar(year=year, month=month)
    days_in_month = calendar.monthrange(year, month)[1]
    keys = {to_date_key(c) for c in habit.completions}
    cal = HabitCalendar(year=year, month=month, days_in_month=days_in_month)
    for day in range(1, days_in_month + 1):
        done = date(year, month, day).isoformat() in keys
        cal.completions[day] = done
        if done:
            cal.total_completions += 1
    return cal
