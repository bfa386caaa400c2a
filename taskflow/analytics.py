"""Aggregate statistics over task and habit collections.

Everything here recomputes from scratch on every call from the given
collections and reference day; there is no cached state.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable

from taskflow.dates import parse_date, shift, to_date_key
from taskflow.filters import (
    completed_today,
    habits_needing_attention,
    overdue_tasks,
    today_tasks,
    upcoming_tasks,
    urgent_tasks,
)
from taskflow.models import (
    Habit,
    HabitPerformance,
    HabitStats,
    HabitStreak,
    ProductivityMetrics,
    ProgressSummary,
    Task,
    TaskStats,
)
from taskflow.streaks import completion_rate, current_streak, longest_streak, percentage


# ── Tasks ─────────────────────────────────────────────────────


def task_stats(tasks: Iterable[Task], today: Any, upcoming_days: int = 7) -> TaskStats:
    """Status counts, date partitions and priority breakdown.

    ``overdue``, ``due_today`` and ``upcoming`` only count tasks that are not
    done; the priority breakdown counts open tasks as well.
    """
    tasks = list(tasks or ())
    stats = TaskStats(total=len(tasks))
    if not tasks:
        return stats

    for task in tasks:
        if task.status == "done":
            stats.completed += 1
        elif task.status == "in-progress":
            stats.in_progress += 1
        elif task.status == "todo":
            stats.todo += 1
        if task.status != "done" and task.priority in stats.priority_breakdown:
            stats.priority_breakdown[task.priority] += 1

    stats.overdue = len(overdue_tasks(tasks, today))
    stats.due_today = len(today_tasks(tasks, today))
    stats.upcoming = len(upcoming_tasks(tasks, today, upcoming_days))
    stats.completion_rate = percentage(stats.completed, stats.total)
    return stats


def _created_within(task: Task, ref: date, days: int) -> bool:
    created = parse_date(task.created_at)
    cutoff = shift(ref, -days) or date.min
    return created is not None and created >= cutoff


def _recent_completion_rate(tasks: list[Task], ref: date, days: int) -> int:
    recent = [t for t in tasks if _created_within(t, ref, days)]
    done = sum(1 for t in recent if t.status == "done")
    return percentage(done, len(recent))


def productivity_metrics(tasks: Iterable[Task], today: Any) -> ProductivityMetrics:
    """Activity counts for today plus 7/30-day completion of recently created tasks."""
    tasks = list(tasks or ())
    ref = parse_date(today)
    metrics = ProductivityMetrics()
    if ref is None:
        return metrics

    created_today = [t for t in tasks if parse_date(t.created_at) == ref]
    metrics.tasks_created_today = len(created_today)
    metrics.tasks_completed_today = sum(1 for t in created_today if t.status == "done")
    metrics.weekly_completion_rate = _recent_completion_rate(tasks, ref, 7)
    metrics.monthly_completion_rate = _recent_completion_rate(tasks, ref, 30)
    metrics.urgent_tasks = len(urgent_tasks(tasks, ref))
    metrics.overdue_tasks = len(overdue_tasks(tasks, ref))
    return metrics


def progress_summary(tasks: Iterable[Task]) -> ProgressSummary:
    """Status counts with the share of tasks done, and done or in progress."""
    tasks = list(tasks or ())
    summary = ProgressSummary(total=len(tasks))
    summary.completed = sum(1 for t in tasks if t.status == "done")
    summary.in_progress = sum(1 for t in tasks if t.status == "in-progress")
    summary.todo = sum(1 for t in tasks if t.status == "todo")
    summary.completion_percentage = percentage(summary.completed, summary.total)
    summary.progress_percentage = percentage(summary.completed + summary.in_progress, summary.total)
    return summary


# ── Habits ────────────────────────────────────────────────────


def habit_stats(habits: Iterable[Habit], today: Any) -> HabitStats:
    """Completion counts and per-habit streaks, in collection order."""
    habits = list(habits or ())
    stats = HabitStats(total_habits=len(habits))
    today_key = to_date_key(today)

    for habit in habits:
        if habit.frequency in stats.frequency_breakdown:
            stats.active_habits += 1
            stats.frequency_breakdown[habit.frequency] += 1
        if today_key and today_key in habit.completions:
            stats.completed_today += 1
        stats.total_completions += len(habit.completions)
        stats.per_habit_current_streaks.append(
            HabitStreak(
                habit_id=habit.id,
                habit_title=habit.title,
                streak=current_streak(habit.completions, habit.frequency, today),
            )
        )
        stats.longest_streak_across_all = max(
            stats.longest_streak_across_all,
            longest_streak(habit.completions, habit.frequency),
        )

    stats.completion_rate_today = percentage(stats.completed_today, stats.total_habits)
    return stats


def habit_performance(habits: Iterable[Habit], today: Any, attention_days: int = 3) -> HabitPerformance:
    """Today's completion, mean 7-day rate and habits that slipped."""
    habits = list(habits or ())
    perf = HabitPerformance(total_habits=len(habits))
    if not habits:
        return perf

    perf.today_completed = len(completed_today(habits, today))
    perf.today_completion_rate = percentage(perf.today_completed, perf.total_habits)
    weekly_rates = [completion_rate(h.completions, today, 7) for h in habits]
    perf.weekly_completion_rate = percentage(sum(weekly_rates), 100 * len(habits))
    perf.habits_needing_attention = len(habits_needing_attention(habits, today, attention_days))
    perf.streak_habits = sum(
        1 for h in habits if current_streak(h.completions, h.frequency, today) > 0
    )
    return perf
