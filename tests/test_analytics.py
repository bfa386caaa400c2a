"""Tests for taskflow/analytics.py — task/habit statistics and summaries."""

from taskflow.analytics import (
    habit_performance,
    habit_stats,
    productivity_metrics,
    progress_summary,
    task_stats,
)
from taskflow.models import Habit, Task

TODAY = "2024-01-10"


def _tasks() -> list[Task]:
    return [
        Task(id="a", title="Report", due_date="2024-01-05", priority="high", status="todo",
             created_at="2024-01-01T09:00:00+00:00"),
        Task(id="b", title="Groceries", due_date="2024-01-12", priority="low", status="in-progress",
             created_at="2024-01-09T18:30:00+00:00"),
        Task(id="c", title="Taxes", due_date=None, priority="medium", status="done",
             created_at="2024-01-10T08:00:00+00:00"),
        Task(id="d", title="Plumber", due_date="2024-01-10", priority="high", status="todo",
             created_at="2023-11-01T10:00:00+00:00"),
    ]


def test_task_stats_counts():
    stats = task_stats(_tasks(), TODAY)
    assert stats.total == 4
    assert stats.completed == 1
    assert stats.in_progress == 1
    assert stats.todo == 2
    assert stats.completed + stats.in_progress + stats.todo == stats.total
    assert stats.overdue == 1
    assert stats.due_today == 1
    assert stats.upcoming == 2
    assert stats.completion_rate == 25
    assert stats.priority_breakdown == {"high": 2, "medium": 0, "low": 1}


def test_task_stats_overdue_scenario():
    task = Task(id="x", title="Late", due_date="2024-01-01", status="todo")
    assert task_stats([task], "2024-01-05").overdue == 1


def test_task_stats_empty():
    stats = task_stats([], TODAY)
    assert stats.total == 0
    assert stats.completion_rate == 0
    assert stats.to_dict()["priorityBreakdown"] == {"high": 0, "medium": 0, "low": 0}


def test_productivity_metrics():
    m = productivity_metrics(_tasks(), TODAY)
    assert m.tasks_created_today == 1
    assert m.tasks_completed_today == 1
    # b and c created within 7 days, a within 30; c is done
    assert m.weekly_completion_rate == 50
    assert m.monthly_completion_rate == 33
    assert m.urgent_tasks == 1
    assert m.overdue_tasks == 1


def _habits() -> list[Habit]:
    return [
        Habit(id="run", title="Morning run", frequency="daily",
              completions=frozenset({"2024-01-08", "2024-01-09", "2024-01-10"})),
        Habit(id="review", title="Weekly review", frequency="weekly",
              completions=frozenset({"2023-12-24", "2023-12-31", "2024-01-07"})),
        Habit(id="read", title="Read", frequency="daily"),
    ]


def test_habit_stats():
    stats = habit_stats(_habits(), TODAY)
    assert stats.total_habits == 3
    assert stats.active_habits == 3
    assert stats.completed_today == 1
    assert stats.total_completions == 6
    assert stats.longest_streak_across_all == 3
    assert [(s.habit_id, s.streak) for s in stats.per_habit_current_streaks] == [
        ("run", 3), ("review", 3), ("read", 0),
    ]
    assert stats.completion_rate_today == 33
    assert stats.frequency_breakdown == {"daily": 2, "weekly": 1}


def test_habit_stats_empty():
    stats = habit_stats([], TODAY)
    assert stats.total_habits == 0
    assert stats.completion_rate_today == 0
    assert stats.per_habit_current_streaks == []


def test_habit_performance():
    perf = habit_performance(_habits(), TODAY, attention_days=3)
    assert perf.total_habits == 3
    assert perf.today_completed == 1
    assert perf.today_completion_rate == 33
    # 7-day rates: run 3/7 -> 43, review 1/7 -> 14, read 0
    assert perf.weekly_completion_rate == 19
    assert perf.habits_needing_attention == 1
    assert perf.streak_habits == 2


def test_task_stats_invalid_today_counts_no_dates():
    stats = task_stats(_tasks(), "garbage")
    assert stats.total == 4
    assert (stats.overdue, stats.due_today, stats.upcoming) == (0, 0, 0)


def test_progress_summary():
    summary = progress_summary(_tasks())
    assert (summary.completed, summary.in_progress, summary.todo) == (1, 1, 2)
    assert summary.completion_percentage == 25
    assert summary.progress_percentage == 50
    assert summary.to_dict()["progressPercentage"] == 50
    assert progress_summary([]).to_dict() == {
        "total": 0,
        "completed": 0,
        "inProgress": 0,
        "todo": 0,
        "completionPercentage": 0,
        "progressPercentage": 0,
    }
