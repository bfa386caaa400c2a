"""Tests for taskflow/filters.py — filtering, sorting and partitions."""

import pytest
from taskflow.filters import (
    completed_today,
    filter_habits,
    filter_tasks,
    habit_categories,
    habits_needing_attention,
    overdue_tasks,
    pending_today,
    priority_weight,
    sort_tasks,
    task_categories,
    task_flags,
    tasks_by_due_date,
    tasks_needing_attention,
    today_tasks,
    upcoming_tasks,
    urgent_tasks,
)
from taskflow.models import Habit, Task

TODAY = "2024-01-10"


def _tasks() -> list[Task]:
    return [
        Task(id="a", title="Quarterly report", description="Numbers for Q4", due_date="2024-01-05",
             priority="high", status="todo", category="Work", created_at="2024-01-01T09:00:00+00:00"),
        Task(id="b", title="Buy groceries", due_date="2024-01-12", priority="low",
             status="in-progress", category="Home", created_at="2024-01-09T18:30:00+00:00"),
        Task(id="c", title="File taxes", due_date=None, priority="medium", status="done",
             category="Finance", created_at="2024-01-10T08:00:00+00:00"),
        Task(id="d", title="Call plumber", due_date="2024-01-10", priority="high",
             status="todo", category="Home", created_at="2024-01-08T10:00:00+00:00"),
    ]


def _ids(items) -> list[str]:
    return [i.id for i in items]


# ── filter_tasks ──────────────────────────────────────────────


def test_filter_no_criteria_keeps_everything():
    assert _ids(filter_tasks(_tasks())) == ["a", "b", "c", "d"]
    assert _ids(filter_tasks(_tasks(), {})) == ["a", "b", "c", "d"]


def test_filter_search_is_case_insensitive_over_fields():
    assert _ids(filter_tasks(_tasks(), {"search": "q4"})) == ["a"]
    assert _ids(filter_tasks(_tasks(), {"search": "HOME"})) == ["b", "d"]


def test_filter_by_status_and_priority():
    assert _ids(filter_tasks(_tasks(), {"status": "todo", "priority": "high"})) == ["a", "d"]


def test_filter_by_category_exact_or_all():
    assert _ids(filter_tasks(_tasks(), {"category": "Home"})) == ["b", "d"]
    assert _ids(filter_tasks(_tasks(), {"category": "home"})) == []
    assert _ids(filter_tasks(_tasks(), {"category": "all"})) == ["a", "b", "c", "d"]


def test_filter_date_range_inclusive_and_keeps_undated():
    result = filter_tasks(_tasks(), {"dateRange": {"start": "2024-01-05", "end": "2024-01-10"}})
    assert _ids(result) == ["a", "c", "d"]


def test_filter_malformed_criteria_is_no_filter():
    assert len(filter_tasks(_tasks(), "status=todo")) == 4
    assert len(filter_tasks(_tasks(), {"status": "blocked", "priority": 3})) == 4
    assert len(filter_tasks(_tasks(), {"dateRange": "last week"})) == 4


def test_filter_is_idempotent():
    criteria = {"search": "o", "status": "todo"}
    once = filter_tasks(_tasks(), criteria)
    assert filter_tasks(once, criteria) == once


def test_filter_does_not_mutate_input():
    tasks = _tasks()
    filter_tasks(tasks, {"status": "done"})
    assert _ids(tasks) == ["a", "b", "c", "d"]


# ── sort_tasks ────────────────────────────────────────────────


def test_sort_by_due_date_puts_undated_last():
    assert _ids(sort_tasks(_tasks(), "dueDate", "asc")) == ["a", "d", "b", "c"]
    assert _ids(sort_tasks(_tasks(), "dueDate", "desc")) == ["c", "b", "d", "a"]


def test_sort_by_priority_weight():
    assert _ids(sort_tasks(_tasks(), "priority", "desc")) == ["a", "d", "c", "b"]


def test_sort_by_status_order():
    assert _ids(sort_tasks(_tasks(), "status", "asc")) == ["a", "d", "b", "c"]


def test_sort_by_title_and_created():
    assert _ids(sort_tasks(_tasks(), "title")) == ["b", "d", "c", "a"]
    assert _ids(sort_tasks(_tasks(), "createdAt", "desc")) == ["c", "b", "d", "a"]


def test_sort_unknown_key_keeps_order():
    assert _ids(sort_tasks(_tasks(), "colour")) == ["a", "b", "c", "d"]


@pytest.mark.parametrize("key", ["dueDate", "priority", "status", "title", "createdAt"])
def test_sort_is_a_permutation(key):
    tasks = _tasks()
    result = sort_tasks(tasks, key)
    assert sorted(_ids(result)) == sorted(_ids(tasks))
    assert result is not tasks


def test_priority_weight():
    assert priority_weight("high") == 3
    assert priority_weight("medium") == 2
    assert priority_weight("low") == 1
    assert priority_weight("???") == 0


# ── Task partitions ───────────────────────────────────────────


def test_task_partitions():
    tasks = _tasks()
    assert _ids(today_tasks(tasks, TODAY)) == ["d"]
    assert _ids(overdue_tasks(tasks, TODAY)) == ["a"]
    assert _ids(upcoming_tasks(tasks, TODAY, 7)) == ["b", "d"]
    assert _ids(urgent_tasks(tasks, TODAY)) == ["a"]
    assert _ids(tasks_needing_attention(tasks, TODAY)) == ["a", "d"]


def test_done_tasks_are_never_overdue():
    done = Task(id="x", title="Old", due_date="2020-01-01", status="done")
    assert overdue_tasks([done], TODAY) == []


def test_task_flags():
    flags = task_flags(_tasks()[0], TODAY)
    assert flags["id"] == "a"
    assert flags["isOverdue"] is True
    assert flags["isToday"] is False
    assert flags["daysOverdue"] == 5
    assert flags["isUrgent"] is True
    assert flags["priorityWeight"] == 3


def test_task_categories_sorted_unique():
    assert task_categories(_tasks()) == ["Finance", "Home", "Work"]


# ── Habits ────────────────────────────────────────────────────


def _habits() -> list[Habit]:
    return [
        Habit(id="run", title="Morning run", frequency="daily", category="Health",
              completions=frozenset({"2024-01-08", "2024-01-09", "2024-01-10"})),
        Habit(id="review", title="Weekly review", frequency="weekly", category="Work",
              completions=frozenset({"2023-12-31", "2024-01-07"})),
        Habit(id="read", title="Read", description="Twenty pages", frequency="daily", category=""),
    ]


def test_filter_habits():
    habits = _habits()
    assert _ids(filter_habits(habits, {"frequency": "daily"}, TODAY)) == ["run", "read"]
    assert _ids(filter_habits(habits, {"search": "pages"}, TODAY)) == ["read"]
    assert _ids(filter_habits(habits, {"category": "Work"}, TODAY)) == ["review"]
    assert _ids(filter_habits(habits, {"completedToday": "yes"}, TODAY)) == ["run"]
    assert _ids(filter_habits(habits, {"completedToday": "no"}, TODAY)) == ["review", "read"]
    assert _ids(filter_habits(habits, {"completedToday": "all"}, TODAY)) == ["run", "review", "read"]


def test_completed_and_pending_today():
    habits = _habits()
    assert _ids(completed_today(habits, TODAY)) == ["run"]
    assert _ids(pending_today(habits, TODAY)) == ["review", "read"]


def test_habits_needing_attention():
    assert _ids(habits_needing_attention(_habits(), TODAY, 3)) == ["read"]
    assert _ids(habits_needing_attention(_habits(), TODAY, 2)) == ["review", "read"]


def test_habit_categories_skip_blank():
    assert habit_categories(_habits()) == ["Health", "Work"]


def test_tasks_by_due_date_groups():
    extra = [
        Task(id="e", title="Dentist", due_date="2024-01-11", status="done"),
        Task(id="f", title="Renew passport", due_date="2024-01-17"),
        Task(id="g", title="Book flights", due_date="2024-01-18"),
        Task(id="h", title="Conference", due_date="2024-01-24"),
        Task(id="i", title="Holiday", due_date="2024-01-25"),
        Task(id="j", title="Broken", due_date="someday"),
    ]
    groups = tasks_by_due_date(_tasks() + extra, TODAY)
    assert {name: _ids(tasks) for name, tasks in groups.items()} == {
        "overdue": ["a"],
        "today": ["d"],
        "tomorrow": ["e"],
        "thisWeek": ["b", "f"],
        "nextWeek": ["g", "h"],
        "later": ["i"],
        "noDueDate": ["c", "j"],
    }


def test_tasks_by_due_date_needs_valid_today():
    groups = tasks_by_due_date(_tasks(), "garbage")
    assert list(groups) == ["overdue", "today", "tomorrow", "thisWeek", "nextWeek", "later", "noDueDate"]
    assert not any(groups.values())
