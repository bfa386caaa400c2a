"""Filtering, sorting and date partitions over task and habit collections.

Filters are advisory: criteria of the wrong shape impose no constraint and
an unknown sort key keeps the natural order. Inputs are never mutated; every
function returns a new list.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping

from taskflow.dates import (
    days_overdue,
    is_overdue,
    is_today,
    is_tomorrow,
    parse_date,
    shift,
    to_date_key,
)
from taskflow.models import HABIT_FREQUENCIES, TASK_PRIORITIES, TASK_STATUSES, Habit, Task


SORT_KEYS = ("dueDate", "priority", "status", "title", "createdAt")
SORT_ORDERS = ("asc", "desc")
COMPLETED_TODAY_OPTIONS = ("yes", "no")

PRIORITY_WEIGHTS = {"high": 3, "medium": 2, "low": 1}
STATUS_ORDER = {"todo": 1, "in-progress": 2, "done": 3}

_NO_DUE_DATE = date.max
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def priority_weight(priority: str) -> int:
    return PRIORITY_WEIGHTS.get(priority, 0)


def _criteria(criteria: Any) -> Mapping[str, Any]:
    return criteria if isinstance(criteria, Mapping) else {}


def _choice(criteria: Mapping[str, Any], key: str, allowed: Iterable[str]) -> str | None:
    """The criterion value if it is one of *allowed*; None means unconstrained."""
    value = criteria.get(key)
    if isinstance(value, str) and value in allowed:
        return value
    return None


def _category(criteria: Mapping[str, Any]) -> str | None:
    value = criteria.get("category")
    if isinstance(value, str) and value and value != "all":
        return value
    return None


def _search(criteria: Mapping[str, Any]) -> str:
    value = criteria.get("search")
    return value.strip().lower() if isinstance(value, str) else ""


def _matches_search(term: str, *fields: str) -> bool:
    return any(term in (f or "").lower() for f in fields)


# ── Tasks ─────────────────────────────────────────────────────


def filter_tasks(tasks: Iterable[Task], criteria: Any = None) -> list[Task]:
    """Filter tasks; all present criteria must match.

    Recognized: search, status, priority, category, dateRange{start, end}.
    Tasks without a due date are not excluded by a date range.
    """
    c = _criteria(criteria)
    term = _search(c)
    status = _choice(c, "status", TASK_STATUSES)
    priority = _choice(c, "priority", TASK_PRIORITIES)
    category = _category(c)

    start = end = None
    date_range = c.get("dateRange")
    if isinstance(date_range, Mapping):
        start = parse_date(date_range.get("start"))
        end = parse_date(date_range.get("end"))

    result = []
    for task in tasks or ():
        if term and not _matches_search(term, task.title, task.description, task.category):
            continue
        if status and task.status != status:
            continue
        if priority and task.priority != priority:
            continue
        if category and task.category != category:
            continue
        due = parse_date(task.due_date)
        if due is not None:
            if start and due < start:
                continue
            if end and due > end:
                continue
        result.append(task)
    return result


def _created_at(task: Task) -> datetime:
    if not task.created_at:
        return _EPOCH
    try:
        created = datetime.fromisoformat(task.created_at.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


def _sort_key(key: str):
    if key == "dueDate":
        return lambda t: parse_date(t.due_date) or _NO_DUE_DATE
    if key == "priority":
        return lambda t: priority_weight(t.priority)
    if key == "status":
        return lambda t: STATUS_ORDER.get(t.status, 0)
    if key == "title":
        return lambda t: (t.title or "").lower()
    if key == "createdAt":
        return _created_at
    return None


def sort_tasks(tasks: Iterable[Task], key: str = "dueDate", order: str = "asc") -> list[Task]:
    """Stable sort into a new list.

    Tasks with no due date sort as if due on the last representable day, so
    they come last in ascending order. Priority sorts by weight
    (low < medium < high), status by todo < in-progress < done.
    """
    items = list(tasks or ())
    sort_key = _sort_key(key) if isinstance(key, str) else None
    if sort_key is None:
        return items
    return sorted(items, key=sort_key, reverse=(order == "desc"))


def today_tasks(tasks: Iterable[Task], today: Any) -> list[Task]:
    """Open tasks due today."""
    return [t for t in tasks or () if t.status != "done" and is_today(t.due_date, today)]


def overdue_tasks(tasks: Iterable[Task], today: Any) -> list[Task]:
    """Open tasks due before today."""
    return [t for t in tasks or () if t.status != "done" and is_overdue(t.due_date, today)]


def upcoming_tasks(tasks: Iterable[Task], today: Any, days: int = 7) -> list[Task]:
    """Open tasks due in ``[today, today + days]``."""
    ref = parse_date(today)
    if ref is None:
        return []
    horizon = shift(ref, days) or date.max
    result = []
    for task in tasks or ():
        due = parse_date(task.due_date)
        if task.status != "done" and due is not None and ref <= due <= horizon:
            result.append(task)
    return result


def is_urgent(task: Task, today: Any) -> bool:
    """High priority, or past due."""
    return task.priority == "high" or is_overdue(task.due_date, today)


def urgent_tasks(tasks: Iterable[Task], today: Any) -> list[Task]:
    """High-priority open tasks that are past due."""
    return [
        t for t in tasks or ()
        if t.status != "done" and t.priority == "high" and is_overdue(t.due_date, today)
    ]


def tasks_needing_attention(tasks: Iterable[Task], today: Any) -> list[Task]:
    """Open tasks that are overdue, or high priority and due today."""
    result = []
    for t in tasks or ():
        if t.status == "done":
            continue
        if is_overdue(t.due_date, today) or (t.priority == "high" and is_today(t.due_date, today)):
            result.append(t)
    return result


def task_flags(task: Task, today: Any) -> dict[str, Any]:
    """Task record plus computed display fields."""
    d = task.to_dict()
    d.update({
        "isOverdue": is_overdue(task.due_date, today),
        "isToday": is_today(task.due_date, today),
        "isTomorrow": is_tomorrow(task.due_date, today),
        "daysOverdue": days_overdue(task.due_date, today),
        "isUrgent": is_urgent(task, today),
        "priorityWeight": priority_weight(task.priority),
    })
    return d


DUE_DATE_GROUPS = ("overdue", "today", "tomorrow", "thisWeek", "nextWeek", "later", "noDueDate")


def tasks_by_due_date(tasks: Iterable[Task], today: Any) -> dict[str, list[Task]]:
    """Group every task, done ones included, by how far off its due date is.

    ``thisWeek`` holds days 2-7 after today, ``nextWeek`` days 8-14. A task
    whose due date is missing or unparseable goes under ``noDueDate``. With
    an invalid *today* every group is empty.
    """
    groups: dict[str, list[Task]] = {name: [] for name in DUE_DATE_GROUPS}
    ref = parse_date(today)
    if ref is None:
        return groups
    for task in tasks or ():
        due = parse_date(task.due_date)
        if due is None:
            groups["noDueDate"].append(task)
            continue
        diff = (due - ref).days
        if diff < 0:
            name = "overdue"
        elif diff == 0:
            name = "today"
        elif diff == 1:
            name = "tomorrow"
        elif diff <= 7:
            name = "thisWeek"
        elif diff <= 14:
            name = "nextWeek"
        else:
            name = "later"
        groups[name].append(task)
    return groups


def _categories(items: Iterable[Task | Habit]) -> list[str]:
    return sorted({i.category for i in items or () if i.category and i.category.strip()})


def task_categories(tasks: Iterable[Task]) -> list[str]:
    return _categories(tasks)


# ── Habits ────────────────────────────────────────────────────


def filter_habits(habits: Iterable[Habit], criteria: Any = None, today: Any = None) -> list[Habit]:
    """Filter habits; recognized: search, frequency, category, completedToday.

    ``completedToday`` is evaluated against *today*; without a valid
    reference day that criterion is ignored.
    """
    c = _criteria(criteria)
    term = _search(c)
    frequency = _choice(c, "frequency", HABIT_FREQUENCIES)
    category = _category(c)
    completed = _choice(c, "completedToday", COMPLETED_TODAY_OPTIONS)
    today_key = to_date_key(today)

    result = []
    for habit in habits or ():
        if term and not _matches_search(term, habit.title, habit.description, habit.category):
            continue
        if frequency and habit.frequency != frequency:
            continue
        if category and habit.category != category:
            continue
        if completed and today_key:
            done = today_key in habit.completions
            if (completed == "yes") != done:
                continue
        result.append(habit)
    return result


def completed_today(habits: Iterable[Habit], today: Any) -> list[Habit]:
    key = to_date_key(today)
    return [h for h in habits or () if key and key in h.completions]


def pending_today(habits: Iterable[Habit], today: Any) -> list[Habit]:
    key = to_date_key(today)
    return [h for h in habits or () if not key or key not in h.completions]


def habits_needing_attention(habits: Iterable[Habit], today: Any, days: int = 3) -> list[Habit]:
    """Habits with no completion on or after ``today - days``."""
    ref = parse_date(today)
    if ref is None:
        return []
    cutoff = shift(ref, -days) or date.min
    result = []
    for habit in habits or ():
        recent = [d for d in map(parse_date, habit.completions) if d is not None and d >= cutoff]
        if not recent:
            result.append(habit)
    return result


def habit_categories(habits: Iterable[Habit]) -> list[str]:
    return _categories(habits)
