"""Typed dataclasses for the Taskflow data model.

Task and Habit use from_dict/to_dict for YAML/JSON serialization; every
stored or imported record is built through from_dict once it has passed
validation. camelCase at the boundary is mapped to snake_case in Python;
snake_case aliases are accepted on input too. Unknown keys are ignored;
missing keys use defaults. Dates are canonicalized to YYYY-MM-DD.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from taskflow.dates import to_date_key


TASK_PRIORITIES = ("low", "medium", "high")
TASK_STATUSES = ("todo", "in-progress", "done")
HABIT_FREQUENCIES = ("daily", "weekly")

DEFAULT_PRIORITY = "medium"
DEFAULT_STATUS = "todo"
DEFAULT_FREQUENCY = "daily"


def _pick(d: dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in d:
        return d[camel]
    return d.get(snake, default)


def _int(value: Any, default: int) -> int:
    if isinstance(value, str):
        value = value.strip()
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _str(value: Any) -> str:
    return "" if value is None else str(value).strip()


# ── Tasks ─────────────────────────────────────────────────────


@dataclass
class Task:
    id: str = ""
    title: str = ""
    description: str = ""
    due_date: str | None = None  # YYYY-MM-DD
    priority: str = DEFAULT_PRIORITY  # low, medium, high
    status: str = DEFAULT_STATUS  # todo, in-progress, done
    category: str = ""
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        return cls(
            id=_str(d.get("id")),
            title=_str(d.get("title")),
            description=_str(d.get("description")),
            due_date=to_date_key(_pick(d, "dueDate", "due_date")) or None,
            priority=_str(d.get("priority") or DEFAULT_PRIORITY),
            status=_str(d.get("status") or DEFAULT_STATUS),
            category=_str(d.get("category")),
            created_at=_str(_pick(d, "createdAt", "created_at")),
            updated_at=_str(_pick(d, "updatedAt", "updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "dueDate": self.due_date,
            "priority": self.priority,
            "status": self.status,
            "category": self.category,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


# ── Habits ────────────────────────────────────────────────────


@dataclass
class Habit:
    id: str = ""
    title: str = ""
    description: str = ""
    frequency: str = DEFAULT_FREQUENCY  # daily, weekly
    category: str = ""
    target_count: int = 1
    completions: frozenset[str] = field(default_factory=frozenset)
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Habit:
        raw = d.get("completions") or ()
        if isinstance(raw, str):
            raw = ()
        return cls(
            id=_str(d.get("id")),
            title=_str(d.get("title")),
            description=_str(d.get("description")),
            frequency=_str(d.get("frequency") or DEFAULT_FREQUENCY),
            category=_str(d.get("category")),
            target_count=_int(_pick(d, "targetCount", "target_count", 1), 1),
            completions=frozenset(k for k in map(to_date_key, raw) if k),
            created_at=_str(_pick(d, "createdAt", "created_at")),
            updated_at=_str(_pick(d, "updatedAt", "updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "frequency": self.frequency,
            "category": self.category,
            "targetCount": self.target_count,
            "completions": sorted(self.completions),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def is_completed_on(self, date_key: str) -> bool:
        return date_key in self.completions


# ── Streaks ───────────────────────────────────────────────────


@dataclass
class StreakInfo:
    current: int = 0
    longest: int = 0
    percentage: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"current": self.current, "longest": self.longest, "percentage": self.percentage}


@dataclass
class HabitStreak:
    habit_id: str = ""
    habit_title: str = ""
    streak: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"habitId": self.habit_id, "habitTitle": self.habit_title, "streak": self.streak}


@dataclass
class HabitCalendar:
    year: int = 0
    month: int = 0  # 1-12
    days_in_month: int = 0
    completions: dict[int, bool] = field(default_factory=dict)
    total_completions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "daysInMonth": self.days_in_month,
            "completions": {str(day): done for day, done in self.completions.items()},
            "totalCompletions": self.total_completions,
        }


# ── Statistics ────────────────────────────────────────────────


@dataclass
class TaskStats:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    todo: int = 0
    overdue: int = 0
    due_today: int = 0
    upcoming: int = 0
    completion_rate: int = 0
    priority_breakdown: dict[str, int] = field(
        default_factory=lambda: {"high": 0, "medium": 0, "low": 0}
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "inProgress": self.in_progress,
            "todo": self.todo,
            "overdue": self.overdue,
            "dueToday": self.due_today,
            "upcoming": self.upcoming,
            "completionRate": self.completion_rate,
            "priorityBreakdown": dict(self.priority_breakdown),
        }


@dataclass
class HabitStats:
    total_habits: int = 0
    active_habits: int = 0
    completed_today: int = 0
    total_completions: int = 0
    longest_streak_across_all: int = 0
    per_habit_current_streaks: list[HabitStreak] = field(default_factory=list)
    completion_rate_today: int = 0
    frequency_breakdown: dict[str, int] = field(
        default_factory=lambda: {"daily": 0, "weekly": 0}
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalHabits": self.total_habits,
            "activeHabits": self.active_habits,
            "completedToday": self.completed_today,
            "totalCompletions": self.total_completions,
            "longestStreakAcrossAll": self.longest_streak_across_all,
            "perHabitCurrentStreaks": [s.to_dict() for s in self.per_habit_current_streaks],
            "completionRateToday": self.completion_rate_today,
            "frequencyBreakdown": dict(self.frequency_breakdown),
        }


@dataclass
class ProductivityMetrics:
    tasks_created_today: int = 0
    tasks_completed_today: int = 0
    weekly_completion_rate: int = 0
    monthly_completion_rate: int = 0
    urgent_tasks: int = 0
    overdue_tasks: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasksCreatedToday": self.tasks_created_today,
            "tasksCompletedToday": self.tasks_completed_today,
            "weeklyCompletionRate": self.weekly_completion_rate,
            "monthlyCompletionRate": self.monthly_completion_rate,
            "urgentTasks": self.urgent_tasks,
            "overdueTasks": self.overdue_tasks,
        }


@dataclass
class ProgressSummary:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    todo: int = 0
    completion_percentage: int = 0
    progress_percentage: int = 0  # done or in-progress

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "inProgress": self.in_progress,
            "todo": self.todo,
            "completionPercentage": self.completion_percentage,
            "progressPercentage": self.progress_percentage,
        }


@dataclass
class HabitPerformance:
    total_habits: int = 0
    today_completed: int = 0
    today_completion_rate: int = 0
    weekly_completion_rate: int = 0
    habits_needing_attention: int = 0
    streak_habits: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalHabits": self.total_habits,
            "todayCompleted": self.today_completed,
            "todayCompletionRate": self.today_completion_rate,
            "weeklyCompletionRate": self.weekly_completion_rate,
            "habitsNeedingAttention": self.habits_needing_attention,
            "streakHabits": self.streak_habits,
        }
