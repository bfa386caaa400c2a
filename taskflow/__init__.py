"""Taskflow core library — tasks, habits, streaks and statistics.

Public API re-exports for convenient imports:
    from taskflow import TrackerService, current_streak, filter_tasks, ...
"""

# Workspace & settings
from taskflow.workspace import (
    workspace_root,
    get_user_timezone,
    today_str,
    now_local,
    tasks_path,
    habits_path,
    settings_path,
    Settings,
    load_settings,
    configure_logging,
)

# File I/O
from taskflow.fileio import (
    read_text,
    read_yaml,
    write_json_atomic,
    write_yaml_atomic,
)

# Dates
from taskflow.dates import (
    parse_date,
    to_date_key,
    add_days,
    days_between,
    is_same_calendar_day,
    is_overdue,
    is_today,
    is_tomorrow,
    is_future_date,
    days_overdue,
    start_of_week,
    end_of_week,
    week_dates,
    date_range,
    relative_day_label,
)

# Errors
from taskflow.errors import (
    TrackerError,
    ValidationError,
    NotFoundError,
    PersistenceError,
    MalformedImportError,
    RepositoryError,
)

# Validation & entities
from taskflow.validation import (
    validate_task,
    validate_habit,
    validate_completions,
    validate_filters,
)
from taskflow.entities import (
    generate_id,
    create_task,
    create_habit,
    apply_update,
    toggle_completion,
    set_completion,
    check_task_record,
    check_habit_record,
)

# Streaks
from taskflow.streaks import (
    percentage,
    current_daily_streak,
    current_weekly_streak,
    current_streak,
    longest_daily_streak,
    longest_weekly_streak,
    longest_streak,
    completion_rate,
    streak_info,
    habit_calendar,
)

# Filters
from taskflow.filters import (
    filter_tasks,
    sort_tasks,
    filter_habits,
    today_tasks,
    overdue_tasks,
    upcoming_tasks,
    urgent_tasks,
    tasks_needing_attention,
    tasks_by_due_date,
    task_flags,
    task_categories,
    habit_categories,
    completed_today,
    pending_today,
    habits_needing_attention,
    priority_weight,
)

# Analytics
from taskflow.analytics import (
    task_stats,
    habit_stats,
    productivity_metrics,
    progress_summary,
    habit_performance,
)

# Storage & service
from taskflow.repository import Repository, InMemoryRepository, YamlRepository
from taskflow.service import TrackerService, ImportResult

# Models
from taskflow.models import (
    Task,
    Habit,
    StreakInfo,
    HabitStreak,
    HabitCalendar,
    TaskStats,
    HabitStats,
    ProductivityMetrics,
    ProgressSummary,
    HabitPerformance,
)
