"""Field validation for tasks, habits and filter criteria.

Validators are pure: they return a field-keyed dict of messages (empty if
valid) and never raise for bad values. Only non-mapping input raises.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

from taskflow.dates import is_overdue, is_valid_date_key, parse_date
from taskflow.models import HABIT_FREQUENCIES, TASK_PRIORITIES, TASK_STATUSES


TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
CATEGORY_MAX_LENGTH = 50
SEARCH_MAX_LENGTH = 100
MIN_TARGET_COUNT = 1
MAX_TARGET_COUNT = 100


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"{what} data must be a mapping, got {type(data).__name__}")
    return data


# ── Field rules ───────────────────────────────────────────────


def validate_required(value: Any, field_name: str) -> str | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return f"{field_name} is required"
    if not isinstance(value, str):
        return f"{field_name} must be text"
    return None


def validate_length(value: Any, max_length: int, field_name: str) -> str | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        return f"{field_name} must be text"
    if len(value) > max_length:
        return f"{field_name} must be {max_length} characters or less"
    return None


def validate_date(value: Any, *, required: bool = False, no_past: bool = False, today: Any = None) -> str | None:
    if value is None or value == "":
        return "Date is required" if required else None
    if parse_date(value) is None or (isinstance(value, str) and not is_valid_date_key(value)):
        return "Please enter a valid date"
    if no_past and is_overdue(value, today):
        return "Date cannot be in the past"
    return None


def validate_number(value: Any, minimum: int, maximum: int, field_name: str) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return f"{field_name} must be a valid number"
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return f"{field_name} must be a valid number"
    if not isinstance(value, (int, float)):
        return f"{field_name} must be a valid number"
    if isinstance(value, float) and not math.isfinite(value):
        return f"{field_name} must be a valid number"
    if value != int(value):
        return f"{field_name} must be a whole number"
    if value < minimum:
        return f"{field_name} must be at least {minimum}"
    if value > maximum:
        return f"{field_name} must be {maximum} or less"
    return None


def _add(errors: dict[str, str], field_name: str, message: str | None) -> None:
    if message:
        errors[field_name] = message


# ── Entities ──────────────────────────────────────────────────


def validate_task(data: Mapping[str, Any], today: Any = None, check_due_date: bool = True) -> dict[str, str]:
    """Validate task fields (camelCase keys) and return field-keyed errors.

    With ``check_due_date`` a due date before *today* is rejected; records
    read back from storage are checked without it.
    """
    data = _require_mapping(data, "Task")
    errors: dict[str, str] = {}
    title = data.get("title")
    _add(errors, "title", validate_required(title, "Title") or validate_length(title, TITLE_MAX_LENGTH, "Title"))
    _add(errors, "description", validate_length(data.get("description"), DESCRIPTION_MAX_LENGTH, "Description"))
    _add(errors, "dueDate", validate_date(data.get("dueDate"), no_past=check_due_date, today=today))
    _add(errors, "category", validate_length(data.get("category"), CATEGORY_MAX_LENGTH, "Category"))

    priority = data.get("priority")
    if priority is not None and priority not in TASK_PRIORITIES:
        errors["priority"] = "Priority must be low, medium, or high"

    status = data.get("status")
    if status is not None and status not in TASK_STATUSES:
        errors["status"] = "Status must be todo, in-progress, or done"

    return errors


def validate_habit(data: Mapping[str, Any]) -> dict[str, str]:
    """Validate habit fields (camelCase keys) and return field-keyed errors."""
    data = _require_mapping(data, "Habit")
    errors: dict[str, str] = {}
    title = data.get("title")
    _add(errors, "title", validate_required(title, "Title") or validate_length(title, TITLE_MAX_LENGTH, "Title"))
    _add(errors, "description", validate_length(data.get("description"), DESCRIPTION_MAX_LENGTH, "Description"))

    frequency = data.get("frequency")
    if frequency is not None and frequency not in HABIT_FREQUENCIES:
        errors["frequency"] = "Frequency must be daily or weekly"

    _add(
        errors,
        "targetCount",
        validate_number(data.get("targetCount"), MIN_TARGET_COUNT, MAX_TARGET_COUNT, "Target count"),
    )
    _add(errors, "category", validate_length(data.get("category"), CATEGORY_MAX_LENGTH, "Category"))
    return errors


def validate_completions(value: Any) -> str | None:
    """Completions must be a list of YYYY-MM-DD strings (duplicates collapse)."""
    if value is None:
        return None
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple, set, frozenset)):
        return "Completions must be a list of dates"
    bad = [c for c in value if not is_valid_date_key(c)]
    if bad:
        return f"Invalid completion date: {bad[0]!r}"
    return None


# ── Filters ───────────────────────────────────────────────────


def validate_filters(criteria: Any) -> dict[str, str]:
    """Advisory checks on filter criteria; filtering never depends on them."""
    if not isinstance(criteria, Mapping):
        return {}
    errors: dict[str, str] = {}
    search = criteria.get("search")
    if isinstance(search, str) and len(search) > SEARCH_MAX_LENGTH:
        errors["search"] = "Search term is too long"

    date_range = criteria.get("dateRange")
    if isinstance(date_range, Mapping):
        start, end = date_range.get("start"), date_range.get("end")
        _add(errors, "startDate", validate_date(start))
        _add(errors, "endDate", validate_date(end))
        ds, de = parse_date(start), parse_date(end)
        if ds and de and ds > de:
            errors["dateRange"] = "Start date must be before end date"
    return errors
