"""Task and habit factories, updates and completion toggling.

Every function returns a new record; the input record is never mutated.
Expected failures come back as ``(None, ValidationError)``.
"""

from __future__ import annotations

import secrets
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Mapping

from taskflow.dates import to_date_key
from taskflow.errors import ValidationError
from taskflow.models import (
    DEFAULT_FREQUENCY,
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    Habit,
    Task,
)
from taskflow.validation import (
    validate_completions,
    validate_habit,
    validate_task,
)


# snake_case aliases accepted in incoming data
_ALIASES = {
    "due_date": "dueDate",
    "target_count": "targetCount",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

_IMMUTABLE = {"id", "createdAt", "updatedAt"}


def _normalize(data: Mapping[str, Any], what: str) -> dict[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"{what} data must be a mapping, got {type(data).__name__}")
    out: dict[str, Any] = {}
    for key, value in data.items():
        out[_ALIASES.get(key, key)] = value
    return out


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now().astimezone()


def _timestamp(now: datetime) -> str:
    return now.isoformat(timespec="seconds")


def _parse_timestamp(value: str) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _before(a: datetime, b: datetime) -> bool:
    # naive and aware values compare on wall-clock time
    if (a.tzinfo is None) != (b.tzinfo is None):
        a, b = a.replace(tzinfo=None), b.replace(tzinfo=None)
    return a < b


def _refreshed(created_at: str, now: datetime) -> str:
    """updatedAt for a mutation at *now*; never earlier than *created_at*."""
    created = _parse_timestamp(created_at)
    if created is not None and _before(now, created):
        return created_at
    return _timestamp(now)


def generate_id(prefix: str, now: datetime | None = None) -> str:
    """Opaque id like ``task_1704067200000_9f86d081e2``."""
    millis = int(_now(now).timestamp() * 1000)
    return f"{prefix}_{millis}_{secrets.token_hex(5)}"


# ── Tasks ─────────────────────────────────────────────────────


def _task_fields(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "title": data.get("title"),
        "description": data.get("description") or "",
        "dueDate": data.get("dueDate") or None,
        "priority": data.get("priority") or DEFAULT_PRIORITY,
        "status": data.get("status") or DEFAULT_STATUS,
        "category": data.get("category") or "",
    }


def _build_task(fields: dict[str, Any], task_id: str, created_at: str, updated_at: str) -> Task:
    return Task.from_dict({**fields, "id": task_id, "createdAt": created_at, "updatedAt": updated_at})


def create_task(
    data: Mapping[str, Any],
    *,
    today: date | str | None = None,
    now: datetime | None = None,
) -> tuple[Task | None, ValidationError | None]:
    """Create a task with defaults (status=todo, priority=medium)."""
    now = _now(now)
    fields = _task_fields(_normalize(data, "Task"))
    errors = validate_task(fields, today=today if today is not None else now.date())
    if errors:
        return None, ValidationError.from_fields(errors)
    ts = _timestamp(now)
    return _build_task(fields, generate_id("task", now), ts, ts), None


# ── Habits ────────────────────────────────────────────────────


def _habit_fields(data: dict[str, Any]) -> dict[str, Any]:
    target = data.get("targetCount")
    return {
        "title": data.get("title"),
        "description": data.get("description") or "",
        "frequency": data.get("frequency") or DEFAULT_FREQUENCY,
        "category": data.get("category") or "",
        "targetCount": 1 if target is None or target == "" else target,
        "completions": data.get("completions") or [],
    }


def _habit_errors(fields: dict[str, Any]) -> dict[str, str]:
    errors = validate_habit(fields)
    message = validate_completions(fields["completions"])
    if message:
        errors["completions"] = message
    return errors


def _build_habit(fields: dict[str, Any], habit_id: str, created_at: str, updated_at: str) -> Habit:
    return Habit.from_dict({**fields, "id": habit_id, "createdAt": created_at, "updatedAt": updated_at})


def create_habit(
    data: Mapping[str, Any],
    *,
    now: datetime | None = None,
) -> tuple[Habit | None, ValidationError | None]:
    """Create a habit; completions start empty unless supplied."""
    now = _now(now)
    fields = _habit_fields(_normalize(data, "Habit"))
    errors = _habit_errors(fields)
    if errors:
        return None, ValidationError.from_fields(errors)
    ts = _timestamp(now)
    return _build_habit(fields, generate_id("habit", now), ts, ts), None


def toggle_completion(habit: Habit, date_key: Any, *, now: datetime | None = None) -> Habit:
    """Add *date_key* if absent, remove it if present.

    Toggling the same date twice restores the starting completion set.
    An invalid date leaves the habit untouched.
    """
    key = to_date_key(date_key)
    if not key:
        return habit
    return replace(
        habit,
        completions=habit.completions ^ {key},
        updated_at=_refreshed(habit.created_at, _now(now)),
    )


def set_completion(habit: Habit, date_key: Any, completed: bool, *, now: datetime | None = None) -> Habit:
    """Force the completion state for one date; no-op if already there."""
    key = to_date_key(date_key)
    if not key or (key in habit.completions) == completed:
        return habit
    return toggle_completion(habit, key, now=now)


# ── Updates ───────────────────────────────────────────────────


def apply_update(
    entity: Task | Habit,
    patch: Mapping[str, Any],
    *,
    today: date | str | None = None,
    now: datetime | None = None,
) -> tuple[Task | Habit | None, ValidationError | None]:
    """Shallow-merge *patch* over *entity* and re-validate the result.

    ``id``, ``createdAt`` and ``updatedAt`` in the patch are ignored;
    ``updatedAt`` is always refreshed. For tasks the "not in the past" rule
    only applies when the patch moves the due date.
    """
    if not isinstance(entity, (Task, Habit)):
        raise TypeError(f"Cannot update {type(entity).__name__}")
    now = _now(now)
    changes = {k: v for k, v in _normalize(patch, "Update").items() if k not in _IMMUTABLE}
    merged = entity.to_dict()
    merged.update(changes)
    updated_at = _refreshed(entity.created_at, now)

    if isinstance(entity, Task):
        fields = _task_fields(merged)
        due_changed = to_date_key(fields["dueDate"]) != (entity.due_date or "")
        errors = validate_task(
            fields,
            today=today if today is not None else now.date(),
            check_due_date=due_changed,
        )
        if errors:
            return None, ValidationError.from_fields(errors)
        return _build_task(fields, entity.id, entity.created_at, updated_at), None

    fields = _habit_fields(merged)
    errors = _habit_errors(fields)
    if errors:
        return None, ValidationError.from_fields(errors)
    return _build_habit(fields, entity.id, entity.created_at, updated_at), None


# ── Boundary records (storage, import) ───────────────────────


def _record_id_error(data: Mapping[str, Any], require_id: bool) -> dict[str, str]:
    if not require_id:
        return {}
    record_id = data.get("id")
    if not isinstance(record_id, str) or not record_id.strip():
        return {"id": "Id is required"}
    return {}


def check_task_record(data: Any, require_id: bool = True) -> dict[str, str]:
    """Schema check for a stored task record; past due dates are allowed."""
    if not isinstance(data, Mapping):
        return {"record": "Record must be an object"}
    data = _normalize(data, "Task")
    errors = _record_id_error(data, require_id)
    errors.update(validate_task(data, check_due_date=False))
    return errors


def check_habit_record(data: Any, require_id: bool = True) -> dict[str, str]:
    """Schema check for a stored habit record, completions included."""
    if not isinstance(data, Mapping):
        return {"record": "Record must be an object"}
    data = _normalize(data, "Habit")
    errors = _record_id_error(data, require_id)
    errors.update(validate_habit(data))
    message = validate_completions(data.get("completions"))
    if message:
        errors["completions"] = message
    return errors


def _record_timestamps(data: dict[str, Any], now: datetime) -> tuple[str, str]:
    ts = _timestamp(now)
    created = data.get("createdAt")
    created_at = _parse_timestamp(created) if isinstance(created, str) else None
    if created_at is None:
        return ts, ts
    updated = data.get("updatedAt")
    updated_at = _parse_timestamp(updated) if isinstance(updated, str) else None
    if updated_at is None or _before(updated_at, created_at):
        return created, created
    return created, updated


def task_from_record(data: Mapping[str, Any], *, new_id: str | None = None, now: datetime | None = None) -> Task:
    """Build a Task from a record that passed ``check_task_record``."""
    now = _now(now)
    data = _normalize(data, "Task")
    created, updated = _record_timestamps(data, now)
    return _build_task(_task_fields(data), new_id or str(data["id"]), created, updated)


def habit_from_record(data: Mapping[str, Any], *, new_id: str | None = None, now: datetime | None = None) -> Habit:
    """Build a Habit from a record that passed ``check_habit_record``."""
    now = _now(now)
    data = _normalize(data, "Habit")
    created, updated = _record_timestamps(data, now)
    return _build_habit(_habit_fields(data), new_id or str(data["id"]), created, updated)
