"""Repository contract plus in-memory and YAML-file implementations.

Records are checked at the boundary on load: a stored record that fails the
schema check makes the whole load fail with a RepositoryError naming the
offending indices, rather than letting a half-valid collection through.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable

from taskflow.entities import (
    check_habit_record,
    check_task_record,
    habit_from_record,
    task_from_record,
    toggle_completion,
)
from taskflow.errors import RepositoryError
from taskflow.fileio import read_yaml, write_yaml_atomic
from taskflow.models import Habit, Task
from taskflow.workspace import habits_path, tasks_path

logger = logging.getLogger(__name__)


class Repository(ABC):
    """Storage for tasks and habits; saves replace the record with the same id."""

    @abstractmethod
    def load_tasks(self) -> list[Task]: ...

    @abstractmethod
    def load_habits(self) -> list[Habit]: ...

    @abstractmethod
    def save_task(self, task: Task) -> None: ...

    @abstractmethod
    def delete_task(self, task_id: str) -> bool: ...

    @abstractmethod
    def save_habit(self, habit: Habit) -> None: ...

    @abstractmethod
    def delete_habit(self, habit_id: str) -> bool: ...

    def toggle_habit_completion(
        self, habit_id: str, date_key: str, now: datetime | None = None
    ) -> Habit | None:
        """Flip one completion date; None if the habit does not exist."""
        for habit in self.load_habits():
            if habit.id == habit_id:
                toggled = toggle_completion(habit, date_key, now=now)
                self.save_habit(toggled)
                return toggled
        return None


def _upsert(items: list[Any], item: Any) -> list[Any]:
    out = list(items)
    for i, existing in enumerate(out):
        if existing.id == item.id:
            out[i] = item
            return out
    out.append(item)
    return out


def _without(items: list[Any], item_id: str) -> tuple[list[Any], bool]:
    kept = [i for i in items if i.id != item_id]
    return kept, len(kept) != len(items)


# ── In memory ─────────────────────────────────────────────────


class InMemoryRepository(Repository):
    """Process-local storage, handy for tests and embedding."""

    def __init__(self, tasks: Iterable[Task] = (), habits: Iterable[Habit] = ()) -> None:
        self._tasks = [replace(t) for t in tasks]
        self._habits = [replace(h) for h in habits]

    def load_tasks(self) -> list[Task]:
        return [replace(t) for t in self._tasks]

    def load_habits(self) -> list[Habit]:
        return [replace(h) for h in self._habits]

    def save_task(self, task: Task) -> None:
        self._tasks = _upsert(self._tasks, replace(task))

    def delete_task(self, task_id: str) -> bool:
        self._tasks, removed = _without(self._tasks, task_id)
        return removed

    def save_habit(self, habit: Habit) -> None:
        self._habits = _upsert(self._habits, replace(habit))

    def delete_habit(self, habit_id: str) -> bool:
        self._habits, removed = _without(self._habits, habit_id)
        return removed


# ── YAML files ────────────────────────────────────────────────


def _load_records(
    path: Path,
    key: str,
    check: Callable[[Any], dict[str, str]],
    build: Callable[..., Any],
) -> list[Any]:
    data = read_yaml(path)
    records = data.get(key) or []
    if not isinstance(records, list):
        raise RepositoryError(f"Expected a list under '{key}' in {path.name}", {"path": str(path)})

    bad = []
    for index, record in enumerate(records):
        fields = check(record)
        if fields:
            bad.append({"index": index, "fields": fields})
    if bad:
        logger.error("%d malformed record(s) in %s", len(bad), path)
        raise RepositoryError(
            f"Malformed records in {path.name}",
            {"path": str(path), "records": bad},
        )
    return [build(r) for r in records]


class YamlRepository(Repository):
    """``planner/tasks.yaml`` and ``planner/habits.yaml`` under a workspace root."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = root

    @property
    def tasks_file(self) -> Path:
        return tasks_path(self.root)

    @property
    def habits_file(self) -> Path:
        return habits_path(self.root)

    def load_tasks(self) -> list[Task]:
        return _load_records(self.tasks_file, "tasks", check_task_record, task_from_record)

    def load_habits(self) -> list[Habit]:
        return _load_records(self.habits_file, "habits", check_habit_record, habit_from_record)

    def _write_tasks(self, tasks: list[Task]) -> None:
        write_yaml_atomic(self.tasks_file, {"tasks": [t.to_dict() for t in tasks]})

    def _write_habits(self, habits: list[Habit]) -> None:
        write_yaml_atomic(self.habits_file, {"habits": [h.to_dict() for h in habits]})

    def save_task(self, task: Task) -> None:
        self._write_tasks(_upsert(self.load_tasks(), task))

    def delete_task(self, task_id: str) -> bool:
        tasks, removed = _without(self.load_tasks(), task_id)
        if removed:
            self._write_tasks(tasks)
        return removed

    def save_habit(self, habit: Habit) -> None:
        self._write_habits(_upsert(self.load_habits(), habit))

    def delete_habit(self, habit_id: str) -> bool:
        habits, removed = _without(self.load_habits(), habit_id)
        if removed:
            self._write_habits(habits)
        return removed
