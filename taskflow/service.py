"""TrackerService: the state store for tasks and habits.

Holds no collection state of its own. Every read goes to the repository and
every mutation is validated, then saved through it. Mutations report
expected failures as ``(None, error)`` instead of raising; reads let a
RepositoryError propagate.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import partial
from pathlib import Path
from typing import Any, Callable, Mapping

from taskflow import analytics, filters, streaks
from taskflow.dates import to_date_key
from taskflow.entities import (
    apply_update,
    check_habit_record,
    check_task_record,
    create_habit,
    create_task,
    generate_id,
    habit_from_record,
    set_completion,
    task_from_record,
)
from taskflow.errors import (
    MalformedImportError,
    NotFoundError,
    PersistenceError,
    RepositoryError,
    TrackerError,
    ValidationError,
)
from taskflow.fileio import dump_json, write_json_atomic
from taskflow.models import (
    Habit,
    HabitCalendar,
    HabitPerformance,
    HabitStats,
    ProductivityMetrics,
    ProgressSummary,
    StreakInfo,
    Task,
    TaskStats,
)
from taskflow.repository import Repository, YamlRepository
from taskflow.workspace import Settings, get_user_timezone, load_settings, workspace_root

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

COLLECTION_KINDS = ("tasks", "habits")


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class ImportResult:
    kind: str
    imported: list[Task | Habit] = field(default_factory=list)
    errors: list[MalformedImportError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "imported": [r.to_dict() for r in self.imported],
            "errors": [e.to_dict() for e in self.errors],
        }


def _invalid_date(field_name: str = "date") -> ValidationError:
    return ValidationError.from_fields({field_name: "Please enter a valid date"})


class TrackerService:
    """Tasks and habits over an injected repository, clock and settings."""

    def __init__(
        self,
        repository: Repository,
        clock: Clock | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.repository = repository
        self.clock = clock or _local_now
        self.settings = settings or Settings()

    @classmethod
    def from_workspace(cls, root: Path | None = None) -> TrackerService:
        """YAML storage, timezone and settings from the workspace root."""
        if root is None:
            root = workspace_root()
        return cls(
            YamlRepository(root),
            clock=partial(datetime.now, get_user_timezone(root)),
            settings=load_settings(root),
        )

    def now(self) -> datetime:
        return self.clock()

    def today(self) -> date:
        return self.now().date()

    def _persist(self, action: str, fn: Callable[..., Any], *args: Any) -> PersistenceError | None:
        try:
            fn(*args)
        except RepositoryError as e:
            logger.error("%s failed: %s", action, e)
            return e.error
        return None

    # ── Reads ─────────────────────────────────────────────────

    def tasks(self) -> list[Task]:
        return self.repository.load_tasks()

    def habits(self) -> list[Habit]:
        return self.repository.load_habits()

    def get_task(self, task_id: str) -> Task | None:
        for task in self.tasks():
            if task.id == task_id:
                return task
        return None

    def get_habit(self, habit_id: str) -> Habit | None:
        for habit in self.habits():
            if habit.id == habit_id:
                return habit
        return None

    def filtered_tasks(
        self,
        criteria: Mapping[str, Any] | None = None,
        sort_by: str = "dueDate",
        sort_order: str = "asc",
    ) -> list[Task]:
        return filters.sort_tasks(filters.filter_tasks(self.tasks(), criteria), sort_by, sort_order)

    def filtered_habits(self, criteria: Mapping[str, Any] | None = None) -> list[Habit]:
        return filters.filter_habits(self.habits(), criteria, self.today())

    def task_stats(self) -> TaskStats:
        return analytics.task_stats(self.tasks(), self.today(), self.settings.upcoming_days)

    def tasks_by_due_date(self) -> dict[str, list[Task]]:
        return filters.tasks_by_due_date(self.tasks(), self.today())

    def progress_summary(self) -> ProgressSummary:
        return analytics.progress_summary(self.tasks())

    def habit_stats(self) -> HabitStats:
        return analytics.habit_stats(self.habits(), self.today())

    def productivity_metrics(self) -> ProductivityMetrics:
        return analytics.productivity_metrics(self.tasks(), self.today())

    def habit_performance(self) -> HabitPerformance:
        return analytics.habit_performance(self.habits(), self.today(), self.settings.attention_days)

    def habit_streak(self, habit_id: str) -> StreakInfo | None:
        habit = self.get_habit(habit_id)
        if habit is None:
            return None
        return streaks.streak_info(habit, self.today(), self.settings.streak_rate_days)

    def habit_calendar(self, habit_id: str, year: int | None = None, month: int | None = None) -> HabitCalendar | None:
        """Month view for one habit; defaults to the current month."""
        habit = self.get_habit(habit_id)
        if habit is None:
            return None
        today = self.today()
        return streaks.habit_calendar(habit, year or today.year, month or today.month)

    def categories(self) -> dict[str, list[str]]:
        return {
            "tasks": filters.task_categories(self.tasks()),
            "habits": filters.habit_categories(self.habits()),
        }

    # ── Task mutations ────────────────────────────────────────

    def create_task(self, data: Mapping[str, Any]) -> tuple[Task | None, TrackerError | None]:
        now = self.now()
        task, error = create_task(data, today=now.date(), now=now)
        if error:
            return None, error
        error = self._persist("create task", self.repository.save_task, task)
        if error:
            return None, error
        logger.info("created task %s", task.id)
        return task, None

    def update_task(self, task_id: str, patch: Mapping[str, Any]) -> tuple[Task | None, TrackerError | None]:
        try:
            task = self.get_task(task_id)
        except RepositoryError as e:
            return None, e.error
        if task is None:
            return None, NotFoundError.for_id("task", task_id)
        now = self.now()
        updated, error = apply_update(task, patch, today=now.date(), now=now)
        if error:
            return None, error
        error = self._persist("update task", self.repository.save_task, updated)
        if error:
            return None, error
        logger.info("updated task %s", task_id)
        return updated, None

    def set_task_status(self, task_id: str, status: str) -> tuple[Task | None, TrackerError | None]:
        return self.update_task(task_id, {"status": status})

    def delete_task(self, task_id: str) -> tuple[bool, TrackerError | None]:
        try:
            removed = self.repository.delete_task(task_id)
        except RepositoryError as e:
            logger.error("delete task failed: %s", e)
            return False, e.error
        if not removed:
            return False, NotFoundError.for_id("task", task_id)
        logger.info("deleted task %s", task_id)
        return True, None

    def bulk_update_tasks(
        self, task_ids: list[str], patch: Mapping[str, Any]
    ) -> tuple[list[Task] | None, TrackerError | None]:
        """Apply one patch to several tasks; nothing is saved unless all succeed."""
        try:
            by_id = {t.id: t for t in self.tasks()}
        except RepositoryError as e:
            return None, e.error
        now = self.now()
        updated = []
        for task_id in dict.fromkeys(task_ids):
            task = by_id.get(task_id)
            if task is None:
                return None, NotFoundError.for_id("task", task_id)
            result, error = apply_update(task, patch, today=now.date(), now=now)
            if error:
                return None, error
            updated.append(result)
        for task in updated:
            error = self._persist("bulk update", self.repository.save_task, task)
            if error:
                return None, error
        logger.info("bulk updated %d task(s)", len(updated))
        return updated, None

    def bulk_complete_tasks(self, task_ids: list[str]) -> tuple[list[Task] | None, TrackerError | None]:
        return self.bulk_update_tasks(task_ids, {"status": "done"})

    def bulk_delete_tasks(self, task_ids: list[str]) -> tuple[list[str] | None, TrackerError | None]:
        """Delete several tasks; nothing is removed unless every id exists."""
        try:
            known = {t.id for t in self.tasks()}
        except RepositoryError as e:
            return None, e.error
        ids = list(dict.fromkeys(task_ids))
        for task_id in ids:
            if task_id not in known:
                return None, NotFoundError.for_id("task", task_id)
        for task_id in ids:
            error = self._persist("bulk delete", self.repository.delete_task, task_id)
            if error:
                return None, error
        logger.info("bulk deleted %d task(s)", len(ids))
        return ids, None

    # ── Habit mutations ───────────────────────────────────────

    def create_habit(self, data: Mapping[str, Any]) -> tuple[Habit | None, TrackerError | None]:
        habit, error = create_habit(data, now=self.now())
        if error:
            return None, error
        error = self._persist("create habit", self.repository.save_habit, habit)
        if error:
            return None, error
        logger.info("created habit %s", habit.id)
        return habit, None

    def update_habit(self, habit_id: str, patch: Mapping[str, Any]) -> tuple[Habit | None, TrackerError | None]:
        try:
            habit = self.get_habit(habit_id)
        except RepositoryError as e:
            return None, e.error
        if habit is None:
            return None, NotFoundError.for_id("habit", habit_id)
        updated, error = apply_update(habit, patch, now=self.now())
        if error:
            return None, error
        error = self._persist("update habit", self.repository.save_habit, updated)
        if error:
            return None, error
        logger.info("updated habit %s", habit_id)
        return updated, None

    def delete_habit(self, habit_id: str) -> tuple[bool, TrackerError | None]:
        try:
            removed = self.repository.delete_habit(habit_id)
        except RepositoryError as e:
            logger.error("delete habit failed: %s", e)
            return False, e.error
        if not removed:
            return False, NotFoundError.for_id("habit", habit_id)
        logger.info("deleted habit %s", habit_id)
        return True, None

    def toggle_habit_completion(
        self, habit_id: str, date_key: Any = None
    ) -> tuple[Habit | None, TrackerError | None]:
        """Flip completion for *date_key* (default today)."""
        key = to_date_key(self.today() if date_key is None else date_key)
        if not key:
            return None, _invalid_date()
        try:
            habit = self.repository.toggle_habit_completion(habit_id, key, now=self.now())
        except RepositoryError as e:
            logger.error("toggle completion failed: %s", e)
            return None, e.error
        if habit is None:
            return None, NotFoundError.for_id("habit", habit_id)
        logger.info("toggled %s for habit %s", key, habit_id)
        return habit, None

    def _set_completion(
        self, habit_id: str, date_key: Any, completed: bool
    ) -> tuple[Habit | None, TrackerError | None]:
        key = to_date_key(self.today() if date_key is None else date_key)
        if not key:
            return None, _invalid_date()
        try:
            habit = self.get_habit(habit_id)
        except RepositoryError as e:
            return None, e.error
        if habit is None:
            return None, NotFoundError.for_id("habit", habit_id)
        updated = set_completion(habit, key, completed, now=self.now())
        if updated is habit:
            return habit, None
        error = self._persist("set completion", self.repository.save_habit, updated)
        if error:
            return None, error
        return updated, None

    def mark_habit_complete(self, habit_id: str, date_key: Any = None) -> tuple[Habit | None, TrackerError | None]:
        return self._set_completion(habit_id, date_key, True)

    def mark_habit_incomplete(self, habit_id: str, date_key: Any = None) -> tuple[Habit | None, TrackerError | None]:
        return self._set_completion(habit_id, date_key, False)

    def bulk_toggle_habits(
        self, habit_ids: list[str], completed: bool, date_key: Any = None
    ) -> tuple[list[Habit] | None, TrackerError | None]:
        """Set completion on *date_key* (default today) for several habits.

        Habits already in the requested state are left alone. Nothing is
        saved unless every id exists.
        """
        key = to_date_key(self.today() if date_key is None else date_key)
        if not key:
            return None, _invalid_date()
        try:
            by_id = {h.id: h for h in self.habits()}
        except RepositoryError as e:
            return None, e.error
        now = self.now()
        results = []
        for habit_id in dict.fromkeys(habit_ids):
            habit = by_id.get(habit_id)
            if habit is None:
                return None, NotFoundError.for_id("habit", habit_id)
            results.append(set_completion(habit, key, completed, now=now))
        changed = [h for h in results if h is not by_id[h.id]]
        for habit in changed:
            error = self._persist("bulk toggle", self.repository.save_habit, habit)
            if error:
                return None, error
        logger.info("set %s to %s for %d habit(s)", key, completed, len(changed))
        return results, None

    # ── Export / import ───────────────────────────────────────

    def export_collection(self, kind: str, path: Path | None = None) -> str:
        """JSON array of every record of *kind*; also written to *path* if given."""
        if kind not in COLLECTION_KINDS:
            raise ValueError(f"Unknown collection: {kind}")
        items = self.tasks() if kind == "tasks" else self.habits()
        records = [i.to_dict() for i in items]
        if path is not None:
            write_json_atomic(path, records)
        return dump_json(records)

    def import_collection(self, kind: str, text: str) -> tuple[ImportResult | None, TrackerError | None]:
        """Add every valid record from a JSON array under a fresh id.

        Invalid records are skipped and reported; a payload that is not a
        JSON array fails as a whole.
        """
        if kind not in COLLECTION_KINDS:
            raise ValueError(f"Unknown collection: {kind}")
        try:
            records = json.loads(text)
        except (TypeError, ValueError):
            return None, MalformedImportError(message="Import data is not valid JSON")
        if not isinstance(records, list):
            return None, MalformedImportError(message="Import data must be a JSON array")

        if kind == "tasks":
            check, build, save, prefix = check_task_record, task_from_record, self.repository.save_task, "task"
        else:
            check, build, save, prefix = check_habit_record, habit_from_record, self.repository.save_habit, "habit"

        now = self.now()
        result = ImportResult(kind=kind)
        for index, record in enumerate(records):
            fields = check(record, require_id=False)
            if fields:
                logger.warning("skipping %s record %d: %s", kind, index, fields)
                result.errors.append(
                    MalformedImportError(message=f"Record {index} is invalid", index=index, fields=fields)
                )
                continue
            item = build(record, new_id=generate_id(prefix, now), now=now)
            error = self._persist(f"import {kind}", save, item)
            if error:
                return None, error
            result.imported.append(item)

        logger.info("imported %d %s, skipped %d", len(result.imported), kind, len(result.errors))
        return result, None

