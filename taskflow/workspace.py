"""Workspace root, settings, timezone and path helpers for Taskflow."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from taskflow.errors import RepositoryError
from taskflow.fileio import read_yaml

logger = logging.getLogger(__name__)

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def workspace_root() -> Path:
    """Get the workspace root directory (contains planner/)."""
    return Path(
        os.environ.get("TASKFLOW_ROOT", str(Path.home() / "taskflow"))
    ).expanduser().resolve()


# ── Settings ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Settings:
    timezone: str = "UTC"
    upcoming_days: int = 7
    streak_rate_days: int = 30
    attention_days: int = 3
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            d = {}
        defaults = cls()
        level = str(os.environ.get("TASKFLOW_LOG_LEVEL") or d.get("log_level") or defaults.log_level).upper()
        return cls(
            timezone=str(d.get("timezone") or defaults.timezone),
            upcoming_days=_positive_int(d.get("upcoming_days"), defaults.upcoming_days),
            streak_rate_days=_positive_int(d.get("streak_rate_days"), defaults.streak_rate_days),
            attention_days=_positive_int(d.get("attention_days"), defaults.attention_days),
            log_level=level if level in LOG_LEVELS else defaults.log_level,
        )


def _positive_int(value: Any, default: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


def load_settings(root: Path | None = None) -> Settings:
    """Read planner/settings.yaml; a missing or unreadable file gives defaults."""
    try:
        data = read_yaml(settings_path(root))
    except RepositoryError as e:
        logger.warning("ignoring settings: %s", e)
        data = {}
    return Settings.from_dict(data)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ── Clock ─────────────────────────────────────────────────────


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get the user's timezone from settings.yaml, defaulting to UTC."""
    name = load_settings(root).timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("unknown timezone %r, using UTC", name)
        return ZoneInfo("UTC")


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in user's timezone."""
    return datetime.now(get_user_timezone(root))


def today_str(root: Path | None = None) -> str:
    """Get today's date string (YYYY-MM-DD) in user's timezone."""
    return now_local(root).date().isoformat()


# ── Path helpers ──────────────────────────────────────────────

def planner_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "planner"


def settings_path(root: Path | None = None) -> Path:
    return planner_dir(root) / "settings.yaml"


def tasks_path(root: Path | None = None) -> Path:
    return planner_dir(root) / "tasks.yaml"


def habits_path(root: Path | None = None) -> Path:
    return planner_dir(root) / "habits.yaml"
