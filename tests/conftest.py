"""Shared test fixtures for Taskflow tests."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml


# Wednesday
FIXED_NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with standard structure."""
    root = tmp_path / "workspace"
    (root / "planner").mkdir(parents=True)

    # Settings
    settings = {
        "timezone": "UTC",
        "upcoming_days": 7,
        "streak_rate_days": 30,
        "attention_days": 3,
        "log_level": "DEBUG",
    }
    (root / "planner" / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    # Tasks
    tasks = {
        "tasks": [
            {
                "id": "task-report",
                "title": "Quarterly report",
                "description": "Numbers for Q4",
                "dueDate": "2024-01-05",
                "priority": "high",
                "status": "todo",
                "category": "Work",
                "createdAt": "2024-01-01T09:00:00+00:00",
                "updatedAt": "2024-01-01T09:00:00+00:00",
            },
            {
                "id": "task-groceries",
                "title": "Buy groceries",
                "description": "",
                "dueDate": "2024-01-12",
                "priority": "low",
                "status": "in-progress",
                "category": "Home",
                "createdAt": "2024-01-09T18:30:00+00:00",
                "updatedAt": "2024-01-09T18:30:00+00:00",
            },
            {
                "id": "task-taxes",
                "title": "File taxes",
                "description": "",
                "dueDate": None,
                "priority": "medium",
                "status": "done",
                "category": "Finance",
                "createdAt": "2024-01-10T08:00:00+00:00",
                "updatedAt": "2024-01-10T10:00:00+00:00",
            },
        ],
    }
    (root / "planner" / "tasks.yaml").write_text(
        yaml.dump(tasks, default_flow_style=False), encoding="utf-8"
    )

    # Habits
    habits = {
        "habits": [
            {
                "id": "habit-run",
                "title": "Morning run",
                "description": "5k before work",
                "frequency": "daily",
                "category": "Health",
                "targetCount": 1,
                "completions": ["2024-01-08", "2024-01-09", "2024-01-10"],
                "createdAt": "2024-01-01T07:00:00+00:00",
                "updatedAt": "2024-01-10T07:00:00+00:00",
            },
            {
                "id": "habit-review",
                "title": "Weekly review",
                "description": "",
                "frequency": "weekly",
                "category": "Work",
                "targetCount": 1,
                "completions": ["2023-12-31", "2024-01-07"],
                "createdAt": "2023-12-01T07:00:00+00:00",
                "updatedAt": "2024-01-07T07:00:00+00:00",
            },
        ],
    }
    (root / "planner" / "habits.yaml").write_text(
        yaml.dump(habits, default_flow_style=False), encoding="utf-8"
    )

    # Set env var
    os.environ["TASKFLOW_ROOT"] = str(root)
    yield root
    # Cleanup
    if "TASKFLOW_ROOT" in os.environ:
        del os.environ["TASKFLOW_ROOT"]
