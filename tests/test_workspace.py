"""Tests for taskflow/workspace.py and taskflow/fileio.py — settings and atomic I/O."""

import json
import os

import pytest
import yaml
from taskflow.errors import RepositoryError
from taskflow.fileio import read_yaml, write_json_atomic, write_yaml_atomic
from taskflow.workspace import (
    Settings,
    get_user_timezone,
    habits_path,
    load_settings,
    settings_path,
    tasks_path,
    today_str,
    workspace_root,
)


def test_workspace_root_from_env(workspace):
    assert workspace_root() == workspace.resolve()
    assert tasks_path() == workspace.resolve() / "planner" / "tasks.yaml"
    assert habits_path(workspace) == workspace / "planner" / "habits.yaml"


def test_load_settings(workspace):
    s = load_settings(workspace)
    assert s.timezone == "UTC"
    assert s.upcoming_days == 7
    assert s.log_level == "DEBUG"


def test_load_settings_missing_file_gives_defaults(tmp_path):
    assert load_settings(tmp_path) == Settings()


def test_settings_invalid_values_fall_back():
    s = Settings.from_dict({"upcoming_days": -2, "streak_rate_days": "many", "log_level": "loud"})
    assert s.upcoming_days == 7
    assert s.streak_rate_days == 30
    assert s.log_level == "INFO"


def test_log_level_env_override(monkeypatch):
    monkeypatch.setenv("TASKFLOW_LOG_LEVEL", "warning")
    assert Settings.from_dict({"log_level": "DEBUG"}).log_level == "WARNING"


def test_unknown_timezone_falls_back_to_utc(workspace):
    settings_path(workspace).write_text("timezone: Mars/Olympus\n", encoding="utf-8")
    assert str(get_user_timezone(workspace)) == "UTC"


def test_today_str_format(workspace):
    assert len(today_str(workspace)) == 10


def test_read_yaml_missing_and_empty(tmp_path):
    assert read_yaml(tmp_path / "nope.yaml") == {}
    (tmp_path / "empty.yaml").write_text("", encoding="utf-8")
    assert read_yaml(tmp_path / "empty.yaml") == {}


def test_read_yaml_invalid_raises_repository_error(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("tasks: [unclosed\n", encoding="utf-8")
    with pytest.raises(RepositoryError) as exc:
        read_yaml(path)
    assert exc.value.error.code == "persistence_error"
    assert exc.value.error.details["path"] == str(path)


def test_read_yaml_non_mapping_raises(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(RepositoryError):
        read_yaml(path)


def test_write_yaml_atomic_creates_dirs_and_leaves_no_temp(tmp_path):
    path = tmp_path / "deep" / "dir" / "data.yaml"
    write_yaml_atomic(path, {"habits": [{"id": "h1", "completions": ["2024-01-01"]}]})
    assert yaml.safe_load(path.read_text(encoding="utf-8")) == {
        "habits": [{"id": "h1", "completions": ["2024-01-01"]}]
    }
    assert [p.name for p in path.parent.iterdir()] == ["data.yaml"]


def test_write_json_atomic(tmp_path):
    path = tmp_path / "export.json"
    write_json_atomic(path, [{"title": "Café"}])
    text = path.read_text(encoding="utf-8")
    assert "Café" in text
    assert json.loads(text) == [{"title": "Café"}]


@pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
def test_write_failure_raises_repository_error(tmp_path):
    locked = tmp_path / "locked"
    locked.mkdir()
    locked.chmod(0o500)
    try:
        with pytest.raises(RepositoryError):
            write_yaml_atomic(locked / "tasks.yaml", {"tasks": []})
    finally:
        locked.chmod(0o700)
