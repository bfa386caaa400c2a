"""Atomic YAML/JSON file I/O for the Taskflow workspace.

Storage failures (unreadable files, invalid YAML, failed writes) surface as
RepositoryError so callers see one persistence failure type.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

from taskflow.errors import RepositoryError

logger = logging.getLogger(__name__)


def read_text(path: Path) -> str:
    """Read a text file, returning empty string if missing."""
    if not path.exists():
        return ""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise RepositoryError(f"Cannot read {path.name}", {"path": str(path), "reason": str(e)}) from e


def read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping, returning empty dict if missing or empty."""
    text = read_text(path)
    if not text.strip():
        return {}
    try:
        result = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise RepositoryError(f"Invalid YAML in {path.name}", {"path": str(path), "reason": str(e)}) from e
    if result is None:
        return {}
    if not isinstance(result, dict):
        raise RepositoryError(f"Expected a mapping in {path.name}", {"path": str(path)})
    return result


def _atomic_write(path: Path, content: str, suffix: str = ".tmp") -> None:
    """Atomic write with file locking: temp file + flock + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=suffix)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.rename(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def _write(path: Path, content: str, suffix: str) -> None:
    try:
        _atomic_write(path, content, suffix=suffix)
    except OSError as e:
        logger.error("write failed for %s: %s", path, e)
        raise RepositoryError(f"Cannot write {path.name}", {"path": str(path), "reason": str(e)}) from e


def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_json_atomic(path: Path, data: Any) -> None:
    """Atomic JSON write."""
    _write(path, dump_json(data), ".json")


def write_yaml_atomic(path: Path, data: dict[str, Any]) -> None:
    """Atomic YAML write."""
    content = yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
    _write(path, content, ".yaml")
