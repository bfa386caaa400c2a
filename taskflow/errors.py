"""Structured error values for Taskflow.

Mutations report failures as values so callers can render them inline:
``(result, error)`` tuples where ``error`` is one of the dataclasses below.
Only the repository layer raises, via ``RepositoryError``, which carries a
``PersistenceError`` value for the service to re-surface.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping


@dataclass(frozen=True)
class TrackerError:
    """Base for every error value."""

    message: str
    code: ClassVar[str] = "error"

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


@dataclass(frozen=True)
class ValidationError(TrackerError):
    """Field-keyed, human-readable validation messages."""

    fields: dict[str, str] = field(default_factory=dict)
    code: ClassVar[str] = "validation_error"

    @classmethod
    def from_fields(cls, fields: Mapping[str, str]) -> ValidationError:
        return cls(message="Validation failed: " + ", ".join(fields.values()), fields=dict(fields))

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "fields": dict(self.fields)}


@dataclass(frozen=True)
class NotFoundError(TrackerError):
    entity: str = ""
    entity_id: str = ""
    code: ClassVar[str] = "not_found"

    @classmethod
    def for_id(cls, entity: str, entity_id: str) -> NotFoundError:
        return cls(message=f"{entity.capitalize()} not found: {entity_id}", entity=entity, entity_id=entity_id)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "entity": self.entity, "id": self.entity_id}


@dataclass(frozen=True)
class PersistenceError(TrackerError):
    """A storage failure reported by the repository."""

    details: dict[str, Any] = field(default_factory=dict)
    code: ClassVar[str] = "persistence_error"

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}


@dataclass(frozen=True)
class MalformedImportError(TrackerError):
    """One record skipped during a bulk import (index None: whole payload)."""

    index: int | None = None
    fields: dict[str, str] = field(default_factory=dict)
    code: ClassVar[str] = "malformed_import"

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "index": self.index,
            "fields": dict(self.fields),
        }


class RepositoryError(RuntimeError):
    """Exception carrying a PersistenceError raised by repository implementations."""

    def __init__(self, message: str, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.error = PersistenceError(message=message, details=dict(details or {}))
