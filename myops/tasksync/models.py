"""Task records and their JSON codec."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from ..const import (
    DEFAULT_PROJECT,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_MEDIUM,
    STATUS_BACKLOG,
    STATUS_DONE,
    STATUS_IN_PROGRESS,
)


class Priority(StrEnum):
    """Task priority levels."""

    HIGH = PRIORITY_HIGH
    MEDIUM = PRIORITY_MEDIUM
    LOW = PRIORITY_LOW


class Status(StrEnum):
    """Task workflow states."""

    BACKLOG = STATUS_BACKLOG
    IN_PROGRESS = STATUS_IN_PROGRESS
    DONE = STATUS_DONE


def new_task_id() -> str:
    """Return a fresh opaque task identifier."""

    return str(uuid.uuid4())


def _coerce_priority(value: Any) -> Priority | str:
    text = str(value).strip() if value is not None else ""
    if not text:
        return Priority.MEDIUM
    try:
        return Priority(text)
    except ValueError:
        return text


def _coerce_status(value: Any) -> Status | str:
    text = str(value).strip() if value is not None else ""
    if not text:
        return Status.BACKLOG
    try:
        return Status(text)
    except ValueError:
        return text


def _coerce_dependencies(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, Iterable) or isinstance(value, bytes | bytearray | Mapping):
        return ()
    seen: list[str] = []
    for item in value:
        text = str(item).strip() if item is not None else ""
        if text and text not in seen:
            seen.append(text)
    return tuple(seen)


def _coerce_xp(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True, slots=True)
class TaskRecord:
    """A single task as held by the sync engine and the stores.

    Unknown priority or status strings are kept verbatim so that data written
    by a newer client survives a round trip through this one.
    """

    id: str = ""
    date: str = ""
    description: str = ""
    project: str = DEFAULT_PROJECT
    priority: Priority | str = Priority.MEDIUM
    status: Status | str = Status.BACKLOG
    dependencies: tuple[str, ...] = field(default_factory=tuple)
    xp_awarded: int | None = None
    created_at: str | None = None

    @property
    def is_done(self) -> bool:
        return self.status == Status.DONE

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "description": self.description,
            "project": self.project,
            "priority": str(self.priority),
            "status": str(self.status),
        }
        if self.dependencies:
            payload["dependencies"] = list(self.dependencies)
        if self.xp_awarded is not None:
            payload["xpAwarded"] = self.xp_awarded
        if self.created_at is not None:
            payload["createdAt"] = self.created_at
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> TaskRecord:
        created_raw = payload.get("createdAt") or payload.get("created_at")
        xp_raw = payload.get("xpAwarded", payload.get("xp_awarded"))
        return cls(
            id=str(payload.get("id") or "").strip(),
            date=str(payload.get("date") or "").strip(),
            description=str(payload.get("description") or ""),
            project=str(payload.get("project") or "").strip() or DEFAULT_PROJECT,
            priority=_coerce_priority(payload.get("priority")),
            status=_coerce_status(payload.get("status")),
            dependencies=_coerce_dependencies(payload.get("dependencies")),
            xp_awarded=_coerce_xp(xp_raw),
            created_at=str(created_raw) if created_raw else None,
        )


def records_from_payload(payload: Any) -> list[TaskRecord]:
    """Decode a JSON array of task objects, skipping entries that are not objects."""

    if not isinstance(payload, list):
        return []
    return [TaskRecord.from_dict(item) for item in payload if isinstance(item, Mapping)]


def records_to_payload(records: Iterable[TaskRecord]) -> list[dict[str, Any]]:
    return [record.to_dict() for record in records]


__all__ = [
    "Priority",
    "Status",
    "TaskRecord",
    "new_task_id",
    "records_from_payload",
    "records_to_payload",
]
