"""Canonical ordering of the task collection."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from functools import cmp_to_key

from ..const import PRIORITY_RANKS, STATUS_RANKS, UNKNOWN_RANK
from .models import TaskRecord


def due_timestamp(value: str | None) -> float | None:
    """Return the POSIX timestamp of a due date, or ``None`` when unparsable.

    Date-only values are read as midnight UTC; naive datetimes are assumed to
    be UTC as well so that mixed inputs stay comparable.
    """

    if not value:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp()


def priority_rank(record: TaskRecord) -> int:
    return PRIORITY_RANKS.get(str(record.priority), UNKNOWN_RANK)


def status_rank(record: TaskRecord) -> int:
    return STATUS_RANKS.get(str(record.status), UNKNOWN_RANK)


def _sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def compare(a: TaskRecord, b: TaskRecord) -> int:
    """Compare two records in canonical order.

    Due date descending first, with unparsable dates after every valid one,
    then priority (High first), then status (In Progress first).
    """

    time_a = due_timestamp(a.date)
    time_b = due_timestamp(b.date)
    if time_a is None and time_b is not None:
        return 1
    if time_a is not None and time_b is None:
        return -1
    if time_a is not None and time_b is not None and time_a != time_b:
        return _sign(time_b - time_a)

    diff = priority_rank(a) - priority_rank(b)
    if diff:
        return _sign(diff)
    return _sign(status_rank(a) - status_rank(b))


def sort_tasks(tasks: Iterable[TaskRecord]) -> list[TaskRecord]:
    """Return ``tasks`` as a new list in canonical order.

    ``sorted`` is stable, so equal-ranked records keep their relative order.
    """

    return sorted(tasks, key=cmp_to_key(compare))


__all__ = ["compare", "due_timestamp", "priority_rank", "sort_tasks", "status_rank"]
