"""Task actions built on the sync engine: status cycling, recurrence, duplication."""

from __future__ import annotations

import calendar
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date, timedelta

from ..const import (
    DEFAULT_XP_AWARD,
    RECURRENCE_DAILY,
    RECURRENCE_MONTHLY,
    RECURRENCE_TAGS,
    RECURRENCE_WEEKLY,
    STATUSES,
)
from .bridge import ActionBridge, NotificationKind
from .engine import TaskSyncEngine
from .models import Status, TaskRecord

_LOGGER = logging.getLogger(__name__)

_TAG_RE = re.compile(r"#\w+")


@dataclass(frozen=True, slots=True)
class DependencyStatus:
    total: int
    blocker_count: int

    @property
    def blocked(self) -> bool:
        return self.blocker_count > 0


def next_status(status: Status | str) -> Status:
    """Return the status after ``status`` in the Backlog/In Progress/Done cycle.

    Unknown values restart the cycle at the first status.
    """

    try:
        index = STATUSES.index(str(status))
    except ValueError:
        index = -1
    return Status(STATUSES[(index + 1) % len(STATUSES)])


def dependency_status(record: TaskRecord, tasks: Iterable[TaskRecord]) -> DependencyStatus | None:
    """Count how many of ``record``'s dependencies are still open.

    Dependencies pointing at tasks that no longer exist do not block.
    """

    if not record.dependencies:
        return None
    by_id = {task.id: task for task in tasks}
    blockers = sum(
        1 for dep in record.dependencies if dep in by_id and not by_id[dep].is_done
    )
    return DependencyStatus(total=len(record.dependencies), blocker_count=blockers)


def extract_tags(description: str) -> list[str]:
    return _TAG_RE.findall(description or "")


def find_recurrence(description: str) -> str | None:
    """Return the recurrence label tagged in ``description``, if any."""

    for label, tag in RECURRENCE_TAGS.items():
        if tag in (description or ""):
            return label
    return None


def _parse_day(value: str) -> date | None:
    try:
        return date.fromisoformat((value or "")[:10])
    except ValueError:
        return None


def next_due_date(value: str, recurrence: str, *, today: date | None = None) -> str:
    """Return the ISO date of the occurrence following ``value``.

    Monthly recurrence keeps the day of month, clamped to the last day of a
    shorter month. An unparseable ``value`` counts from ``today``.
    """

    current = _parse_day(value) or today or date.today()
    if recurrence == RECURRENCE_DAILY:
        following = current + timedelta(days=1)
    elif recurrence == RECURRENCE_WEEKLY:
        following = current + timedelta(days=7)
    elif recurrence == RECURRENCE_MONTHLY:
        year, month = (current.year + 1, 1) if current.month == 12 else (current.year, current.month + 1)
        day = min(current.day, calendar.monthrange(year, month)[1])
        following = date(year, month, day)
    else:
        raise ValueError(f"unknown recurrence: {recurrence}")
    return following.isoformat()


def duplicate_task(record: TaskRecord, today: date | None = None) -> TaskRecord:
    """Return an unsaved copy of ``record`` due today, back in the backlog."""

    return replace(
        record,
        id="",
        status=Status.BACKLOG,
        date=(today or date.today()).isoformat(),
        dependencies=(),
        xp_awarded=None,
        created_at=None,
    )


def next_occurrence(record: TaskRecord, *, today: date | None = None) -> TaskRecord | None:
    recurrence = find_recurrence(record.description)
    if recurrence is None:
        return None
    return replace(
        record,
        id="",
        date=next_due_date(record.date, recurrence, today=today),
        status=Status.BACKLOG,
        dependencies=(),
        xp_awarded=None,
        created_at=None,
    )


class TaskActions:
    """User-level task operations expressed as engine saves."""

    def __init__(
        self,
        engine: TaskSyncEngine,
        bridge: ActionBridge,
        *,
        xp_award: int = DEFAULT_XP_AWARD,
    ) -> None:
        self.engine = engine
        self.bridge = bridge
        self.xp_award = xp_award

    async def async_update_description(self, record: TaskRecord, description: str) -> bool:
        return await self.engine.async_save(replace(record, description=description), is_update=True)

    async def async_advance_status(self, record: TaskRecord) -> bool:
        """Move ``record`` to its next status.

        Entering Done awards experience and, for recurring tasks, schedules
        the next occurrence once the update went through.
        """

        return await self._async_transition(record, next_status(record.status))

    async def async_complete(self, record: TaskRecord) -> bool:
        return await self._async_transition(record, Status.DONE)

    async def _async_transition(self, record: TaskRecord, status: Status) -> bool:
        updated = replace(record, status=status)
        entering_done = status == Status.DONE and not record.is_done
        if entering_done:
            updated = replace(updated, xp_awarded=self.xp_award)
        if not await self.engine.async_save(updated, is_update=True):
            return False
        if entering_done:
            await self._async_schedule_recurrence(record)
        return True

    async def _async_schedule_recurrence(self, record: TaskRecord) -> None:
        follow_up = next_occurrence(record)
        if follow_up is None:
            return
        _LOGGER.debug("Scheduling next occurrence of %s on %s", record.id, follow_up.date)
        if await self.engine.async_save(follow_up):
            self.bridge.notify(
                f"Recurring task scheduled for {follow_up.date}",
                NotificationKind.SUCCESS,
            )

    async def async_duplicate(self, record: TaskRecord, today: date | None = None) -> bool:
        return await self.engine.async_save(duplicate_task(record, today))


__all__ = [
    "DependencyStatus",
    "TaskActions",
    "dependency_status",
    "duplicate_task",
    "extract_tags",
    "find_recurrence",
    "next_due_date",
    "next_occurrence",
    "next_status",
]
