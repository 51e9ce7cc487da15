"""Deferred deletion: an undo window in front of every durable delete."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from ..const import DELETE_GRACE_SECONDS
from .models import TaskRecord
from .scheduler import ScheduledCall

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class PendingDeletion:
    """A record hidden from the collection while its grace window runs."""

    record: TaskRecord
    index: int
    call: ScheduledCall


class DeferredDeletionManager:
    """Track ids awaiting deletion and the timers that will delete them.

    Each id moves ABSENT -> PENDING_DELETE -> (DURABLY_DELETED | RESTORED) and
    back to ABSENT. At most one timer exists per id.
    """

    def __init__(
        self,
        *,
        grace_period: float = DELETE_GRACE_SECONDS,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.grace_period = grace_period
        self._loop = loop
        self._pending: dict[str, PendingDeletion] = {}
        self._in_flight: set[ScheduledCall] = set()

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def is_pending(self, task_id: str) -> bool:
        return task_id in self._pending

    def pending_ids(self) -> frozenset[str]:
        return frozenset(self._pending)

    def get(self, task_id: str) -> PendingDeletion | None:
        return self._pending.get(task_id)

    def visible(self, records: Iterable[TaskRecord]) -> list[TaskRecord]:
        """Return ``records`` without the ones pending deletion."""

        return [record for record in records if record.id not in self._pending]

    def schedule(
        self,
        record: TaskRecord,
        index: int,
        on_elapsed: Callable[[PendingDeletion], Awaitable[None]],
    ) -> PendingDeletion | None:
        """Start the grace window for ``record``.

        Returns ``None`` when the id is already pending; no second timer is
        created in that case.
        """

        if record.id in self._pending:
            _LOGGER.debug("Deletion of %s already pending", record.id)
            return None

        pending: PendingDeletion

        async def _elapsed() -> None:
            try:
                await on_elapsed(pending)
            finally:
                self._in_flight.discard(pending.call)

        call = ScheduledCall(
            self.grace_period,
            _elapsed,
            loop=self._loop,
            name=f"delete-{record.id}",
        )
        pending = PendingDeletion(record=record, index=index, call=call)
        self._pending[record.id] = pending
        self._in_flight.add(call)
        return pending

    def cancel(self, task_id: str) -> PendingDeletion | None:
        """Undo a deletion whose timer has not fired.

        Returns the pending entry so the caller can restore the record, or
        ``None`` when there is nothing left to undo.
        """

        pending = self._pending.get(task_id)
        if pending is None or not pending.call.cancel():
            return None
        self._in_flight.discard(pending.call)
        del self._pending[task_id]
        return pending

    def finish(self, task_id: str) -> None:
        """Clear ``task_id`` once its durable delete has resolved."""

        self._pending.pop(task_id, None)

    async def async_shutdown(self) -> int:
        """Cancel every timer that has not fired and wait for in-flight deletes.

        Returns the number of deletions that were abandoned.
        """

        abandoned = 0
        for task_id, pending in list(self._pending.items()):
            if pending.call.cancel():
                abandoned += 1
                self._in_flight.discard(pending.call)
                del self._pending[task_id]
        calls = list(self._in_flight)
        if calls:
            await asyncio.gather(*(call.wait() for call in calls))
        if abandoned:
            _LOGGER.info("Abandoned %d pending deletion(s) on shutdown", abandoned)
        return abandoned


__all__ = ["DeferredDeletionManager", "PendingDeletion"]
