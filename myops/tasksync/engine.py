"""Sync engine: the canonical task collection and its optimistic mutations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from functools import partial
from typing import Any

from aiohttp import ClientSession

from ..const import DELETE_GRACE_SECONDS
from ..utils.logging import warn_once
from .bridge import ActionBridge, NotificationAction, NotificationKind
from .config import SyncConfig
from .deletion import DeferredDeletionManager, PendingDeletion
from .errors import ConfigurationError, TaskSyncError
from .local_storage import LocalStorage
from .models import TaskRecord, new_task_id
from .ordering import sort_tasks
from .store import TaskSnapshotCache, TaskStore, WriteReceipt, create_task_store

_LOGGER = logging.getLogger(__name__)


def _unique(tasks: Iterable[TaskRecord]) -> list[TaskRecord]:
    """Drop records whose id was already seen, keeping the first occurrence.

    Records without an id are never treated as duplicates of each other.
    """

    seen: set[str] = set()
    result: list[TaskRecord] = []
    for task in tasks:
        if task.id and task.id in seen:
            _LOGGER.debug("Dropping duplicate task %s", task.id)
            continue
        seen.add(task.id)
        result.append(task)
    return result


@dataclass(slots=True)
class Mutation:
    """Snapshot taken when a mutating call starts, plus its outcome."""

    snapshot: list[TaskRecord]
    error: Exception | None = field(default=None)

    @property
    def ok(self) -> bool:
        return self.error is None


class TaskSyncEngine:
    """Own the task collection and reconcile it with a :class:`TaskStore`.

    Every mutation is applied to the collection before the store is called,
    so callers see their intent immediately and in call order. When the store
    call fails the collection is put back exactly as it was before that call.
    Errors never escape the public methods; they become a ``False`` result and
    an error notification on the bridge.

    The collection is only written through this class. Methods must be called
    from the event loop that runs the engine.
    """

    def __init__(
        self,
        store: TaskStore,
        bridge: ActionBridge,
        *,
        cache: TaskSnapshotCache | None = None,
        grace_period: float = DELETE_GRACE_SECONDS,
        loop: asyncio.AbstractEventLoop | None = None,
        owns_store: bool = False,
    ) -> None:
        self.store = store
        self.bridge = bridge
        self.cache = cache
        self.deletions = DeferredDeletionManager(grace_period=grace_period, loop=loop)
        self._owns_store = owns_store
        self._tasks: list[TaskRecord] = []
        self._loading = False
        self._submitting = 0
        self._closed = False
        self.last_error: str | None = None
        self.last_error_reason: str | None = None
        self.last_sync_at: datetime | None = None

    # ------------------------------------------------------------------
    @property
    def tasks(self) -> tuple[TaskRecord, ...]:
        return tuple(self._tasks)

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def is_submitting(self) -> bool:
        return self._submitting > 0

    @property
    def pending_deletions(self) -> frozenset[str]:
        return self.deletions.pending_ids()

    def get(self, task_id: str) -> TaskRecord | None:
        return next((task for task in self._tasks if task.id == task_id), None)

    # ------------------------------------------------------------------
    def _set_tasks(self, tasks: list[TaskRecord], *, persist: bool = True) -> None:
        self._tasks = tasks
        if persist and self.cache is not None:
            self.cache.write(tasks)

    def _commit(self, tasks: Iterable[TaskRecord]) -> None:
        self._set_tasks(sort_tasks(_unique(tasks)))

    def _notify(
        self,
        message: str,
        kind: NotificationKind = NotificationKind.INFO,
        action: NotificationAction | None = None,
    ) -> None:
        try:
            self.bridge.notify(message, kind, action)
        except Exception as err:  # pragma: no cover - defensive log
            _LOGGER.debug("Action bridge raised error: %s", err, exc_info=True)

    def _record_failure(self, err: Exception) -> None:
        self.last_error = str(err)
        self.last_error_reason = getattr(err, "reason", None) or "unexpected"
        if isinstance(err, TaskSyncError):
            _LOGGER.warning("Task sync operation failed (%s): %s", self.last_error_reason, err)
        else:
            _LOGGER.exception("Unexpected task sync error: %s", err)

    def _mark_synced(self) -> None:
        self.last_sync_at = datetime.now(tz=UTC)
        self.last_error = None
        self.last_error_reason = None

    @asynccontextmanager
    async def _mutation(self, failure_prefix: str) -> AsyncIterator[Mutation]:
        """Capture the collection, then commit or roll back the block's changes."""

        mutation = Mutation(snapshot=list(self._tasks))
        try:
            yield mutation
        except Exception as err:
            mutation.error = err
            # Records deleted while the call was in flight stay hidden.
            self._set_tasks(self.deletions.visible(mutation.snapshot))
            self._record_failure(err)
            self._notify(f"{failure_prefix}: {err}", NotificationKind.ERROR)

    # ------------------------------------------------------------------
    async def async_load(self, initial: bool = False) -> bool:
        """Replace the collection with a fresh fetch from the store.

        An initial load first shows the cached snapshot, if any, so there is
        something on screen while the fetch runs. Records pending deletion are
        filtered out of the fetched data. A failed fetch only reaches the user
        when there is nothing to show; otherwise it is logged.
        """

        if initial:
            cached = self.cache.read() if self.cache is not None else None
            if cached:
                self._set_tasks(sort_tasks(self.deletions.visible(_unique(cached))), persist=False)
            if not self._tasks:
                self._loading = True

        try:
            fetched = await self.store.async_fetch_all()
        except Exception as err:
            self._record_failure(err)
            if self._tasks:
                warn_once(_LOGGER, "load_failed", f"keeping {len(self._tasks)} tasks on screen: {err}")
            else:
                self._notify(str(err) or "Sync failed.", NotificationKind.ERROR)
            return False
        finally:
            self._loading = False

        self._commit(self.deletions.visible(fetched))
        self._mark_synced()
        return True

    async def async_save(self, record: TaskRecord, is_update: bool = False) -> bool:
        """Create or update ``record`` optimistically.

        A record without an id gets a temporary one. If the store answers a
        create with a different record (for example one carrying its own id),
        that record replaces the optimistic one, matched by the temporary id.
        """

        self._submitting += 1
        try:
            async with self._mutation("Error") as mutation:
                self.store.check_ready()
                optimistic = record if record.id else replace(record, id=new_task_id())
                if is_update:
                    self._commit(optimistic if task.id == optimistic.id else task for task in self._tasks)
                    await self.store.async_update(optimistic)
                else:
                    self._commit([optimistic, *self._tasks])
                    receipt = await self.store.async_create(optimistic)
                    self._adopt_identity(optimistic, receipt)
                self._mark_synced()
        finally:
            self._submitting -= 1

        if mutation.ok:
            self._notify("Task updated" if is_update else "Task created", NotificationKind.SUCCESS)
        return mutation.ok

    def _adopt_identity(self, optimistic: TaskRecord, receipt: WriteReceipt) -> None:
        confirmed = receipt.record
        if confirmed is None:
            # Only an id came back: keep the optimistic content under that id.
            if not receipt.task_id or receipt.task_id == optimistic.id:
                return
            confirmed = replace(optimistic, id=receipt.task_id)
        if confirmed == optimistic:
            return
        if confirmed.id != optimistic.id:
            _LOGGER.debug("Store assigned id %s to task %s", confirmed.id, optimistic.id)
        self._commit(confirmed if task.id == optimistic.id else task for task in self._tasks)

    def remove(self, record: TaskRecord) -> bool:
        """Hide ``record`` now and delete it durably after the grace window.

        An ``Undo`` action is attached to the notification. Returns ``False``
        for records without an id or not in the collection, ids already
        pending deletion, and when the store is not configured.
        """

        if not record.id or self._closed:
            return False
        if self.deletions.is_pending(record.id):
            return False
        try:
            self.store.check_ready()
        except ConfigurationError as err:
            self._record_failure(err)
            self._notify(f"Delete failed: {err}", NotificationKind.ERROR)
            return False

        index = next((i for i, task in enumerate(self._tasks) if task.id == record.id), None)
        if index is None:
            _LOGGER.debug("Task %s is not in the collection; nothing to remove", record.id)
            return False
        current = self._tasks[index]
        self._set_tasks([task for task in self._tasks if task.id != record.id])
        self.deletions.schedule(current, index, self._async_finish_delete)
        self._notify(
            "Task deleted",
            NotificationKind.INFO,
            NotificationAction(label="Undo", on_invoke=partial(self.undo_remove, record.id)),
        )
        return True

    def undo_remove(self, task_id: str) -> bool:
        """Cancel a pending deletion and put the record back where it was."""

        pending = self.deletions.cancel(task_id)
        if pending is None:
            return False
        self._restore(pending)
        self._notify("Task restored", NotificationKind.SUCCESS)
        return True

    def _restore(self, pending: PendingDeletion) -> None:
        tasks = list(self._tasks)
        tasks.insert(min(pending.index, len(tasks)), pending.record)
        self._commit(tasks)

    async def _async_finish_delete(self, pending: PendingDeletion) -> None:
        task_id = pending.record.id
        try:
            await self.store.async_delete(task_id)
        except Exception as err:
            self.deletions.finish(task_id)
            self._restore(pending)
            self._record_failure(err)
            self._notify(f"Delete failed: {err}", NotificationKind.ERROR)
            return
        self.deletions.finish(task_id)
        self._mark_synced()

    async def async_bulk_remove(self, records: Iterable[TaskRecord]) -> bool:
        """Delete ``records`` one after another.

        On the first failure the collection is reloaded from the store rather
        than rolled back record by record, so the records deleted before the
        failure stay gone.
        """

        targets = list(records)
        if not targets:
            return True
        try:
            self.store.check_ready()
        except ConfigurationError as err:
            self._record_failure(err)
            self._notify(f"Bulk delete failed: {err}", NotificationKind.ERROR)
            return False

        ids = list(dict.fromkeys(record.id for record in targets if record.id))
        self._loading = True
        self._set_tasks([task for task in self._tasks if task.id not in ids])
        try:
            for task_id in ids:
                await self.store.async_delete(task_id)
        except Exception as err:
            self._record_failure(err)
            self._notify(f"Bulk delete failed: {err}", NotificationKind.ERROR)
            await self.async_load()
            return False
        finally:
            self._loading = False

        self._mark_synced()
        self._notify(f"Deleted {len(ids)} tasks", NotificationKind.SUCCESS)
        return True

    # ------------------------------------------------------------------
    async def async_shutdown(self) -> None:
        """Stop pending deletions from firing and release the store."""

        self._closed = True
        await self.deletions.async_shutdown()
        if self._owns_store:
            await self.store.async_close()

    def status(self) -> dict[str, Any]:
        """Return runtime status information for diagnostics."""

        return {
            "mode": self.store.mode,
            "tasks": len(self._tasks),
            "loading": self._loading,
            "submitting": self.is_submitting,
            "pending_deletions": sorted(self.deletions.pending_ids()),
            "cached": self.cache is not None,
            "last_sync_at": self.last_sync_at.isoformat() if self.last_sync_at else None,
            "last_error": self.last_error,
            "last_error_reason": self.last_error_reason,
        }


def create_engine(
    config: SyncConfig,
    bridge: ActionBridge,
    storage: LocalStorage,
    *,
    session: ClientSession | None = None,
    grace_period: float = DELETE_GRACE_SECONDS,
) -> TaskSyncEngine:
    """Build an engine wired to the store selected by ``config``.

    LIVE mode also gets a snapshot cache in ``storage`` for instant start-up.
    """

    store = create_task_store(config, storage, session=session)
    cache = TaskSnapshotCache(storage) if config.is_live else None
    return TaskSyncEngine(
        store,
        bridge,
        cache=cache,
        grace_period=grace_period,
        owns_store=True,
    )


__all__ = ["Mutation", "TaskSyncEngine", "create_engine"]
