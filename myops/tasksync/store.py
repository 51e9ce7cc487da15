"""Store adapters: uniform task CRUD over local storage or the remote endpoint."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol

from aiohttp import ClientError, ClientSession

from ..const import (
    DEMO_DELAY,
    LIVE_CACHE_KEY,
    LOCAL_STORAGE_KEY,
    MODE_DEMO,
    MODE_LIVE,
    TASKS_MODULE,
)
from ..utils.logging import warn_once
from .config import SyncConfig
from .demo import demo_tasks
from .errors import (
    ConfigurationError,
    MalformedResponseError,
    NetworkError,
    ServerReportedError,
    TransientOperationError,
)
from .local_storage import LocalStorage
from .models import TaskRecord, new_task_id, records_from_payload, records_to_payload

_LOGGER = logging.getLogger(__name__)


class WriteStatus(StrEnum):
    """How much a store knows about the outcome of a write."""

    # The transport took the request; whether it was applied is unknown.
    ACCEPTED = "accepted"
    # The store applied the write durably.
    CONFIRMED = "confirmed"


@dataclass(frozen=True, slots=True)
class WriteReceipt:
    """Result of a create/update/delete call."""

    status: WriteStatus
    task_id: str
    record: TaskRecord | None = None

    @property
    def confirmed(self) -> bool:
        return self.status is WriteStatus.CONFIRMED


class TaskStore(Protocol):
    """Durable task storage as seen by the sync engine."""

    mode: str

    def check_ready(self) -> None: ...

    async def async_fetch_all(self) -> list[TaskRecord]: ...

    async def async_create(self, record: TaskRecord) -> WriteReceipt: ...

    async def async_update(self, record: TaskRecord) -> WriteReceipt: ...

    async def async_delete(self, task_id: str) -> WriteReceipt: ...

    async def async_close(self) -> None: ...


class LocalTaskStore:
    """DEMO-mode store keeping the whole collection under one storage key."""

    mode = MODE_DEMO

    def __init__(
        self,
        storage: LocalStorage,
        *,
        key: str = LOCAL_STORAGE_KEY,
        delay: float = DEMO_DELAY,
        seed: bool = True,
    ) -> None:
        self.storage = storage
        self.key = key
        self.delay = delay
        self.seed = seed

    def check_ready(self) -> None:
        return None

    async def _simulate_latency(self) -> None:
        if self.delay > 0:
            await asyncio.sleep(self.delay)

    def _read(self) -> list[TaskRecord] | None:
        stored = self.storage.get(self.key)
        if stored is None:
            return None
        if not isinstance(stored, list):
            raise MalformedResponseError(f"local task data under {self.key!r} is not a list")
        return records_from_payload(stored)

    def _write(self, records: Iterable[TaskRecord]) -> None:
        if not self.storage.set(self.key, records_to_payload(records)):
            raise TransientOperationError("could not write local task data", reason="storage")

    async def async_fetch_all(self) -> list[TaskRecord]:
        await self._simulate_latency()
        current = self._read()
        if current is None:
            current = demo_tasks() if self.seed else []
            self._write(current)
        return current

    async def async_create(self, record: TaskRecord) -> WriteReceipt:
        await self._simulate_latency()
        stored = replace(
            record,
            id=record.id or new_task_id(),
            created_at=record.created_at or datetime.now(tz=UTC).isoformat(),
        )
        current = [item for item in self._read() or [] if item.id != stored.id]
        self._write([stored, *current])
        return WriteReceipt(WriteStatus.CONFIRMED, stored.id, stored)

    async def async_update(self, record: TaskRecord) -> WriteReceipt:
        await self._simulate_latency()
        current = [record if item.id == record.id else item for item in self._read() or []]
        self._write(current)
        return WriteReceipt(WriteStatus.CONFIRMED, record.id, record)

    async def async_delete(self, task_id: str) -> WriteReceipt:
        await self._simulate_latency()
        self._write(item for item in self._read() or [] if item.id != task_id)
        return WriteReceipt(WriteStatus.CONFIRMED, task_id)

    async def async_close(self) -> None:
        return None


class RemoteTaskStore:
    """LIVE-mode store talking to the key-less document endpoint.

    Reads return the full collection. Writes are fire-and-forget POSTs whose
    response body is never read, so they only ever report
    :attr:`WriteStatus.ACCEPTED`.
    """

    mode = MODE_LIVE

    def __init__(
        self,
        endpoint_url: str,
        api_token: str,
        *,
        session: ClientSession | None = None,
        timeout: float = 30.0,
        module: str = TASKS_MODULE,
    ) -> None:
        self.endpoint_url = (endpoint_url or "").strip()
        self.api_token = (api_token or "").strip()
        self.module = module
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_config(cls, config: SyncConfig, *, session: ClientSession | None = None) -> RemoteTaskStore:
        return cls(
            config.endpoint_url,
            config.api_token,
            session=session,
            timeout=config.request_timeout,
        )

    def check_ready(self) -> None:
        if not self.endpoint_url:
            raise ConfigurationError("remote endpoint URL not configured")
        if not self.api_token:
            raise ConfigurationError("API token required")

    def _get_session(self) -> ClientSession:
        if self._session is None or self._session.closed:
            self._session = ClientSession()
            self._owns_session = True
        return self._session

    async def async_close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # ------------------------------------------------------------------
    async def async_fetch_all(self) -> list[TaskRecord]:
        self.check_ready()
        params = {
            "token": self.api_token,
            "module": self.module,
            "t": str(int(time.time() * 1000)),
        }
        session = self._get_session()
        try:
            async with asyncio.timeout(self._timeout):
                async with session.get(self.endpoint_url, params=params, allow_redirects=True) as resp:
                    if resp.status >= 400:
                        raise NetworkError(f"fetch failed: HTTP {resp.status}")
                    text = await resp.text()
        except (TimeoutError, ClientError) as err:
            warn_once(_LOGGER, "fetch_failed", f"{self.module} fetch failed: {err}")
            raise NetworkError(f"fetch request failed: {err}") from err
        except UnicodeDecodeError as err:
            raise MalformedResponseError("Invalid response from server.") from err

        try:
            payload = json.loads(text)
        except ValueError as err:
            raise MalformedResponseError("Invalid response from server.") from err
        return self._parse_collection(payload)

    def _parse_collection(self, payload: Any) -> list[TaskRecord]:
        if isinstance(payload, list):
            return records_from_payload(payload)
        if isinstance(payload, dict) and payload.get("status") == "error":
            message = str(payload.get("message") or "server reported an error")
            raise ServerReportedError(message)
        raise MalformedResponseError(f"expected a JSON array, got {type(payload).__name__}")

    async def _post(self, action: str, entry: dict[str, Any]) -> None:
        self.check_ready()
        body = {
            "action": action,
            "module": self.module,
            "entry": entry,
            "token": self.api_token,
        }
        headers = {"Content-Type": "text/plain;charset=utf-8"}
        session = self._get_session()
        try:
            async with asyncio.timeout(self._timeout):
                async with session.post(self.endpoint_url, data=json.dumps(body), headers=headers) as resp:
                    status = resp.status
        except (TimeoutError, ClientError) as err:
            warn_once(_LOGGER, f"{action}_failed", f"{self.module} {action} failed: {err}")
            raise NetworkError(f"{action} request failed: {err}") from err
        if status >= 400:
            # Not interpreted: the endpoint gives no reliable confirmation either way.
            warn_once(_LOGGER, f"{action}_status", f"{self.module} {action} answered HTTP {status}")

    async def async_create(self, record: TaskRecord) -> WriteReceipt:
        entry = replace(record, id=record.id or new_task_id())
        await self._post("create", entry.to_dict())
        return WriteReceipt(WriteStatus.ACCEPTED, entry.id, entry)

    async def async_update(self, record: TaskRecord) -> WriteReceipt:
        await self._post("update", record.to_dict())
        return WriteReceipt(WriteStatus.ACCEPTED, record.id, record)

    async def async_delete(self, task_id: str) -> WriteReceipt:
        await self._post("delete", {"id": task_id})
        return WriteReceipt(WriteStatus.ACCEPTED, task_id)


class TaskSnapshotCache:
    """Last known LIVE collection, used to render instantly on start-up."""

    def __init__(self, storage: LocalStorage, *, key: str = LIVE_CACHE_KEY) -> None:
        self.storage = storage
        self.key = key

    def read(self) -> list[TaskRecord] | None:
        cached = self.storage.get(self.key)
        if cached is None:
            return None
        if not isinstance(cached, list):
            _LOGGER.warning("Cache corrupted under %s; ignoring it", self.key)
            return None
        return records_from_payload(cached)

    def write(self, records: Iterable[TaskRecord]) -> bool:
        return self.storage.set(self.key, records_to_payload(records))

    def clear(self) -> None:
        self.storage.remove(self.key)


def create_task_store(
    config: SyncConfig,
    storage: LocalStorage,
    *,
    session: ClientSession | None = None,
) -> LocalTaskStore | RemoteTaskStore:
    """Return the store matching ``config.mode``."""

    if config.is_live:
        return RemoteTaskStore.from_config(config, session=session)
    return LocalTaskStore(storage)


__all__ = [
    "LocalTaskStore",
    "RemoteTaskStore",
    "TaskSnapshotCache",
    "TaskStore",
    "WriteReceipt",
    "WriteStatus",
    "create_task_store",
]
