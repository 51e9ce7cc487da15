from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from myops.const import MODE_DEMO
from myops.tasksync import LocalStorage, NotificationCenter, TaskRecord, WriteReceipt, WriteStatus
from myops.tasksync.models import new_task_id
from myops.utils.logging import reset_warnings


class FakeStore:
    """In-memory task store with scriptable failures and latency."""

    mode = MODE_DEMO

    def __init__(self, records=()) -> None:
        self.records: list[TaskRecord] = list(records)
        self.calls: list[tuple[str, str | None]] = []
        # "create", "update", "delete", "fetch" or "<op>:<task id>" -> exception
        self.failures: dict[str, Exception] = {}
        self.assign_ids: list[str] = []
        self.ready_error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.closed = False

    def check_ready(self) -> None:
        if self.ready_error is not None:
            raise self.ready_error

    async def _step(self, op: str, task_id: str | None = None) -> None:
        self.calls.append((op, task_id))
        if self.gate is not None:
            await self.gate.wait()
        exc = self.failures.get(f"{op}:{task_id}") or self.failures.get(op)
        if exc is not None:
            raise exc

    def ops(self, op: str) -> list[str | None]:
        return [task_id for name, task_id in self.calls if name == op]

    async def async_fetch_all(self):
        await self._step("fetch")
        return list(self.records)

    async def async_create(self, record):
        await self._step("create", record.id)
        stored = replace(record, id=self.assign_ids.pop(0) if self.assign_ids else record.id or new_task_id())
        self.records.insert(0, stored)
        return WriteReceipt(WriteStatus.CONFIRMED, stored.id, stored)

    async def async_update(self, record):
        await self._step("update", record.id)
        self.records = [record if item.id == record.id else item for item in self.records]
        return WriteReceipt(WriteStatus.CONFIRMED, record.id, record)

    async def async_delete(self, task_id):
        await self._step("delete", task_id)
        self.records = [item for item in self.records if item.id != task_id]
        return WriteReceipt(WriteStatus.CONFIRMED, task_id)

    async def async_close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _reset_warn_once():
    reset_warnings()
    yield
    reset_warnings()


@pytest.fixture
def storage() -> LocalStorage:
    return LocalStorage()


@pytest.fixture
def center() -> NotificationCenter:
    return NotificationCenter()


@pytest.fixture
def make_store():
    return FakeStore


@pytest.fixture
def task_a() -> TaskRecord:
    return TaskRecord(id="a", date="2024-01-01", description="Alpha", priority="Low")


@pytest.fixture
def task_b() -> TaskRecord:
    return TaskRecord(id="b", date="2024-01-02", description="Bravo", priority="High")


@pytest.fixture
def task_c() -> TaskRecord:
    return TaskRecord(id="c", date="2024-01-03", description="Charlie", status="Done")
