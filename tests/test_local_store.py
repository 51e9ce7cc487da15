import pytest

from myops.const import LOCAL_STORAGE_KEY
from myops.tasksync import (
    LocalTaskStore,
    MalformedResponseError,
    SyncConfig,
    TaskRecord,
    TaskSnapshotCache,
    TransientOperationError,
    WriteStatus,
    create_task_store,
)
from myops.tasksync.store import RemoteTaskStore


@pytest.mark.asyncio
async def test_first_fetch_seeds_demo_data(storage):
    store = LocalTaskStore(storage, delay=0)

    records = await store.async_fetch_all()

    assert {record.id for record in records} == {"t-1", "t-2", "t-3", "t-4", "t-5"}
    assert len(storage.get(LOCAL_STORAGE_KEY)) == 5


@pytest.mark.asyncio
async def test_fetch_without_seed_starts_empty(storage):
    store = LocalTaskStore(storage, delay=0, seed=False)
    assert await store.async_fetch_all() == []
    assert storage.get(LOCAL_STORAGE_KEY) == []


@pytest.mark.asyncio
async def test_create_update_delete_are_confirmed(storage):
    store = LocalTaskStore(storage, delay=0, seed=False)

    created = await store.async_create(TaskRecord(date="2024-01-01", description="One"))
    assert created.status is WriteStatus.CONFIRMED
    assert created.task_id
    assert created.record.created_at

    record = created.record
    updated = await store.async_update(TaskRecord(id=record.id, date=record.date, description="Two"))
    assert updated.confirmed
    assert [r.description for r in await store.async_fetch_all()] == ["Two"]

    await store.async_delete(record.id)
    assert await store.async_fetch_all() == []


@pytest.mark.asyncio
async def test_create_prepends(storage):
    store = LocalTaskStore(storage, delay=0, seed=False)
    await store.async_create(TaskRecord(id="a"))
    await store.async_create(TaskRecord(id="b"))
    assert [r["id"] for r in storage.get(LOCAL_STORAGE_KEY)] == ["b", "a"]


@pytest.mark.asyncio
async def test_corrupt_data_is_malformed(storage):
    storage.set(LOCAL_STORAGE_KEY, {"not": "a list"})
    store = LocalTaskStore(storage, delay=0)

    with pytest.raises(MalformedResponseError):
        await store.async_fetch_all()


@pytest.mark.asyncio
async def test_write_failure_is_transient(storage, monkeypatch):
    store = LocalTaskStore(storage, delay=0, seed=False)
    monkeypatch.setattr(storage, "set", lambda key, value: False)

    with pytest.raises(TransientOperationError) as info:
        await store.async_create(TaskRecord(id="a"))
    assert info.value.reason == "storage"


def test_snapshot_cache_ignores_corrupt_value(storage, caplog):
    cache = TaskSnapshotCache(storage)
    assert cache.read() is None

    storage.set(cache.key, "garbage")
    assert cache.read() is None
    assert "Cache corrupted" in caplog.text

    cache.write([TaskRecord(id="a")])
    assert cache.read() == [TaskRecord(id="a")]
    cache.clear()
    assert cache.read() is None


def test_factory_picks_store_by_mode(storage):
    assert isinstance(create_task_store(SyncConfig(), storage), LocalTaskStore)
    live = SyncConfig(mode="LIVE", endpoint_url="https://x", api_token="t")
    assert isinstance(create_task_store(live, storage), RemoteTaskStore)
