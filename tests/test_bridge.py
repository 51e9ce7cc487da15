import logging

import pytest

from myops.tasksync import LoggingActionBridge, NotificationAction, NotificationCenter, NotificationKind


@pytest.mark.asyncio
async def test_center_invokes_sync_and_async_actions():
    center = NotificationCenter()
    calls = []

    async def undo():
        calls.append("async")

    center.notify("first", NotificationKind.INFO, NotificationAction("Undo", lambda: calls.append("sync")))
    center.notify("second", NotificationKind.INFO, NotificationAction("Undo", undo))
    first, second = center.notifications

    assert first.id == "n1"
    assert await center.async_invoke(second.id)
    assert await center.async_invoke(first.id)
    assert calls == ["async", "sync"]
    assert center.notifications == []
    assert not await center.async_invoke("n1")


def test_center_filters_by_kind():
    center = NotificationCenter()
    center.notify("ok", NotificationKind.SUCCESS)
    center.notify("bad", "error")
    center.notify("worse", NotificationKind.ERROR)

    assert center.messages(NotificationKind.ERROR) == ["bad", "worse"]
    assert center.latest(NotificationKind.SUCCESS).message == "ok"
    assert center.latest().message == "worse"
    center.dismiss("n3")
    assert center.latest().message == "bad"


def test_logging_bridge_levels(caplog):
    bridge = LoggingActionBridge(logging.getLogger("tests.bridge"))
    with caplog.at_level(logging.INFO, logger="tests.bridge"):
        bridge.notify("Task created", NotificationKind.SUCCESS)
        bridge.notify("Delete failed", NotificationKind.ERROR)

    assert [r.levelno for r in caplog.records] == [logging.INFO, logging.ERROR]
    assert "[success] Task created" in caplog.text
