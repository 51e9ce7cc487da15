"""Cancellable delayed execution of coroutines on the running event loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress

_LOGGER = logging.getLogger(__name__)


class ScheduledCall:
    """Run ``factory()`` as a task once ``delay`` seconds have elapsed.

    Until the timer fires the call can be cancelled and no coroutine is ever
    created. After it fires the work is in flight and :meth:`cancel` returns
    ``False``; :meth:`wait` lets an owner drain it on shutdown.
    """

    def __init__(
        self,
        delay: float,
        factory: Callable[[], Awaitable[None]],
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        name: str | None = None,
    ) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._factory = factory
        self.name = name
        self.delay = max(float(delay), 0.0)
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False
        self._timer: asyncio.TimerHandle | None = self._loop.call_later(self.delay, self._fire)

    def _fire(self) -> None:
        self._timer = None
        if self._cancelled:
            return
        self._task = self._loop.create_task(self._run(), name=self.name)

    async def _run(self) -> None:
        await self._factory()

    @property
    def fired(self) -> bool:
        return self._task is not None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        if self._cancelled:
            return True
        return self._task is not None and self._task.done()

    def cancel(self) -> bool:
        """Cancel the call if the timer has not fired yet."""

        if self._cancelled or self._task is not None:
            return False
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        return True

    async def wait(self) -> None:
        """Wait for fired work to finish; errors are logged, not raised."""

        if self._task is None:
            return
        with suppress(asyncio.CancelledError):
            try:
                await self._task
            except Exception as err:  # pragma: no cover - the factory handles its own errors
                _LOGGER.debug("Scheduled call %s failed: %s", self.name, err, exc_info=True)


__all__ = ["ScheduledCall"]
