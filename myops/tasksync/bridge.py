"""Action bridge: how the engine reports outcomes and offers undo actions."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

_LOGGER = logging.getLogger(__name__)


class NotificationKind(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class NotificationAction:
    """A labelled callback attached to a notification (for example ``Undo``)."""

    label: str
    on_invoke: Callable[[], Any]


@dataclass(frozen=True, slots=True)
class Notification:
    id: str
    message: str
    kind: NotificationKind
    action: NotificationAction | None = None


class ActionBridge(Protocol):
    """Surface that shows notifications to the user.

    The engine only calls :meth:`notify`; it never stores or queues
    notifications itself.
    """

    def notify(
        self,
        message: str,
        kind: NotificationKind = NotificationKind.INFO,
        action: NotificationAction | None = None,
    ) -> None: ...


class LoggingActionBridge:
    """Bridge that writes notifications to a logger; actions are dropped."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or _LOGGER

    def notify(
        self,
        message: str,
        kind: NotificationKind = NotificationKind.INFO,
        action: NotificationAction | None = None,
    ) -> None:
        level = logging.ERROR if kind == NotificationKind.ERROR else logging.INFO
        self.logger.log(level, "[%s] %s", kind, message)


class NotificationCenter:
    """In-memory bridge keeping notifications until they are dismissed."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.notifications: list[Notification] = []

    def notify(
        self,
        message: str,
        kind: NotificationKind = NotificationKind.INFO,
        action: NotificationAction | None = None,
    ) -> None:
        notification = Notification(
            id=f"n{next(self._ids)}",
            message=message,
            kind=NotificationKind(kind),
            action=action,
        )
        self.notifications.append(notification)
        _LOGGER.debug("Notification %s: %s", notification.id, message)

    def dismiss(self, notification_id: str) -> None:
        self.notifications = [n for n in self.notifications if n.id != notification_id]

    def latest(self, kind: NotificationKind | None = None) -> Notification | None:
        for notification in reversed(self.notifications):
            if kind is None or notification.kind == kind:
                return notification
        return None

    def messages(self, kind: NotificationKind | None = None) -> list[str]:
        return [n.message for n in self.notifications if kind is None or n.kind == kind]

    async def async_invoke(self, notification_id: str) -> bool:
        """Run the action attached to a notification and dismiss it."""

        notification = next((n for n in self.notifications if n.id == notification_id), None)
        if notification is None or notification.action is None:
            return False
        self.dismiss(notification_id)
        result = notification.action.on_invoke()
        if asyncio.iscoroutine(result):
            await result
        return True


__all__ = [
    "ActionBridge",
    "LoggingActionBridge",
    "Notification",
    "NotificationAction",
    "NotificationCenter",
    "NotificationKind",
]
