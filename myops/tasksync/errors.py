"""Failure taxonomy for the task sync engine and its stores."""

from __future__ import annotations


class TaskSyncError(RuntimeError):
    """Base class for failures raised by task stores and caught by the engine."""

    default_reason = "sync_failed"

    def __init__(self, message: str, *, reason: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason or self.default_reason


class ConfigurationError(TaskSyncError):
    """Raised when the store cannot run until the user fixes the settings."""

    default_reason = "not_configured"


class TransientOperationError(TaskSyncError):
    """Raised when a storage or network operation fails and may succeed later."""

    default_reason = "transient"


class NetworkError(TransientOperationError):
    """Raised when the remote endpoint cannot be reached or answers with an HTTP error."""

    default_reason = "network"


class MalformedResponseError(TaskSyncError):
    """Raised when a store returns data that cannot be interpreted."""

    default_reason = "malformed_response"


class ServerReportedError(MalformedResponseError):
    """Raised when the remote explicitly answers with an error payload."""

    default_reason = "server_error"


__all__ = [
    "ConfigurationError",
    "MalformedResponseError",
    "NetworkError",
    "ServerReportedError",
    "TaskSyncError",
    "TransientOperationError",
]
