"""Optimistic task synchronisation against a local or remote task store."""

from .actions import TaskActions, dependency_status, duplicate_task, next_status
from .bridge import (
    ActionBridge,
    LoggingActionBridge,
    Notification,
    NotificationAction,
    NotificationCenter,
    NotificationKind,
)
from .config import SyncConfig, load_config, save_config
from .engine import TaskSyncEngine, create_engine
from .errors import (
    ConfigurationError,
    MalformedResponseError,
    NetworkError,
    ServerReportedError,
    TaskSyncError,
    TransientOperationError,
)
from .local_storage import LocalStorage
from .models import Priority, Status, TaskRecord
from .ordering import compare, sort_tasks
from .store import (
    LocalTaskStore,
    RemoteTaskStore,
    TaskSnapshotCache,
    TaskStore,
    WriteReceipt,
    WriteStatus,
    create_task_store,
)

__all__ = [
    "TaskRecord",
    "Priority",
    "Status",
    "compare",
    "sort_tasks",
    "TaskSyncError",
    "ConfigurationError",
    "TransientOperationError",
    "NetworkError",
    "MalformedResponseError",
    "ServerReportedError",
    "SyncConfig",
    "load_config",
    "save_config",
    "LocalStorage",
    "TaskStore",
    "LocalTaskStore",
    "RemoteTaskStore",
    "TaskSnapshotCache",
    "WriteReceipt",
    "WriteStatus",
    "create_task_store",
    "ActionBridge",
    "LoggingActionBridge",
    "Notification",
    "NotificationAction",
    "NotificationCenter",
    "NotificationKind",
    "TaskSyncEngine",
    "create_engine",
    "TaskActions",
    "dependency_status",
    "duplicate_task",
    "next_status",
]
