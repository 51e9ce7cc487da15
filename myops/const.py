from __future__ import annotations

DOMAIN = "myops"
TASKS_MODULE = "tasks"

# Local storage keys (one serialised value per key)
LOCAL_STORAGE_KEY = "myops_data_v1"
LIVE_CACHE_KEY = "myops_live_data_v1"
CONFIG_STORAGE_KEY = "myops_config_v1"

MODE_DEMO = "DEMO"
MODE_LIVE = "LIVE"
RUN_MODES: tuple[str, ...] = (MODE_DEMO, MODE_LIVE)

CONF_MODE = "mode"
CONF_ENDPOINT_URL = "endpoint_url"
CONF_API_TOKEN = "api_token"
CONF_LOCALE = "locale"
CONF_REQUEST_TIMEOUT = "request_timeout"

DEFAULT_LOCALE = "en-US"
DEFAULT_REQUEST_TIMEOUT = 30.0

# Artificial latency of the local store, in seconds
DEMO_DELAY = 0.05
# Undo window before a deletion is made durable. The notification that offers
# the undo action stays visible slightly longer than this.
DELETE_GRACE_SECONDS = 4.5

PRIORITY_HIGH = "High"
PRIORITY_MEDIUM = "Medium"
PRIORITY_LOW = "Low"
PRIORITIES: tuple[str, ...] = (PRIORITY_HIGH, PRIORITY_MEDIUM, PRIORITY_LOW)

STATUS_BACKLOG = "Backlog"
STATUS_IN_PROGRESS = "In Progress"
STATUS_DONE = "Done"
# Cycle order used when advancing a task
STATUSES: tuple[str, ...] = (STATUS_BACKLOG, STATUS_IN_PROGRESS, STATUS_DONE)

PRIORITY_RANKS: dict[str, int] = {
    PRIORITY_HIGH: 0,
    PRIORITY_MEDIUM: 1,
    PRIORITY_LOW: 2,
}
STATUS_RANKS: dict[str, int] = {
    STATUS_IN_PROGRESS: 0,
    STATUS_BACKLOG: 1,
    STATUS_DONE: 2,
}
UNKNOWN_RANK = 3

DEFAULT_PROJECT = "Inbox"
DEFAULT_PROJECTS: tuple[str, ...] = (
    "Inbox",
    "Development",
    "Operations",
    "Content",
    "Strategy",
    "Life",
    "Learning",
    "Health",
)

RECURRENCE_DAILY = "Daily"
RECURRENCE_WEEKLY = "Weekly"
RECURRENCE_MONTHLY = "Monthly"
# Description tags that mark a task as recurring
RECURRENCE_TAGS: dict[str, str] = {
    RECURRENCE_DAILY: "\U0001f501 Daily",
    RECURRENCE_WEEKLY: "\U0001f501 Weekly",
    RECURRENCE_MONTHLY: "\U0001f501 Monthly",
}

DEFAULT_XP_AWARD = 10
