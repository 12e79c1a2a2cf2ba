"""hotreload: polling file watchers that reload cached resources on change."""

__version__ = "0.1.0"

from hotreload.engine import ActiveWatcher, WatcherEngine
from hotreload.errors import (
    AccessError,
    AlreadyExistsError,
    InvalidPathError,
    NotAFileError,
    NotFoundError,
    ReadFailureError,
    WatchError,
)
from hotreload.host import Host, LocalHost
from hotreload.manager import HotReloadManager, WatchStatus
from hotreload.registry import WatchEntry, WatchRegistry
from hotreload.settings import WatcherSettings, clamp_interval

__all__ = [
    # Coordination
    "HotReloadManager",
    "WatchStatus",
    # Registry and engine
    "WatchEntry",
    "WatchRegistry",
    "ActiveWatcher",
    "WatcherEngine",
    # Host
    "Host",
    "LocalHost",
    # Settings
    "WatcherSettings",
    "clamp_interval",
    # Errors
    "AccessError",
    "WatchError",
    "AlreadyExistsError",
    "InvalidPathError",
    "NotFoundError",
    "NotAFileError",
    "ReadFailureError",
]
