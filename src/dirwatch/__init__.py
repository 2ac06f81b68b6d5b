"""
dirwatch

Debounced change notification for a directory tree or a single file,
built on watchdog.

Features:
- One registration per watched directory, resynced when directories
  are created or deleted
- Per-path coalescing of raw events: CREATE, DELETE, MODIFY
- Synthetic INIT event when a directory watch starts
- Single-file watching with a configurable start-up policy
- Cancellable background watches on a thread or executor
"""

from .models import (
    Action,
    Event,
    RawEvent,
    LoopState,
)

from .config import WatcherConfig

from .exceptions import (
    WatcherError,
    InvalidWatchPathError,
    WatchServiceClosedError,
    WatcherAlreadyRunningError,
)

from .service import WatchService, WatchKey
from .watch_set import WatchSet
from .coalescer import coalesce
from .directory_watcher import DirectoryWatcher, EventHandler
from .file_watcher import FileWatcher, CURRENT
from .handle import Cancellable, WatchHandle
from .api import watch, on_change


__all__ = [
    # Models
    "Action",
    "Event",
    "RawEvent",
    "LoopState",
    # Config
    "WatcherConfig",
    # Exceptions
    "WatcherError",
    "InvalidWatchPathError",
    "WatchServiceClosedError",
    "WatcherAlreadyRunningError",
    # Components
    "WatchService",
    "WatchKey",
    "WatchSet",
    "coalesce",
    "DirectoryWatcher",
    "EventHandler",
    "FileWatcher",
    "CURRENT",
    "Cancellable",
    "WatchHandle",
    # Entry points
    "watch",
    "on_change",
]

__version__ = "0.1.0"
