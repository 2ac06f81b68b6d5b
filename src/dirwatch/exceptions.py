"""Custom exceptions for the dirwatch package."""


class WatcherError(Exception):
    """Base exception for all watcher errors."""
    pass


class InvalidWatchPathError(WatcherError, ValueError):
    """Watched path does not exist or has the wrong type."""
    pass


class WatchServiceClosedError(WatcherError):
    """Operation attempted on a closed watch service."""
    pass


class WatcherAlreadyRunningError(WatcherError):
    """Watcher loop is already running."""
    pass
