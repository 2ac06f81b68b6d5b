"""Single-file watching on top of a directory watcher."""

import logging
import os
from concurrent.futures import Executor
from pathlib import Path
from typing import Callable, Optional, Union

from .config import WatcherConfig
from .directory_watcher import DirectoryWatcher
from .exceptions import InvalidWatchPathError
from .handle import WatchHandle, spawn
from .models import Action, Event, LoopState
from .service import WatchService

logger = logging.getLogger(__name__)

CONTENT_ACTIONS = frozenset({Action.CREATE, Action.MODIFY})


class _Current:
    """Marker for sampling the file's modification time when the watcher is created."""

    def __repr__(self) -> str:
        return "CURRENT"


CURRENT = _Current()

LastModified = Union[float, None, _Current]


def last_modified_or_none(path: Path) -> Optional[float]:
    """
    Get a file's modification time.

    Args:
        path: Path to the file

    Returns:
        st_mtime of the file, or None if it does not exist
    """
    try:
        return path.stat().st_mtime
    except (FileNotFoundError, NotADirectoryError):
        return None


def is_modified_since(path: Path, last_modified: Optional[float]) -> bool:
    """Whether the file's modification time differs from last_modified."""
    return last_modified_or_none(path) != last_modified


class FileWatcher:
    """
    Watches a single file for content changes.

    The callback runs whenever the file is created or modified, after the
    debounce window. The file does not have to exist when watching starts,
    but it always exists when the callback runs.

    last_modified decides whether the callback also runs once at start:

    | Value     | Called at start                        |
    | --------- | -------------------------------------- |
    | CURRENT   | Never (mtime sampled at construction)  |
    | None      | Always (if the file exists)            |
    | float     | If the file's mtime differs from it    |
    """

    def __init__(
        self,
        path: Union[str, Path],
        last_modified: LastModified = CURRENT,
        debounce_ms: Optional[int] = None,
        config: Optional[WatcherConfig] = None,
        service_factory: Optional[Callable[[WatcherConfig], WatchService]] = None,
    ):
        """
        Initialize the file watcher.

        Args:
            path: File to watch
            last_modified: Start-up policy, see class docstring
            debounce_ms: Debounce window in ms (overrides config.debounce_ms)
            config: Watcher configuration
            service_factory: Creates the watch service when the loop starts

        Raises:
            InvalidWatchPathError: If the parent directory does not exist
        """
        self.path = Path(os.path.abspath(path))
        parent = self.path.parent
        if parent == self.path:
            raise InvalidWatchPathError(f"Path has no parent directory: {self.path}")
        if not parent.is_dir():
            raise InvalidWatchPathError(f"Parent directory does not exist: {parent}")

        if isinstance(last_modified, _Current):
            last_modified = last_modified_or_none(self.path)
        self.last_modified: Optional[float] = last_modified

        self._directory_watcher = DirectoryWatcher(
            parent,
            recursive=False,
            debounce_ms=debounce_ms,
            config=config,
            service_factory=service_factory,
        )

    @property
    def state(self) -> LoopState:
        """Current state of the underlying event loop."""
        return self._directory_watcher.state

    @property
    def debounce_ms(self) -> int:
        return self._directory_watcher.debounce_ms

    def should_fire(self, event: Event) -> bool:
        """
        Decide whether an event from the parent directory triggers the callback.

        Args:
            event: Event reported by the directory watcher

        Returns:
            True if the callback should run
        """
        if not self.path.exists():
            return False
        if event.is_initialization:
            return is_modified_since(self.path, self.last_modified)
        return event.path == self.path and not event.actions.isdisjoint(CONTENT_ACTIONS)

    def start(self, callback: Callable[[], None]) -> None:
        """
        Run the watcher until stop() is called (blocking).

        Args:
            callback: Function called when the file changed
        """
        def on_event(event: Event) -> None:
            if self.should_fire(event):
                logger.debug(f"File changed: {self.path}")
                callback()

        self._directory_watcher.start(on_event)

    def start_async(
        self,
        callback: Callable[[], None],
        executor: Optional[Executor] = None,
    ) -> WatchHandle:
        """
        Run the watcher in the background.

        Args:
            callback: Function called when the file changed
            executor: Executor to run the loop on; a daemon thread if None

        Returns:
            Handle to cancel and await the loop
        """
        return spawn(
            lambda: self.start(callback),
            self.stop,
            executor=executor,
            name=f"dirwatch:{self.path}",
        )

    def stop(self) -> None:
        """Stop watching. Safe to call from any thread, more than once."""
        self._directory_watcher.stop()
