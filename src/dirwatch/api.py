"""Entry points for watching a directory or a file in the background."""

from concurrent.futures import Executor
from pathlib import Path
from typing import Callable, Optional, Union

from .config import WatcherConfig
from .directory_watcher import DirectoryWatcher, EventCallback, EventHandler
from .file_watcher import CURRENT, FileWatcher, LastModified
from .handle import WatchHandle


def watch(
    path: Union[str, Path],
    callback: Union[EventCallback, EventHandler],
    recursive: bool = True,
    debounce_ms: int = 50,
    executor: Optional[Executor] = None,
    config: Optional[WatcherConfig] = None,
) -> WatchHandle:
    """
    Watch a directory for changes.

    The callback gets one Event per changed path, after a delay of
    debounce_ms that collects a burst of changes into one event. The first
    event is always {path, {INIT}}. If the directory is deleted later, no
    further events are sent.

    Args:
        path: Existing directory to watch
        callback: Callable taking an Event, or object with handle(event)
        recursive: Whether to include subdirectories
        debounce_ms: Debounce window in ms; 0 disables the delay
        executor: Executor to run the loop on; a daemon thread if None
        config: Base configuration for the other options

    Returns:
        Handle to cancel and await the watch

    Raises:
        InvalidWatchPathError: If path is not an existing directory
    """
    watcher = DirectoryWatcher(path, recursive=recursive, debounce_ms=debounce_ms, config=config)
    return watcher.start_async(callback, executor=executor)


def on_change(
    path: Union[str, Path],
    callback: Callable[[], None],
    last_modified: LastModified = CURRENT,
    debounce_ms: int = 50,
    executor: Optional[Executor] = None,
    config: Optional[WatcherConfig] = None,
) -> WatchHandle:
    """
    Watch a single file for changes.

    The callback runs every time the file is created or its content is
    modified. See FileWatcher for the meaning of last_modified.

    Args:
        path: File to watch; its parent directory must exist
        callback: Function called when the file changed
        last_modified: Start-up policy (CURRENT, None, or an st_mtime)
        debounce_ms: Debounce window in ms
        executor: Executor to run the loop on; a daemon thread if None
        config: Base configuration for the other options

    Returns:
        Handle to cancel and await the watch

    Raises:
        InvalidWatchPathError: If the parent directory does not exist
    """
    watcher = FileWatcher(path, last_modified=last_modified, debounce_ms=debounce_ms, config=config)
    return watcher.start_async(callback, executor=executor)
