"""Directory watcher: event loop with debouncing and watch-set resync."""

import logging
import os
import threading
from concurrent.futures import Executor
from dataclasses import replace
from pathlib import Path
from typing import Callable, FrozenSet, Optional, Protocol, Union

from .coalescer import coalesce
from .config import WatcherConfig
from .exceptions import (
    InvalidWatchPathError,
    WatchServiceClosedError,
    WatcherAlreadyRunningError,
)
from .handle import WatchHandle, spawn
from .models import Action, Event, LoopState
from .service import WatchKey, WatchService
from .watch_set import WatchSet

logger = logging.getLogger(__name__)

EventCallback = Callable[[Event], None]


class EventHandler(Protocol):
    """Object receiving watcher events."""

    def handle(self, event: Event) -> None:
        ...


def as_event_callback(callback: Union[EventCallback, EventHandler]) -> EventCallback:
    """
    Normalize a callback to a plain function.

    Args:
        callback: A callable taking an Event, or an object with handle(event)

    Returns:
        Function to call with each event

    Raises:
        TypeError: If the callback is neither
    """
    handle = getattr(callback, "handle", None)
    if callable(handle):
        return handle
    if callable(callback):
        return callback
    raise TypeError(f"Callback must be callable or have a handle() method: {callback!r}")


class DirectoryWatcher:
    """
    Watches a directory and reports coalesced events for its entries.

    The watcher keeps one registration per watched directory (the root, plus
    all subdirectories when recursive). start() runs the event loop on the
    calling thread:

    1. Register the watch set and report a synthetic INIT event for the root
    2. Block until a registered directory signals
    3. Wait debounce_ms so a burst of changes lands in one batch
    4. Drain that directory, group by path and call back once per path
    5. If a directory was created or deleted, resync the watch set
    6. Repeat from 2 until stop() is called

    Example:
        watcher = DirectoryWatcher(Path("/project"), recursive=True)
        handle = watcher.start_async(lambda event: print(event.path, event.actions))
        ...
        handle.cancel()
    """

    def __init__(
        self,
        path: Union[str, Path],
        recursive: Optional[bool] = None,
        debounce_ms: Optional[int] = None,
        config: Optional[WatcherConfig] = None,
        service_factory: Optional[Callable[[WatcherConfig], WatchService]] = None,
    ):
        """
        Initialize the directory watcher.

        Args:
            path: Directory to watch
            recursive: Whether to include subdirectories (overrides config.recursive)
            debounce_ms: Debounce window in ms (overrides config.debounce_ms)
            config: Watcher configuration
            service_factory: Creates the watch service when the loop starts

        Raises:
            InvalidWatchPathError: If path does not exist or is not a directory
        """
        config = config or WatcherConfig()
        overrides = {}
        if recursive is not None:
            overrides["recursive"] = recursive
        if debounce_ms is not None:
            overrides["debounce_ms"] = debounce_ms
        self.config = replace(config, **overrides) if overrides else config

        path = Path(path)
        if not path.exists():
            raise InvalidWatchPathError(f"Path does not exist: {path}")
        if not path.is_dir():
            raise InvalidWatchPathError(f"Path is not a directory: {path}")

        self.root = Path(os.path.abspath(path))
        self._service_factory = service_factory or WatchService
        self._service: Optional[WatchService] = None
        self._watch_set: Optional[WatchSet] = None
        self._resync_pending = False
        self._state = LoopState.IDLE
        self._running = False
        self._cancelled = threading.Event()
        self._lock = threading.Lock()

    @property
    def recursive(self) -> bool:
        return self.config.recursive

    @property
    def debounce_ms(self) -> int:
        return self.config.debounce_ms

    @property
    def state(self) -> LoopState:
        """Current state of the event loop."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Whether start() is currently executing."""
        return self._running

    def watched_directories(self) -> FrozenSet[Path]:
        """
        Get the directories currently registered.

        Returns:
            Frozen set of directory paths (empty when not running)
        """
        watch_set = self._watch_set
        if watch_set is None:
            return frozenset()
        return watch_set.directories()

    def start(self, callback: Union[EventCallback, EventHandler]) -> None:
        """
        Run the event loop until stop() is called (blocking).

        The callback is invoked on the calling thread, one event at a time.
        An exception raised by the callback stops the watcher and propagates.

        Args:
            callback: Callable taking an Event, or object with handle(event)

        Raises:
            WatcherAlreadyRunningError: If the loop is already running
        """
        on_event = as_event_callback(callback)

        with self._lock:
            if self._running:
                raise WatcherAlreadyRunningError(f"Watcher for {self.root} is already running")
            if self._cancelled.is_set():
                logger.debug(f"Watcher for {self.root} was stopped before it started")
                return

            service = self._service_factory(self.config)
            self._service = service
            self._watch_set = WatchSet(service, self.root, self.config.recursive, self.config)
            self._running = True

        logger.info(
            f"Watching {self.root} (recursive={self.config.recursive}, "
            f"debounce={self.config.debounce_ms}ms)"
        )
        try:
            self._run(on_event)
        except WatchServiceClosedError:
            if not self._cancelled.is_set():
                raise
        finally:
            self._state = LoopState.CANCELLED
            self._watch_set.clear()
            service.close()
            with self._lock:
                self._running = False
            logger.info(f"Stopped watching {self.root}")

    def start_async(
        self,
        callback: Union[EventCallback, EventHandler],
        executor: Optional[Executor] = None,
    ) -> WatchHandle:
        """
        Run the event loop in the background.

        Args:
            callback: Callable taking an Event, or object with handle(event)
            executor: Executor to run the loop on; a daemon thread if None

        Returns:
            Handle to cancel and await the loop
        """
        as_event_callback(callback)
        return spawn(
            lambda: self.start(callback),
            self.stop,
            executor=executor,
            name=f"dirwatch:{self.root}",
        )

    def stop(self) -> None:
        """Stop the event loop. Safe to call from any thread, more than once."""
        self._cancelled.set()
        with self._lock:
            service = self._service
        if service is not None:
            service.close()

    def _run(self, on_event: EventCallback) -> None:
        self._state = LoopState.INITIALIZING
        self._resync()
        self._deliver(on_event, Event(path=self.root, actions=frozenset({Action.INIT})))

        while not self._cancelled.is_set():
            self._state = LoopState.WAITING_FOR_EVENTS
            key = self._service.take()

            if self.config.debounce_ms > 0:
                self._state = LoopState.DEBOUNCING
                if self._cancelled.wait(self.config.debounce_seconds):
                    break

            self._state = LoopState.DISPATCHING
            self._dispatch(key, on_event)

    def _dispatch(self, key: WatchKey, on_event: EventCallback) -> None:
        """Drain a signalled key, deliver its events and resync if needed."""
        events = coalesce(key.directory, key.poll_events(), self.config)

        for event in events:
            self._deliver(on_event, event)
            if event.is_structural_change:
                self._resync_pending = True
            if Action.DELETE in event.actions:
                # A deleted directory no longer passes is_dir(). Its old
                # registration is dead even if the path was recreated.
                if self._watch_set.discard(event.path):
                    self._resync_pending = True

        key.reset()

        if self._resync_pending:
            self._resync()

    def _deliver(self, on_event: EventCallback, event: Event) -> None:
        try:
            on_event(event)
        except Exception:
            logger.exception(f"Event callback failed for {event.path}, stopping watcher for {self.root}")
            raise

    def _resync(self) -> None:
        self._watch_set.sync()
        self._resync_pending = False
