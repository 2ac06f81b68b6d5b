"""Directory watch service built on a watchdog observer.

Each registered directory gets a WatchKey. The OS subscription is shared:
the first directory registered schedules one watchdog watch (recursive when
the config is), and later directories inside it reuse that watch. Events
are routed to the key of their parent directory; events whose parent holds
no key are dropped.

Raw events accumulate on the key; the first event after the key was armed
signals it by putting it on the service's ready queue, where ``take()``
picks it up. Events arriving while the key is signalled keep accumulating
until the owner drains it with ``poll_events()`` and re-arms it with
``reset()``.
"""

import errno
import logging
import os
import queue
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from .config import WatcherConfig
from .exceptions import WatchServiceClosedError
from .models import RawEvent

logger = logging.getLogger(__name__)

# Kinds after which the observer also reports the parent directory as modified.
_PARENT_TOUCHING_KINDS = frozenset({
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MOVED,
    EVENT_TYPE_CLOSED,
})


class RoutingEventHandler(FileSystemEventHandler):
    """
    Handler that forwards watchdog events as (kind, path) pairs.

    Moves are split into a deletion of the source and a creation of the
    destination. The parent-directory modification that watchdog emits
    after every create/delete/move is dropped, as are synthetic events for
    the contents of moved-in directories.
    """

    def __init__(self, route: Callable[[str, str], None]):
        super().__init__()
        self.route = route
        self._touched_parents: Set[str] = set()

    def _forward(self, kind: str, path) -> None:
        path = os.fsdecode(path)
        if not path:
            return
        self.route(kind, path)

    def _note_parent(self, path) -> None:
        path = os.fsdecode(path)
        if path:
            self._touched_parents.add(os.path.dirname(path))

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_synthetic:
            return

        if event.event_type == EVENT_TYPE_MODIFIED and event.is_directory:
            path = os.fsdecode(event.src_path)
            if path in self._touched_parents:
                self._touched_parents.discard(path)
                return

        if event.event_type == EVENT_TYPE_MOVED:
            self._forward(EVENT_TYPE_DELETED, event.src_path)
            self._forward(EVENT_TYPE_CREATED, event.dest_path)
            self._note_parent(event.src_path)
            self._note_parent(event.dest_path)
            return

        self._forward(event.event_type, event.src_path)
        if event.event_type in _PARENT_TOUCHING_KINDS:
            self._note_parent(event.src_path)


class WatchKey:
    """
    Registration of one directory with a WatchService.

    A key is valid until cancelled or until its service closes. It is
    either ready (armed) or signalled (queued or being drained).
    """

    def __init__(self, service: "WatchService", directory: Path):
        self.directory = directory
        self.directory_str = str(directory)
        self._service = service
        self._watch = None
        self._real_path = os.path.realpath(self.directory_str)
        self._events: List[RawEvent] = []
        self._signalled = False
        self._valid = True
        self._lock = threading.Lock()

    @property
    def is_valid(self) -> bool:
        """Whether the key is still registered."""
        with self._lock:
            return self._valid

    @property
    def owns_watch(self) -> bool:
        """Whether this key scheduled the observer watch it receives events from."""
        return self._watch is not None

    def signal(self, raw_event: RawEvent) -> None:
        """
        Record a raw event, queueing the key if it was armed.

        Called from the observer thread.

        Args:
            raw_event: The event to record
        """
        with self._lock:
            if not self._valid:
                return
            self._events.append(raw_event)
            if self._signalled:
                return
            self._signalled = True
        self._service._enqueue(self)

    def poll_events(self) -> List[RawEvent]:
        """
        Remove and return all pending raw events.

        Returns:
            Pending events in arrival order
        """
        with self._lock:
            events, self._events = self._events, []
            return events

    def reset(self) -> bool:
        """
        Re-arm the key after draining.

        If events arrived since the last poll the key is queued again
        immediately.

        Returns:
            True if the key is still valid
        """
        with self._lock:
            if not self._valid:
                return False
            if not self._events:
                self._signalled = False
                return True
        self._service._enqueue(self)
        return True

    def cancel(self) -> None:
        """Cancel the registration. Pending events are discarded."""
        with self._lock:
            if not self._valid:
                return
            self._valid = False
            self._events.clear()
        self._service._release(self)

    def covers(self, real_path: str, recursive: bool) -> bool:
        """Whether this key's observer watch sees changes inside real_path."""
        if real_path == self._real_path:
            return True
        return recursive and os.path.commonpath([self._real_path, real_path]) == self._real_path

    def __repr__(self) -> str:
        return f"WatchKey({self.directory_str!r}, valid={self._valid})"


class WatchService:
    """
    Registers directories with a watchdog observer and hands out signalled keys.

    The observer thread starts on construction and stops on close().
    """

    def __init__(self, config: Optional[WatcherConfig] = None):
        """
        Initialize the watch service.

        Args:
            config: Watcher configuration (selects native or polling observer,
                and whether scheduled watches are recursive)
        """
        self.config = config or WatcherConfig()
        if self.config.use_polling:
            self._observer = PollingObserver(timeout=self.config.polling_interval_s)
        else:
            self._observer = Observer()
        self._ready: "queue.Queue[Optional[WatchKey]]" = queue.Queue()
        self._keys: Dict[str, WatchKey] = {}
        self._lock = threading.Lock()
        self._closed = False
        self._observer.start()

    def register(self, directory: Path) -> WatchKey:
        """
        Register a directory for create/delete/modify notifications.

        A directory already inside a scheduled recursive watch reuses it;
        otherwise a new observer watch is scheduled at the directory.

        Args:
            directory: Absolute path of the directory

        Returns:
            The key for the new registration

        Raises:
            WatchServiceClosedError: If the service is closed
            OSError: If the directory cannot be watched (e.g. it vanished)
        """
        with self._lock:
            if self._closed:
                raise WatchServiceClosedError("Watch service is closed")

            key = WatchKey(self, directory)
            if self._owner_for(key._real_path) is None:
                key._watch = self._observer.schedule(
                    RoutingEventHandler(self._route),
                    key.directory_str,
                    recursive=self.config.recursive,
                )
                logger.debug(
                    f"Scheduled observer watch at {directory} (recursive={self.config.recursive})"
                )
            elif not os.path.isdir(key.directory_str):
                raise FileNotFoundError(errno.ENOENT, "Directory not found", key.directory_str)

            previous = self._keys.get(key.directory_str)
            if previous is not None:
                with previous._lock:
                    previous._valid = False
            self._keys[key.directory_str] = key
            return key

    def take(self) -> WatchKey:
        """
        Block until a key is signalled and return it.

        Returns:
            A signalled, valid key

        Raises:
            WatchServiceClosedError: If the service is or becomes closed
        """
        while True:
            if self._closed:
                raise WatchServiceClosedError("Watch service is closed")
            key = self._ready.get()
            if key is None:
                raise WatchServiceClosedError("Watch service is closed")
            if key.is_valid:
                return key

    def close(self) -> None:
        """Close the service, waking any blocked take() and stopping the observer."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._keys.clear()

        self._ready.put(None)
        self._observer.stop()
        if self._observer.is_alive():
            self._observer.join(timeout=self.config.stop_timeout_s)

    def _owner_for(self, real_path: str) -> Optional[WatchKey]:
        for key in self._keys.values():
            if key.owns_watch and key.covers(real_path, self.config.recursive):
                return key
        return None

    def _route(self, kind: str, path: str) -> None:
        """Deliver an observer event to the key of the entry's parent directory."""
        parent, name = os.path.split(path)
        if not name:
            return
        with self._lock:
            key = self._keys.get(parent)
        if key is not None:
            key.signal(RawEvent(kind=kind, name=name))

    def _enqueue(self, key: WatchKey) -> None:
        if not self._closed:
            self._ready.put(key)

    def _release(self, key: WatchKey) -> None:
        with self._lock:
            if self._closed:
                return
            if self._keys.get(key.directory_str) is key:
                del self._keys[key.directory_str]
            watch = key._watch
        if watch is None:
            return
        try:
            self._observer.unschedule(watch)
        except KeyError:
            logger.debug(f"Watch for {key.directory} was already removed")
        except OSError as e:
            logger.warning(f"Error cancelling watch for {key.directory}: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
