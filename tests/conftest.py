"""Shared fixtures for dirwatch tests."""

import threading
import time
from pathlib import Path
from typing import Callable, List

import pytest

from dirwatch.exceptions import WatchServiceClosedError
from dirwatch.models import Event


class EventRecorder:
    """Thread-safe callback that records events."""

    def __init__(self):
        self._events: List[Event] = []
        self._lock = threading.Lock()

    def __call__(self, event: Event) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[Event]:
        with self._lock:
            return list(self._events)

    def for_path(self, path: Path) -> List[Event]:
        return [e for e in self.events if e.path == path]


def _wait_for(predicate: Callable[[], bool], timeout: float = 3.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def wait_for():
    return _wait_for


class ScriptedKey:
    def __init__(self, directory: Path):
        self.directory = directory
        self.pending = []
        self.cancelled = False
        self.resets = 0

    @property
    def is_valid(self) -> bool:
        return not self.cancelled

    def poll_events(self):
        events, self.pending = self.pending, []
        return events

    def reset(self) -> bool:
        self.resets += 1
        return not self.cancelled

    def cancel(self) -> None:
        self.cancelled = True


class ScriptedService:
    """
    Watch service that replays a fixed script of signalled keys.

    Each script step is (directory, raw_events) or (directory, raw_events,
    setup); setup runs before the key is handed out so the filesystem can be
    changed to match the events. When the script is exhausted on_exhausted
    is called and the service reports itself closed. Directories in failing
    raise the mapped exception from register().
    """

    def __init__(self, script=None, failing=None):
        self.script = list(script or [])
        self.failing = dict(failing or {})
        self.keys = {}
        self.registered = []
        self.closed = False
        self.on_exhausted = None

    def register(self, directory: Path) -> ScriptedKey:
        if not directory.is_dir():
            raise FileNotFoundError(directory)
        if directory in self.failing:
            raise self.failing[directory]
        key = ScriptedKey(directory)
        self.keys[directory] = key
        self.registered.append(directory)
        return key

    def take(self) -> ScriptedKey:
        if not self.script:
            if self.on_exhausted is not None:
                self.on_exhausted()
            raise WatchServiceClosedError("script exhausted")
        step = self.script.pop(0)
        directory, raw_events = step[0], step[1]
        if len(step) > 2:
            step[2]()
        key = self.keys[directory]
        key.pending = list(raw_events)
        return key

    def close(self) -> None:
        self.closed = True
