"""Data models for the dirwatch package."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import FrozenSet


class Action(Enum):
    """Types of actions done to a file or directory."""
    CREATE = "create"
    DELETE = "delete"
    MODIFY = "modify"
    INIT = "init"


class LoopState(Enum):
    """States of a watcher's event loop."""
    IDLE = "idle"
    INITIALIZING = "initializing"
    WAITING_FOR_EVENTS = "waiting_for_events"
    DEBOUNCING = "debouncing"
    DISPATCHING = "dispatching"
    CANCELLED = "cancelled"


STRUCTURAL_ACTIONS = frozenset({Action.CREATE, Action.DELETE})


@dataclass(frozen=True)
class Event:
    """
    Represents the actions that happened to one path within one coalescing window.

    Attributes:
        path: Absolute path of the file or directory the event happened to
        actions: Non-empty set of actions observed for the path
    """
    path: Path
    actions: FrozenSet[Action]

    def __post_init__(self):
        if not self.path.is_absolute():
            raise ValueError(f"path must be absolute: {self.path}")
        # Accept any iterable of actions but store an immutable set.
        object.__setattr__(self, "actions", frozenset(self.actions))
        if not self.actions:
            raise ValueError(f"actions must not be empty: {self.path}")

    @property
    def is_structural_change(self) -> bool:
        """Whether the event created or deleted a directory, evaluated now."""
        return self.path.is_dir() and not self.actions.isdisjoint(STRUCTURAL_ACTIONS)

    @property
    def is_initialization(self) -> bool:
        """Whether this is the synthetic event emitted when a watch starts."""
        return Action.INIT in self.actions

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "path": str(self.path),
            "actions": sorted(action.value for action in self.actions),
        }


@dataclass(frozen=True)
class RawEvent:
    """
    Low-level notification reported for an entry of a registered directory.

    Attributes:
        kind: Raw event type string (created, deleted, modified, or others)
        name: Entry name relative to the registered directory
    """
    kind: str
    name: str
