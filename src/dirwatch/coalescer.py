"""Grouping of drained raw events into one Event per path."""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from watchdog.events import EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED

from .config import WatcherConfig
from .models import Action, Event, RawEvent

logger = logging.getLogger(__name__)

KIND_TO_ACTION: Dict[str, Action] = {
    EVENT_TYPE_CREATED: Action.CREATE,
    EVENT_TYPE_DELETED: Action.DELETE,
    EVENT_TYPE_MODIFIED: Action.MODIFY,
}


def map_kind(kind: str) -> Optional[Action]:
    """
    Map a raw event kind to an Action.

    Args:
        kind: Raw event type string

    Returns:
        The matching Action, or None for kinds outside create/delete/modify
    """
    return KIND_TO_ACTION.get(kind)


def coalesce(
    directory: Path,
    raw_events: Iterable[RawEvent],
    config: Optional[WatcherConfig] = None,
) -> List[Event]:
    """
    Coalesce raw events drained from one directory.

    Events are grouped by the path they resolve to; each group becomes one
    Event whose actions are the union of the group's mapped kinds. Groups
    keep the order in which their first event arrived. Unmapped kinds are
    dropped, as are groups left without actions and ignored paths.

    Args:
        directory: Registered directory the events were drained from
        raw_events: Drained raw events in arrival order
        config: Watcher configuration (for ignore patterns)

    Returns:
        List of coalesced events
    """
    config = config or WatcherConfig()
    grouped: Dict[Path, Set[Action]] = {}

    for raw_event in raw_events:
        path = directory / raw_event.name
        actions = grouped.setdefault(path, set())
        action = map_kind(raw_event.kind)
        if action is None:
            logger.debug(f"Dropping unmapped event kind {raw_event.kind!r} for {path}")
            continue
        actions.add(action)

    events = []
    for path, actions in grouped.items():
        if not actions or config.should_ignore(path):
            continue
        events.append(Event(path=path, actions=frozenset(actions)))
    return events
