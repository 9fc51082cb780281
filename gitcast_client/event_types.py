"""The one table of event types the client knows how to present and filter."""

from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class EventType:
    """Presentation and filtering attributes for one event type."""
    key: str          # wire value of Event.type
    alias: str        # short name accepted on the command line
    label: str        # filter toggle label
    icon: str
    badge: str        # badge variant name
    toggle: bool = True  # whether a filter toggle is offered


FALLBACK_ICON = "git-commit"
FALLBACK_BADGE = "outline"

EVENT_TYPES: List[EventType] = [
    EventType("PushEvent", "push", "Commits", "git-commit", "pushEvent"),
    EventType("PullRequestEvent", "pr", "PRs", "git-pull-request", "pullRequestEvent"),
    EventType("WatchEvent", "watch", "Stars", "star", "watchEvent"),
    EventType("DeleteEvent", "delete", "Deletes", "trash", "deleteEvent", toggle=False),
    EventType("CreateEvent", "create", "Branches", "git-branch", "createEvent"),
]

_BY_KEY: Dict[str, EventType] = {t.key: t for t in EVENT_TYPES}
_BY_ALIAS: Dict[str, EventType] = {t.alias: t for t in EVENT_TYPES}


def filter_keys() -> List[str]:
    """All filterable event-type keys, in table order."""
    return [t.key for t in EVENT_TYPES]


def toggles() -> List[EventType]:
    """Event types that get a filter toggle in the view."""
    return [t for t in EVENT_TYPES if t.toggle]


def resolve(name: str) -> EventType:
    """
    Resolve a wire key ("PushEvent") or alias ("push") to its table entry.

    Raises:
        KeyError: If the name is not a known event type.
    """
    entry = _BY_KEY.get(name) or _BY_ALIAS.get(name.lower())
    if entry is None:
        raise KeyError(name)
    return entry


def icon_for(key: str) -> str:
    entry = _BY_KEY.get(key)
    return entry.icon if entry else FALLBACK_ICON


def badge_for(key: str) -> str:
    entry = _BY_KEY.get(key)
    return entry.badge if entry else FALLBACK_BADGE
