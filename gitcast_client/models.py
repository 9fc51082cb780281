"""Data models for the activity feed and repository list."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class FeedRequest:
    """A single feed fetch, fixed for the lifetime of the request."""
    viewer_id: int
    limit: int


@dataclass(frozen=True)
class Actor:
    """GitHub account that produced an event."""
    login: str
    avatar_url: str

    @property
    def profile_url(self) -> str:
        return f"https://github.com/{self.login}"


@dataclass(frozen=True)
class RepoRef:
    """Repository an event happened in."""
    name: str
    url: str


@dataclass(frozen=True)
class FarcasterProfile:
    """Host-platform profile linked to the GitHub actor."""
    username: str = ""
    display_name: str = ""
    pfp_url: str = ""


@dataclass(frozen=True)
class Event:
    """Represents one activity event in the feed."""
    id: str
    type: str            # e.g. "PushEvent"; see event_types for the known set
    created_at: str      # ISO8601 UTC
    actor: Actor
    repo: RepoRef
    action: str
    event_url: str
    commit_message: Optional[str] = None
    farcaster: Optional[FarcasterProfile] = None

    @property
    def display_name(self) -> str:
        if self.farcaster and self.farcaster.display_name:
            return self.farcaster.display_name
        return self.actor.login

    @property
    def avatar_url(self) -> str:
        if self.farcaster and self.farcaster.pfp_url:
            return self.farcaster.pfp_url
        return self.actor.avatar_url

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        actor = data.get("actor") or {}
        repo = data.get("repo") or {}
        farcaster = data.get("farcaster")
        return cls(
            id=str(data["id"]),
            type=str(data.get("type", "")),
            created_at=str(data.get("created_at", "")),
            actor=Actor(
                login=str(actor.get("login", "")),
                avatar_url=str(actor.get("avatar_url", "")),
            ),
            repo=RepoRef(
                name=str(repo.get("name", "")),
                url=str(repo.get("url", "")),
            ),
            action=str(data.get("action", "")),
            event_url=str(data.get("eventUrl", "")),
            commit_message=data.get("commitMessage") or None,
            farcaster=FarcasterProfile(
                username=farcaster.get("username") or "",
                display_name=farcaster.get("display_name") or "",
                pfp_url=farcaster.get("pfp_url") or "",
            ) if isinstance(farcaster, dict) else None,
        )


@dataclass(frozen=True)
class FeedSnapshot:
    """
    Ordered events plus cache metadata, exactly as the backend returned them.

    A snapshot is replaced wholesale by the next fetch, never merged.
    ``from_cache`` and ``cache_age`` are carried through untouched.
    """
    events: Tuple[Event, ...]
    from_cache: bool = False
    cache_age: float = 0

    @property
    def is_empty(self) -> bool:
        return not self.events

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeedSnapshot":
        events = []
        seen_ids = set()
        for raw in data.get("events") or []:
            event = Event.from_dict(raw)
            if event.id in seen_ids:
                raise ValueError(f"duplicate event id in feed: {event.id}")
            seen_ids.add(event.id)
            events.append(event)
        return cls(
            events=tuple(events),
            from_cache=bool(data.get("fromCache", False)),
            cache_age=data.get("cacheAge") or 0,
        )


@dataclass(frozen=True)
class IndexingStatus:
    """Backend indexing progress, only meaningful during a cold start."""
    events: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IndexingStatus":
        stats = data.get("stats") or {}
        return cls(events=int(stats.get("events") or 0))


@dataclass(frozen=True)
class Repository:
    """Represents a repository in the top-repositories list."""
    id: str
    name: str
    full_name: str
    url: str
    html_url: str
    stars_count: int
    forks_count: int
    farcaster_stars_count: int  # host-platform users who starred it
    last_updated: str
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Repository":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            full_name=str(data.get("full_name", "")),
            url=str(data.get("url", "")),
            html_url=str(data.get("html_url", "")),
            stars_count=int(data.get("stars_count") or 0),
            forks_count=int(data.get("forks_count") or 0),
            farcaster_stars_count=int(data.get("farcaster_stars_count") or 0),
            last_updated=str(data.get("last_updated", "")),
            description=data.get("description") or None,
        )
