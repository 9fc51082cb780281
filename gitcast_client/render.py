"""Plain-text rendering of the feed and repository views."""

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from . import event_types
from .feed_sync import SyncState, ViewState
from .filters import FilterEngine
from .models import Event, Repository
from .progress import ProgressIndicator

TITLE = "GitCast"
TAGLINE = "Merging GitHub into Farcaster"


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def time_ago(created_at: str, now: Optional[datetime] = None) -> str:
    """
    Describe an ISO8601 timestamp relative to ``now``.

    Args:
        created_at: Event timestamp, e.g. "2025-03-01T12:00:00Z".
        now: Reference time (aware). Defaults to the current UTC time.

    Returns:
        A phrase such as "5 minutes ago", or the raw value if unparseable.
    """
    then = _parse_timestamp(created_at)
    if then is None:
        return created_at
    now = now or datetime.now(timezone.utc)
    seconds = int((now - then).total_seconds())
    suffix = "ago"
    if seconds < 0:
        seconds = -seconds
        suffix = "from now"

    if seconds < 45:
        return "less than a minute " + suffix
    minutes = round(seconds / 60)
    if minutes < 45:
        amount, unit = minutes, "minute"
    elif minutes < 60 * 24:
        amount, unit = max(1, round(minutes / 60)), "hour"
    elif minutes < 60 * 24 * 30:
        amount, unit = round(minutes / (60 * 24)), "day"
    elif minutes < 60 * 24 * 365:
        amount, unit = round(minutes / (60 * 24 * 30)), "month"
    else:
        amount, unit = round(minutes / (60 * 24 * 365)), "year"
    plural = "" if amount == 1 else "s"
    return f"{amount} {unit}{plural} {suffix}"


def _header() -> List[str]:
    return [TITLE, TAGLINE, ""]


def render_event(event: Event, now: Optional[datetime] = None) -> str:
    lines = [
        f"{event.display_name} [{event_types.icon_for(event.type)}|{event_types.badge_for(event.type)}] {event.action}",
        f"  {event.repo.name}",
    ]
    if event.commit_message:
        lines.append(f"  > {event.commit_message.splitlines()[0]}")
    lines.append(f"  {time_ago(event.created_at, now)}  {event.event_url}")
    return "\n".join(lines)


def render_filters(filters: FilterEngine) -> str:
    flags = filters.state
    parts = []
    for entry in event_types.toggles():
        mark = "x" if flags.get(entry.key) else " "
        parts.append(f"[{mark}] {entry.label}")
    return "  ".join(parts)


def render_feed(
    view: ViewState,
    filters: FilterEngine,
    loader: Optional[ProgressIndicator] = None,
    now: Optional[datetime] = None,
) -> str:
    """Render the feed tab for the current view state."""
    lines = _header()

    if view.state in (SyncState.IDLE, SyncState.LOADING):
        lines.append(f"({(loader or ProgressIndicator()).frame()}) Loading...")
        return "\n".join(lines)

    if view.state is SyncState.INITIALIZING:
        lines.append("Indexing Your Data")
        lines.append("We're currently indexing your GitHub data. This process takes a minute to complete.")
        if view.progress:
            lines.append(view.progress)
        return "\n".join(lines)

    if view.state is SyncState.ERROR:
        lines.append("Error")
        lines.append(view.error or "An error occurred")
        return "\n".join(lines)

    if view.advisory:
        lines.append(f"! {view.advisory}")
    lines.append(render_filters(filters))
    lines.append("")

    events = filters.apply(view.snapshot.events if view.snapshot else ())
    if not events:
        if view.snapshot is not None and view.snapshot.is_empty:
            lines.append("Please come back in a minute to see your feed!")
        else:
            lines.append("No events match the selected filters.")
        return "\n".join(lines)

    lines.append("\n\n".join(render_event(event, now) for event in events))
    return "\n".join(lines)


def render_repository(repo: Repository) -> str:
    stats = f"  * {repo.stars_count:,}  forks {repo.forks_count:,}"
    if repo.farcaster_stars_count > 0:
        users = "user" if repo.farcaster_stars_count == 1 else "users"
        stats += f"  {repo.farcaster_stars_count} Farcaster {users}"
    return "\n".join([
        repo.name,
        f"  {repo.full_name}",
        f"  {repo.description or 'No description'}",
        stats,
        f"  {repo.html_url}",
    ])


def render_repositories(repositories: Sequence[Repository], loading: bool = False) -> str:
    lines = _header()
    if loading:
        lines.append("Loading repositories...")
        return "\n".join(lines)
    if not repositories:
        lines.append("No repositories.")
        return "\n".join(lines)
    lines.append("\n\n".join(render_repository(repo) for repo in repositories))
    return "\n".join(lines)
