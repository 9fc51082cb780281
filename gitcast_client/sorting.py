"""Repository ordering."""

from enum import Enum
from typing import List, Sequence

from .models import Repository


class SortMode(str, Enum):
    NONE = "none"
    STARS = "stars"
    FARCASTER = "farcaster"


def sort_repositories(repositories: Sequence[Repository], mode: SortMode) -> List[Repository]:
    """
    Return a new list of ``repositories`` ordered for ``mode``.

    ``sorted`` is stable, so repositories with equal counts keep their
    source order. The input sequence is never modified.
    """
    mode = SortMode(mode)
    if mode is SortMode.STARS:
        return sorted(repositories, key=lambda r: r.stars_count, reverse=True)
    if mode is SortMode.FARCASTER:
        return sorted(repositories, key=lambda r: r.farcaster_stars_count, reverse=True)
    return list(repositories)
