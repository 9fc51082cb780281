"""Top repositories list."""

import logging
from typing import List

from .backend import FeedBackend
from .errors import FetchFailed
from .models import Repository
from .sorting import SortMode, sort_repositories

logger = logging.getLogger(__name__)


class TopRepositories:
    """
    Loads the ranked repository list once and serves it in the chosen order.

    A failed load is logged and leaves the list empty; it never touches
    the feed.
    """

    def __init__(self, backend: FeedBackend):
        self.backend = backend
        self.repositories: List[Repository] = []
        self.loading = False
        self.loaded = False
        self.sort_mode = SortMode.NONE

    async def load(self) -> List[Repository]:
        self.loading = True
        try:
            self.repositories = await self.backend.fetch_top_repos()
            logger.info(f"Loaded {len(self.repositories)} repositories")
        except FetchFailed as e:
            logger.error(f"Error fetching repositories: {e}")
            self.repositories = []
        finally:
            self.loading = False
            self.loaded = True
        return self.repositories

    def select(self, mode: SortMode) -> None:
        self.sort_mode = SortMode(mode)

    def ordered(self) -> List[Repository]:
        return sort_repositories(self.repositories, self.sort_mode)
