"""Abstract feed backend interface."""

from abc import ABC, abstractmethod
from typing import List

from .models import FeedRequest, FeedSnapshot, IndexingStatus, Repository


class FeedBackend(ABC):
    """Abstract base class for the feed service."""

    @abstractmethod
    async def fetch_feed(self, request: FeedRequest) -> FeedSnapshot:
        """
        Fetch the precomputed feed for a viewer.

        Args:
            request: Viewer id and event limit.

        Returns:
            The snapshot, possibly with no events (cold start).

        Raises:
            FetchFailed: On network error or non-success status.
        """
        pass

    @abstractmethod
    async def init_feed(self, viewer_id: int) -> None:
        """
        Ask the backend to start indexing a viewer.

        Raises:
            InitFailed: If the request could not be delivered.
        """
        pass

    @abstractmethod
    async def fetch_status(self, viewer_id: int) -> IndexingStatus:
        """
        Fetch indexing progress for a viewer.

        Raises:
            FetchFailed: On network error or non-success status.
        """
        pass

    @abstractmethod
    async def fetch_top_repos(self) -> List[Repository]:
        """
        Fetch the ranked repository list.

        Raises:
            FetchFailed: On network error or non-success status.
        """
        pass
