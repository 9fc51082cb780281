"""HTTP implementation of the feed backend."""

import logging
from typing import Any, List, Optional

import httpx

from .backend import FeedBackend
from .config import ServerConfig
from .errors import FetchFailed, InitFailed
from .models import FeedRequest, FeedSnapshot, IndexingStatus, Repository

logger = logging.getLogger(__name__)


class HTTPFeedBackend(FeedBackend):
    """Client for the GitCast API over HTTP."""

    def __init__(self, config: ServerConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the HTTP backend.

        Args:
            config: Server configuration.
            transport: Optional httpx transport, used by tests to stub the network.
        """
        self.config = config
        self.client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "HTTPFeedBackend":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _get_json(self, path: str, failure: str, **params: Any) -> Any:
        logger.debug(f"GET {path} {params or ''}")
        try:
            response = await self.client.get(path, params=params or None)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"{failure}: HTTP {e.response.status_code} from {path}")
            raise FetchFailed(failure, status_code=e.response.status_code) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"{failure}: {e}")
            raise FetchFailed(failure) from e

    async def fetch_feed(self, request: FeedRequest) -> FeedSnapshot:
        failure = "Failed to fetch feed"
        data = await self._get_json(f"/feed/{request.viewer_id}", failure, limit=request.limit)
        try:
            return FeedSnapshot.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(f"Malformed feed response for {request.viewer_id}: {e}")
            raise FetchFailed(failure) from e

    async def init_feed(self, viewer_id: int) -> None:
        path = f"/init/{viewer_id}"
        logger.debug(f"POST {path}")
        try:
            response = await self.client.post(path)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise InitFailed(f"Failed to start indexing for {viewer_id}: {e}") from e

    async def fetch_status(self, viewer_id: int) -> IndexingStatus:
        failure = "Failed to fetch indexing status"
        data = await self._get_json(f"/status/{viewer_id}", failure)
        try:
            return IndexingStatus.from_dict(data)
        except (TypeError, ValueError, AttributeError) as e:
            raise FetchFailed(failure) from e

    async def fetch_top_repos(self) -> List[Repository]:
        failure = "Failed to fetch repositories"
        data = await self._get_json("/top-repos", failure)
        try:
            return [Repository.from_dict(raw) for raw in data.get("repositories") or []]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise FetchFailed(failure) from e
