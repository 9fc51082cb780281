"""Fixed-interval polling of the backend indexing status."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from .backend import FeedBackend
from .config import PollerConfig
from .errors import FetchFailed
from .progress import ProgressIndicator

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class PollResult:
    """How a polling run ended."""
    attempts: int
    last_count: int
    reached: bool           # threshold met
    cancelled: bool = False  # owner went away mid-run

    @property
    def exhausted(self) -> bool:
        """Attempt cap hit without meeting the threshold. A normal outcome."""
        return not self.reached and not self.cancelled


class StatusPoller:
    """
    Polls ``GET /status/{viewer}`` until enough events exist or attempts run out.

    Each attempt sleeps for the fixed interval first, then asks for status.
    A failed status request still uses up an attempt and counts as a zero
    reading; the loop carries on. After every suspension the owner's
    ``is_live`` callback is consulted and the run stops silently if the
    owner is gone.
    """

    def __init__(
        self,
        backend: FeedBackend,
        config: PollerConfig,
        sleep: Optional[Sleep] = None,
        progress: Optional[ProgressIndicator] = None,
    ):
        self.backend = backend
        self.config = config
        self.sleep = sleep or asyncio.sleep
        self.progress = progress or ProgressIndicator()

    async def run(
        self,
        viewer_id: int,
        is_live: Callable[[], bool],
        on_progress: Callable[[str], None],
    ) -> PollResult:
        threshold = self.config.threshold
        attempts = 0
        last_count = 0

        while True:
            await self.sleep(self.config.interval_seconds)
            if not is_live():
                return PollResult(attempts, last_count, reached=False, cancelled=True)

            try:
                status = await self.backend.fetch_status(viewer_id)
                reading = status.events
                last_count = reading
            except FetchFailed as e:
                logger.warning(f"Status check failed for {viewer_id}, treating as zero: {e}")
                reading = 0
            attempts += 1

            if not is_live():
                return PollResult(attempts, last_count, reached=False, cancelled=True)

            logger.info(f"Indexing status for {viewer_id}: {reading}/{threshold} (attempt {attempts}/{self.config.max_attempts})")
            on_progress(self.progress.describe(last_count, threshold))

            if reading >= threshold:
                return PollResult(attempts, last_count, reached=True)
            if attempts >= self.config.max_attempts:
                logger.info(f"Stopped polling {viewer_id} after {attempts} attempts")
                return PollResult(attempts, last_count, reached=False)
