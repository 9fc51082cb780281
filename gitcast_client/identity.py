"""Viewer identity resolution against the host platform."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .errors import IdentityUnavailable
from .host import HostContext, HostPlatform

logger = logging.getLogger(__name__)

IDENTITY_ADVISORY = "Failed to load Farcaster SDK. Using default FID."


@dataclass(frozen=True)
class ResolvedIdentity:
    """Outcome of the one identity attempt made per mount."""
    viewer_id: int
    context: Optional[HostContext] = None
    error: Optional[IdentityUnavailable] = None  # set when the host could not be reached

    @property
    def advisory(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    @property
    def is_default(self) -> bool:
        return self.context is None or self.context.user is None or self.context.user.fid is None


class IdentityResolver:
    """
    Resolves the viewer id once, falling back to ``default_viewer_id``.

    ``ready`` is set when the attempt finishes, whether it succeeded or not,
    and gates every feed fetch.
    """

    def __init__(self, host: HostPlatform, default_viewer_id: int):
        self.host = host
        self.default_viewer_id = default_viewer_id
        self.ready = asyncio.Event()
        self._result: Optional[ResolvedIdentity] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def result(self) -> Optional[ResolvedIdentity]:
        return self._result

    async def resolve(self) -> ResolvedIdentity:
        """Run the attempt on first call; later calls share its result."""
        if self._task is None:
            self._task = asyncio.ensure_future(self._attempt())
        return await asyncio.shield(self._task)

    async def wait_ready(self) -> ResolvedIdentity:
        await self.ready.wait()
        return self._result

    async def _attempt(self) -> ResolvedIdentity:
        context: Optional[HostContext] = None
        error: Optional[IdentityUnavailable] = None
        try:
            context = await self.host.get_context()
        except Exception as e:
            logger.error(f"Error loading host context: {e}")
            error = IdentityUnavailable(IDENTITY_ADVISORY)

        fid = context.user.fid if context is not None and context.user is not None else None
        viewer_id = fid or self.default_viewer_id
        self._result = ResolvedIdentity(viewer_id=viewer_id, context=context, error=error)

        try:
            self.host.ready()
        except Exception as e:
            logger.warning(f"Host ready() failed: {e}")
        self.ready.set()

        logger.info(
            f"Resolved viewer {viewer_id}"
            + (" (default)" if self._result.is_default else "")
        )
        return self._result
