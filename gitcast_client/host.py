"""Host platform collaborator: identity context, readiness and navigation."""

import logging
import webbrowser
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostUser:
    fid: Optional[int] = None


@dataclass(frozen=True)
class HostContext:
    """Context the host hands out; ``user`` may be missing entirely."""
    user: Optional[HostUser] = None


class HostPlatform(ABC):
    """Abstract base class for the platform hosting the client."""

    @abstractmethod
    async def get_context(self) -> Optional[HostContext]:
        """Resolve the host context. May raise if the host is unreachable."""
        pass

    @abstractmethod
    def ready(self) -> None:
        """Tell the host the first context attempt has finished."""
        pass

    @abstractmethod
    def open_url(self, url: str) -> None:
        pass


class StaticHost(HostPlatform):
    """Host for running outside a frame: the context is fixed at construction."""

    def __init__(self, viewer_id: Optional[int] = None, open_browser: bool = True):
        self.viewer_id = viewer_id
        self.open_browser = open_browser
        self.is_ready = False

    async def get_context(self) -> Optional[HostContext]:
        if self.viewer_id is None:
            return None
        return HostContext(user=HostUser(fid=self.viewer_id))

    def ready(self) -> None:
        self.is_ready = True
        logger.debug("Host signalled ready")

    def open_url(self, url: str) -> None:
        logger.info(f"Opening {url}")
        if self.open_browser:
            webbrowser.open(url)


def follow_link(host: HostPlatform, context: Optional[HostContext], url: str) -> Optional[str]:
    """
    Navigate to ``url``.

    Inside a host context the host performs the navigation and None is
    returned. Without one, the URL is handed back so the caller can show
    it as a plain link.
    """
    if context is not None:
        host.open_url(url)
        return None
    return url
