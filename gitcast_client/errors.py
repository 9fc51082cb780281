"""Error types surfaced by the feed client."""

from typing import Optional


class GitcastError(Exception):
    """Base class for feed client errors. ``str(err)`` is the display message."""


class IdentityUnavailable(GitcastError):
    """The host platform could not supply a viewer identity. Never fatal."""


class FetchFailed(GitcastError):
    """A feed, status or repository request failed (network error or non-2xx)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class InitFailed(GitcastError):
    """The best-effort indexing trigger failed. Logged, never fatal."""
