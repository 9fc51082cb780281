"""Configuration management."""

import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_SERVER_URL = "https://api.gitcast.dev"
DEFAULT_VIEWER_ID = 6023


@dataclass
class ServerConfig:
    """Backend service configuration."""
    base_url: str
    feed_limit: int = 100
    timeout_seconds: float = 10.0


@dataclass
class IdentityConfig:
    """Viewer identity configuration."""
    default_viewer_id: int = DEFAULT_VIEWER_ID
    viewer_id: Optional[int] = None  # what the host context would report, if anything


@dataclass
class PollerConfig:
    """Cold-start status polling configuration."""
    threshold: int = 20      # stop once the backend reports this many events
    max_attempts: int = 30
    interval_ms: int = 2000

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000.0


@dataclass
class AppConfig:
    """Complete application configuration."""
    server: ServerConfig
    identity: IdentityConfig
    poller: PollerConfig


def _parse_int_env(key: str, default: Optional[int], errors: List[str]) -> Optional[int]:
    """Parse an integer environment variable, recording bad values in ``errors``."""
    value = os.getenv(key, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        errors.append(f"{key}={value!r} is not an integer")
        return default


def _parse_float_env(key: str, default: float, errors: List[str]) -> float:
    value = os.getenv(key, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        errors.append(f"{key}={value!r} is not a number")
        return default


def load_config() -> AppConfig:
    """
    Load configuration from environment variables.

    Raises:
        ValueError: If a configuration value is malformed or out of range.
    """
    errors: List[str] = []

    # Server
    base_url = os.getenv("GITCAST_SERVER_URL", DEFAULT_SERVER_URL).strip().rstrip("/")
    feed_limit = _parse_int_env("GITCAST_FEED_LIMIT", 100, errors)
    timeout_seconds = _parse_float_env("GITCAST_HTTP_TIMEOUT", 10.0, errors)

    # Identity
    default_viewer_id = _parse_int_env("GITCAST_DEFAULT_FID", DEFAULT_VIEWER_ID, errors)
    viewer_id = _parse_int_env("GITCAST_FID", None, errors)

    # Poller
    threshold = _parse_int_env("GITCAST_POLL_THRESHOLD", 20, errors)
    max_attempts = _parse_int_env("GITCAST_POLL_MAX_ATTEMPTS", 30, errors)
    interval_ms = _parse_int_env("GITCAST_POLL_INTERVAL_MS", 2000, errors)

    if not base_url:
        errors.append("GITCAST_SERVER_URL must not be empty")
    for key, value in (
        ("GITCAST_FEED_LIMIT", feed_limit),
        ("GITCAST_POLL_THRESHOLD", threshold),
        ("GITCAST_POLL_MAX_ATTEMPTS", max_attempts),
        ("GITCAST_POLL_INTERVAL_MS", interval_ms),
    ):
        if value is not None and value < 1:
            errors.append(f"{key} must be >= 1")
    if timeout_seconds <= 0:
        errors.append("GITCAST_HTTP_TIMEOUT must be positive")

    if errors:
        raise ValueError(
            f"Invalid configuration: {'; '.join(errors)}"
        )

    return AppConfig(
        server=ServerConfig(
            base_url=base_url,
            feed_limit=feed_limit,
            timeout_seconds=timeout_seconds,
        ),
        identity=IdentityConfig(
            default_viewer_id=default_viewer_id,
            viewer_id=viewer_id,
        ),
        poller=PollerConfig(
            threshold=threshold,
            max_attempts=max_attempts,
            interval_ms=interval_ms,
        ),
    )
