import pytest

from gitcast_client.config import PollerConfig


@pytest.fixture
def poller_config() -> PollerConfig:
    return PollerConfig(threshold=5, max_attempts=4, interval_ms=2000)
