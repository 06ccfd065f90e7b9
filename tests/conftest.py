"""Pytest configuration and fixtures."""

from collections.abc import Callable

import httpx
import pytest


@pytest.fixture
def test_settings():
    """Provide test settings."""
    from cloudsec_metrics.config import Settings

    return Settings(
        collect_period=60,
        prisma_api_url="https://prisma.test",
        prisma_api_key="test-access-key",
        prisma_api_password="test-secret-key",
        graphite_host="graphite.test",
        graphite_prefix="cloudsec",
        scc_org_id="123456789",
        scc_sources_regex="^Security",
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Provide a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def mock_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an HTTP client that answers through the given handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory
