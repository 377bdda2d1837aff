"""Pytest configuration and fixtures."""

from typing import Any

import pytest

from tmdbproxy.common.settings import Settings
from tmdbproxy.proxy.cache import CacheStore
from tmdbproxy.proxy.upstream import UpstreamResponse


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """Upstream fetcher returning canned responses and counting calls."""

    def __init__(self, status: int = 200, body: Any = None):
        self.status = status
        self.body = body if body is not None else {"id": 550, "title": "Fight Club"}
        self.calls: list[str] = []
        self.error: Exception | None = None

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def fetch(self, path: str) -> UpstreamResponse:
        self.calls.append(path)
        if self.error is not None:
            raise self.error
        return UpstreamResponse(status=self.status, body=self.body)


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        tmdb_api_key="test-key",
        upstream_base_url="https://api.themoviedb.org/3",
        cache_ttl_seconds=600.0,
        cache_max_entries=1000,
        cache_sweep_interval=300.0,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> CacheStore:
    return CacheStore(ttl_seconds=600.0, max_entries=1000, clock=clock)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def sample_movie() -> dict[str, Any]:
    """Sample TMDB movie payload."""
    return {
        "id": 550,
        "title": "Fight Club",
        "original_language": "en",
        "release_date": "1999-10-15",
        "genres": [{"id": 18, "name": "Drama"}],
    }
