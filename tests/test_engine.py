"""Tests for the cache-forwarding engine."""

import pytest

from tmdbproxy.common.errors import UpstreamUnavailable
from tmdbproxy.proxy.engine import CacheForwardingEngine


@pytest.fixture
def engine(store, upstream):
    return CacheForwardingEngine(store, upstream)


class TestCacheForwardingEngine:
    @pytest.mark.asyncio
    async def test_miss_fetches_and_caches(self, engine, store, upstream, clock, sample_movie):
        upstream.body = sample_movie

        status, body = await engine.handle("/movie/550")

        assert status == 200
        assert body == sample_movie
        assert upstream.calls == ["/movie/550"]
        entry = store.peek("/movie/550")
        assert entry.payload == sample_movie
        assert entry.expiry == clock.now + 600.0

    @pytest.mark.asyncio
    async def test_hit_within_ttl_skips_upstream(self, engine, upstream, clock):
        first = await engine.handle("/movie/550")
        clock.advance(1.0)
        second = await engine.handle("/movie/550")

        assert second == first
        assert upstream.call_count == 1

    @pytest.mark.asyncio
    async def test_expired_entry_triggers_one_refetch(self, engine, upstream, clock):
        await engine.handle("/movie/550")
        clock.advance(601.0)

        await engine.handle("/movie/550")
        await engine.handle("/movie/550")

        assert upstream.call_count == 2

    @pytest.mark.asyncio
    async def test_non_200_is_relayed_not_cached(self, engine, store, upstream):
        upstream.status = 404
        upstream.body = {"status_code": 34, "status_message": "The resource could not be found."}

        status, body = await engine.handle("/movie/0")

        assert status == 404
        assert body["status_code"] == 34
        assert "/movie/0" not in store

        await engine.handle("/movie/0")
        assert upstream.call_count == 2

    @pytest.mark.asyncio
    async def test_expired_entry_is_not_replaced_by_error(self, engine, store, upstream, clock):
        await engine.handle("/movie/550")
        clock.advance(601.0)
        upstream.status = 503
        upstream.body = {"status_message": "Service unavailable"}

        status, body = await engine.handle("/movie/550")

        assert status == 503
        assert body == {"status_message": "Service unavailable"}
        assert "/movie/550" not in store

    @pytest.mark.asyncio
    async def test_non_200_does_not_touch_other_entries(self, engine, store, upstream):
        await engine.handle("/movie/550")
        before = store.peek("/movie/550")
        upstream.status = 401
        upstream.body = {"status_code": 7, "status_message": "Invalid API key"}

        await engine.handle("/movie/551")

        assert store.peek("/movie/550") is before
        assert "/movie/551" not in store

    @pytest.mark.asyncio
    async def test_transport_failure_propagates_without_cache_write(self, engine, store, upstream):
        upstream.error = UpstreamUnavailable("timeout of 5000ms exceeded")

        with pytest.raises(UpstreamUnavailable):
            await engine.handle("/tv/1399")

        assert "/tv/1399" not in store
        assert upstream.call_count == 1
