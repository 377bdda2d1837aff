"""Cache-forwarding engine: serve from cache or fetch and populate."""

from typing import Any

from tmdbproxy.common.logging import get_logger
from tmdbproxy.common.metrics import record_cache_lookup
from tmdbproxy.proxy.cache import CacheStore
from tmdbproxy.proxy.upstream import Fetcher

logger = get_logger(__name__)


class CacheForwardingEngine:
    """Read-through cache in front of an upstream fetcher."""

    def __init__(self, store: CacheStore, upstream: Fetcher):
        self._store = store
        self._upstream = upstream

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def upstream(self) -> Fetcher:
        return self._upstream

    async def handle(self, normalized_path: str) -> tuple[int, Any]:
        """
        Return the response for a normalized path.

        Fresh cache entries are returned without I/O. Otherwise the path is
        fetched once from upstream; a 200 is stored and any status is
        returned as-is.

        Raises:
            UpstreamUnavailable: On transport failure (nothing is cached)
        """
        entry = self._store.get_fresh(normalized_path)
        if entry is not None:
            record_cache_lookup(hit=True)
            logger.info("Cache hit", path=normalized_path)
            return entry.status, entry.payload

        record_cache_lookup(hit=False)
        response = await self._upstream.fetch(normalized_path)

        if response.status == 200:
            self._store.put(normalized_path, response.body, response.status)

        return response.status, response.body
