"""Caching proxy pipeline: routing, cache, upstream client and sweeper."""

from tmdbproxy.proxy.cache import CacheEntry, CacheStats, CacheStore
from tmdbproxy.proxy.engine import CacheForwardingEngine
from tmdbproxy.proxy.routing import normalize_path
from tmdbproxy.proxy.sweeper import CacheSweeper
from tmdbproxy.proxy.upstream import UpstreamClient, UpstreamResponse

__all__ = [
    "CacheEntry",
    "CacheStats",
    "CacheStore",
    "CacheForwardingEngine",
    "CacheSweeper",
    "UpstreamClient",
    "UpstreamResponse",
    "normalize_path",
]
