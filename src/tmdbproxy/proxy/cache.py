"""In-memory response cache with TTL and size-bounded eviction."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from tmdbproxy.common.metrics import record_evictions, update_cache_entries


@dataclass(frozen=True)
class CacheEntry:
    """Cached upstream response for one normalized path."""

    key: str
    payload: Any
    status: int
    expiry: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expiry

    def is_expired(self, now: float) -> bool:
        # Reads treat the expiry instant as stale; the sweep only drops entries past it.
        return now > self.expiry


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache counters."""

    entries: int
    hits: int
    misses: int
    expired: int
    evicted: int

    def as_dict(self) -> dict[str, int]:
        return {
            "entries": self.entries,
            "hits": self.hits,
            "misses": self.misses,
            "expired": self.expired,
            "evicted": self.evicted,
        }


class CacheStore:
    """
    Thread-safe store of upstream responses keyed by normalized path.

    Entries are kept in insertion order; an overwrite moves the key to the
    newest position. Every public method runs under a single lock and never
    performs I/O while holding it.
    """

    def __init__(
        self,
        ttl_seconds: float = 600.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the store.

        Args:
            ttl_seconds: Freshness window for new entries
            max_entries: Size bound enforced by sweep()
            clock: Returns the current epoch time in seconds
        """
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._expired = 0
        self._evicted = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def keys(self) -> list[str]:
        """Keys in insertion order, oldest first."""
        with self._lock:
            return list(self._entries)

    def peek(self, key: str) -> CacheEntry | None:
        """Return the entry for key without expiry checks or stats."""
        with self._lock:
            return self._entries.get(key)

    def get_fresh(self, key: str) -> CacheEntry | None:
        """
        Return the entry for key if it has not expired.

        An expired entry is removed in the same critical section, so a
        concurrent put() for the key is never lost to a stale delete.
        """
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if not entry.is_fresh(now):
                del self._entries[key]
                self._expired += 1
                self._misses += 1
                update_cache_entries(len(self._entries))
                record_evictions("expired", 1)
                return None

            self._hits += 1
            return entry

    def put(self, key: str, payload: Any, status: int = 200) -> CacheEntry:
        """
        Store a successful response, replacing any previous entry.

        Raises:
            ValueError: If status is not 200
        """
        if status != 200:
            raise ValueError(f"Only 200 responses are cacheable, got {status}")

        with self._lock:
            entry = CacheEntry(
                key=key,
                payload=payload,
                status=status,
                expiry=self._clock() + self._ttl_seconds,
            )
            self._entries.pop(key, None)
            self._entries[key] = entry
            update_cache_entries(len(self._entries))
            return entry

    def sweep(self) -> int:
        """
        Evict expired entries, then the oldest ones above max_entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            stale = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in stale:
                del self._entries[key]

            overflow = 0
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)
                overflow += 1

            self._expired += len(stale)
            self._evicted += overflow
            update_cache_entries(len(self._entries))

        record_evictions("expired", len(stale))
        record_evictions("overflow", overflow)
        return len(stale) + overflow

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            update_cache_entries(0)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                entries=len(self._entries),
                hits=self._hits,
                misses=self._misses,
                expired=self._expired,
                evicted=self._evicted,
            )
