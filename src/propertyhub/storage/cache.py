"""In-process lookaside cache for aggregated listing data.

This module provides the time-bounded memo the aggregation layer consults
before going to the store, enabling:
- One store round-trip per batch of missing keys instead of per key
- Reuse of owner/image/trace lookups across pages and searches
- Short-lived reuse of fully composed listing pages

Entries expire lazily: an expired entry is reported as a miss and is simply
overwritten on the next absorb. There is no background sweep.
"""

import logging
import threading
import time
from collections.abc import Callable, Hashable, Iterable, Mapping
from typing import Any, Generic, Protocol, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class CacheEntry(Generic[V]):
    """Cache entry with TTL support."""

    __slots__ = ("value", "inserted_at", "ttl")

    def __init__(self, value: V, inserted_at: float, ttl: float):
        self.value = value
        self.inserted_at = inserted_at
        self.ttl = ttl

    def is_valid(self, now: float) -> bool:
        """An entry is valid while strictly less than ``ttl`` seconds old."""
        return now - self.inserted_at < self.ttl


class LookasideCache(Protocol):
    """Narrow cache interface used by the aggregator.

    Implementations may be in-memory or backed by an external cache; the
    aggregator only relies on these two operations. Neither may raise.
    """

    def partition(self, keys: Iterable[Any]) -> tuple[dict[Any, Any], set[Any]]:
        """Split ``keys`` into cached values and keys that must be fetched."""
        ...

    def absorb(self, values: Mapping[Any, Any], ttl: float) -> None:
        """Store every value under its key, replacing any existing entry."""
        ...


class InMemoryLookasideCache:
    """Process-wide dict-backed lookaside cache.

    Each read or write of a single entry happens under a lock, so the cache
    is safe to share between worker threads as well as asyncio tasks. No
    lock is held across a fetch: two callers missing the same key will both
    fetch it and the last absorb wins.

    Example:
        cache = InMemoryLookasideCache()

        hits, misses = cache.partition(["owner|A", "owner|B"])
        fetched = await load(misses)
        cache.absorb(fetched, ttl=1800)
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """Initialize the cache.

        Args:
            clock: Source of the current time in seconds. Injected by tests.
        """
        self._entries: dict[Any, CacheEntry[Any]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._hits = 0
        self._misses = 0

    def partition(self, keys: Iterable[Any]) -> tuple[dict[Any, Any], set[Any]]:
        """Split keys into hits and misses.

        Args:
            keys: Keys to look up. Duplicates are collapsed.

        Returns:
            ``(hits, misses)``: a dict of key to cached value, and the set
            of keys that are absent or expired.
        """
        hits: dict[Any, Any] = {}
        misses: set[Any] = set()
        now = self._clock()

        with self._lock:
            for key in keys:
                if key in hits or key in misses:
                    continue
                entry = self._entries.get(key)
                if entry is not None and entry.is_valid(now):
                    hits[key] = entry.value
                else:
                    misses.add(key)
            self._hits += len(hits)
            self._misses += len(misses)

        if hits or misses:
            logger.debug(f"Cache partition: {len(hits)} hits, {len(misses)} misses")
        return hits, misses

    def absorb(self, values: Mapping[Any, Any], ttl: float) -> None:
        """Store fetched values, overwriting and re-timestamping old entries.

        Args:
            values: Mapping of key to value to cache.
            ttl: Time-to-live in seconds for every entry written.
        """
        if not values:
            return

        now = self._clock()
        with self._lock:
            for key, value in values.items():
                self._entries[key] = CacheEntry(value, now, ttl)

        logger.debug(f"Cached {len(values)} entries (TTL: {ttl}s)")

    def get_stats(self) -> dict:
        """Get cache statistics.

        Returns:
            Dict with entry counts and cumulative hit/miss counters
        """
        now = self._clock()
        with self._lock:
            total = len(self._entries)
            active = sum(1 for e in self._entries.values() if e.is_valid(now))
            hits, misses = self._hits, self._misses

        return {
            "total_entries": total,
            "active_entries": active,
            "expired_entries": total - active,
            "hits": hits,
            "misses": misses,
        }
