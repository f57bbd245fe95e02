"""Storage modules for the read-aggregation cache.

This package provides the lookaside cache and its key format so that
related-entity lookups and composed pages can be reused across requests.
"""

from .cache import CacheEntry, InMemoryLookasideCache, LookasideCache

__all__ = ["CacheEntry", "InMemoryLookasideCache", "LookasideCache"]
