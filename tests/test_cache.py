"""Tests for InMemoryLookasideCache and cache keys."""

from decimal import Decimal

from propertyhub.models.dto import PropertyFilter
from propertyhub.storage import InMemoryLookasideCache
from propertyhub.storage import keys as cache_keys

from .conftest import ManualClock


class TestPartition:
    """Test splitting keys into hits and misses."""

    def test_empty_cache_all_misses(self, cache: InMemoryLookasideCache):
        """Nothing cached yet."""
        hits, misses = cache.partition(["a", "b"])
        assert hits == {}
        assert misses == {"a", "b"}

    def test_absorb_then_partition_no_misses(self, cache: InMemoryLookasideCache):
        """Round-trip within TTL serves everything from the cache."""
        cache.absorb({"a": 1, "b": 2}, ttl=60)
        hits, misses = cache.partition(["a", "b"])
        assert hits == {"a": 1, "b": 2}
        assert misses == set()

    def test_mixed(self, cache: InMemoryLookasideCache):
        """Cached and uncached keys are separated."""
        cache.absorb({"a": 1}, ttl=60)
        hits, misses = cache.partition(["a", "b", "a"])
        assert hits == {"a": 1}
        assert misses == {"b"}

    def test_falsy_values_are_hits(self, cache: InMemoryLookasideCache):
        """A cached empty tuple is still a cached value."""
        cache.absorb({"a": ()}, ttl=60)
        hits, _ = cache.partition(["a"])
        assert hits == {"a": ()}


class TestExpiry:
    """Test lazy TTL expiry."""

    def test_hit_before_ttl(self, cache: InMemoryLookasideCache, clock: ManualClock):
        """Just under the TTL the entry is still valid."""
        cache.absorb({"a": 1}, ttl=60)
        clock.advance(59.9)
        hits, misses = cache.partition(["a"])
        assert "a" in hits and not misses

    def test_miss_at_ttl(self, cache: InMemoryLookasideCache, clock: ManualClock):
        """An entry exactly TTL seconds old is expired."""
        cache.absorb({"a": 1}, ttl=60)
        clock.advance(60)
        hits, misses = cache.partition(["a"])
        assert hits == {}
        assert misses == {"a"}

    def test_absorb_resets_timestamp(
        self, cache: InMemoryLookasideCache, clock: ManualClock
    ):
        """Refreshing an entry restarts its lifetime."""
        cache.absorb({"a": 1}, ttl=60)
        clock.advance(50)
        cache.absorb({"a": 2}, ttl=60)
        clock.advance(50)
        hits, _ = cache.partition(["a"])
        assert hits == {"a": 2}

    def test_per_entry_ttl(self, cache: InMemoryLookasideCache, clock: ManualClock):
        """Entries absorbed with different TTLs expire independently."""
        cache.absorb({"entity": 1}, ttl=1800)
        cache.absorb({"query": 2}, ttl=300)
        clock.advance(301)
        hits, misses = cache.partition(["entity", "query"])
        assert hits == {"entity": 1}
        assert misses == {"query"}


class TestAbsorb:
    """Test writes."""

    def test_last_writer_wins(self, cache: InMemoryLookasideCache):
        """A second absorb overwrites unconditionally."""
        cache.absorb({"a": "first"}, ttl=60)
        cache.absorb({"a": "second"}, ttl=60)
        hits, _ = cache.partition(["a"])
        assert hits["a"] == "second"

    def test_empty_absorb_is_noop(self, cache: InMemoryLookasideCache):
        """Nothing to write, nothing written."""
        cache.absorb({}, ttl=60)
        assert cache.get_stats()["total_entries"] == 0


class TestStats:
    """Test cache statistics."""

    def test_counts(self, cache: InMemoryLookasideCache, clock: ManualClock):
        """Active and expired entries plus hit/miss counters."""
        cache.absorb({"short": 1}, ttl=10)
        cache.absorb({"long": 2}, ttl=100)
        cache.partition(["short", "missing"])
        clock.advance(20)

        stats = cache.get_stats()
        assert stats["total_entries"] == 2
        assert stats["active_entries"] == 1
        assert stats["expired_entries"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1

    def test_default_clock(self):
        """The cache works without an injected clock."""
        cache = InMemoryLookasideCache()
        cache.absorb({"a": 1}, ttl=60)
        assert cache.partition(["a"]) == ({"a": 1}, set())


class TestQueryKeys:
    """Test composite query key format."""

    def test_identical_queries_identical_keys(self):
        """Same parameters, same key."""
        first = cache_keys.search_query_key(PropertyFilter(name="Casa"), 1, 20)
        second = cache_keys.search_query_key(PropertyFilter(name="Casa"), 1, 20)
        assert first == second

    def test_case_and_whitespace_normalized(self):
        """Text filters ignore case and surrounding whitespace."""
        assert cache_keys.search_query_key(
            PropertyFilter(name="  CASA "), 1, 20
        ) == cache_keys.search_query_key(PropertyFilter(name="casa"), 1, 20)

    def test_sharp_s_not_folded(self):
        """The German sharp s is lower-cased, not expanded to "ss"."""
        sharp = cache_keys.search_query_key(PropertyFilter(name="Straße"), 1, 20)
        upper = cache_keys.search_query_key(PropertyFilter(name="STRASSE"), 1, 20)
        assert sharp != upper
        assert sharp == cache_keys.search_query_key(PropertyFilter(name="STRAßE"), 1, 20)

    def test_absent_differs_from_empty(self):
        """No filter and an empty filter never share a key."""
        absent = cache_keys.search_query_key(PropertyFilter(), 1, 20)
        empty = cache_keys.search_query_key(PropertyFilter(name=""), 1, 20)
        assert absent != empty

    def test_price_normalized(self):
        """Equal prices written differently share a key."""
        a = cache_keys.search_query_key(PropertyFilter(min_price=Decimal("100000")), 1, 20)
        b = cache_keys.search_query_key(PropertyFilter(min_price=Decimal("100000.00")), 1, 20)
        assert a == b

    def test_min_and_max_not_interchangeable(self):
        """A bound in the min slot differs from the same bound in the max slot."""
        a = cache_keys.search_query_key(PropertyFilter(min_price=Decimal(5)), 1, 20)
        b = cache_keys.search_query_key(PropertyFilter(max_price=Decimal(5)), 1, 20)
        assert a != b

    def test_separator_in_text_is_escaped(self):
        """User text cannot forge another field."""
        forged = cache_keys.search_query_key(
            PropertyFilter(name="a|address=b"), 1, 20
        )
        honest = cache_keys.search_query_key(
            PropertyFilter(name="a", address="b"), 1, 20
        )
        assert forged != honest

    def test_paging_in_key(self):
        """Page and page size are part of the key."""
        assert cache_keys.page_query_key(1, 20) != cache_keys.page_query_key(2, 20)
        assert cache_keys.page_query_key(1, 20) != cache_keys.page_query_key(1, 10)

    def test_page_and_search_keys_differ(self):
        """An unfiltered search is not the plain page listing."""
        assert cache_keys.page_query_key(1, 20) != cache_keys.search_query_key(
            PropertyFilter(), 1, 20
        )

    def test_entity_key_round_trip(self):
        """Namespacing is reversible."""
        key = cache_keys.entity_key(cache_keys.OWNER_NAMESPACE, "OWNER001")
        assert key == "owner|OWNER001"
        assert cache_keys.strip_namespace(cache_keys.OWNER_NAMESPACE, key) == "OWNER001"
