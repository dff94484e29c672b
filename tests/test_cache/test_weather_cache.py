"""Tests for the WeatherCache module."""

from __future__ import annotations

import threading

import pytest

from weathersdk.cache import WeatherCache, normalize_key


@pytest.fixture()
def cache(clock):
    """A three-entry cache with a 600 s TTL on the fake clock."""
    return WeatherCache(capacity=3, ttl_seconds=600, clock=clock)


# ------------------------------------------------------------------ #
# Core put/get behaviour
# ------------------------------------------------------------------ #


class TestPutGet:
    def test_put_then_get(self, cache: WeatherCache, record_factory) -> None:
        record = record_factory("Berlin")
        cache.put("berlin", record)
        assert cache.get_if_fresh("berlin") is record

    def test_miss_returns_none(self, cache: WeatherCache) -> None:
        assert cache.get_if_fresh("nowhere") is None

    def test_overwrite_replaces_value(self, cache: WeatherCache, record_factory) -> None:
        cache.put("berlin", record_factory("Berlin", temp=270.0))
        newer = record_factory("Berlin", temp=290.0)
        cache.put("berlin", newer)
        assert cache.get_if_fresh("berlin") is newer
        assert len(cache) == 1

    def test_remove(self, cache: WeatherCache, record_factory) -> None:
        cache.put("berlin", record_factory())
        cache.remove("berlin")
        assert cache.get_if_fresh("berlin") is None
        assert "berlin" not in cache

    def test_remove_missing_is_noop(self, cache: WeatherCache) -> None:
        cache.remove("nowhere")
        assert len(cache) == 0

    def test_clear(self, cache: WeatherCache, record_factory) -> None:
        cache.put("a", record_factory("A"))
        cache.put("b", record_factory("B"))
        cache.clear()
        assert len(cache) == 0
        assert cache.keys() == frozenset()
        # List still usable after clear
        cache.put("c", record_factory("C"))
        assert cache.keys() == {"c"}

    def test_keys_is_snapshot(self, cache: WeatherCache, record_factory) -> None:
        cache.put("a", record_factory("A"))
        keys = cache.keys()
        cache.put("b", record_factory("B"))
        assert keys == {"a"}

    def test_invalid_capacity(self) -> None:
        with pytest.raises(ValueError):
            WeatherCache(capacity=0, ttl_seconds=10)

    def test_stats(self, cache: WeatherCache, record_factory) -> None:
        cache.put("a", record_factory("A"))
        assert cache.stats() == {"size": 1, "capacity": 3, "ttl_seconds": 600}


# ------------------------------------------------------------------ #
# TTL
# ------------------------------------------------------------------ #


class TestTTL:
    def test_fresh_at_exact_ttl(self, cache: WeatherCache, clock, record_factory) -> None:
        """An entry stored at T is still fresh at T + ttl."""
        cache.put("berlin", record_factory())
        clock.advance(600)
        assert cache.get_if_fresh("berlin") is not None

    def test_stale_after_ttl(self, cache: WeatherCache, clock, record_factory) -> None:
        """An entry stored at T is stale at T + ttl + 1 and gets removed."""
        cache.put("berlin", record_factory())
        clock.advance(601)
        assert cache.get_if_fresh("berlin") is None
        assert "berlin" not in cache

    def test_put_resets_timestamp(self, cache: WeatherCache, clock, record_factory) -> None:
        cache.put("berlin", record_factory())
        clock.advance(500)
        cache.put("berlin", record_factory())
        clock.advance(500)
        assert cache.get_if_fresh("berlin") is not None

    def test_hit_does_not_extend_freshness(self, cache: WeatherCache, clock, record_factory) -> None:
        """Promotion on read changes recency only, never storedAt."""
        cache.put("berlin", record_factory())
        clock.advance(400)
        assert cache.get_if_fresh("berlin") is not None
        clock.advance(201)
        assert cache.get_if_fresh("berlin") is None

    def test_stale_entry_not_removed_without_lookup(self, cache: WeatherCache, clock, record_factory) -> None:
        cache.put("berlin", record_factory())
        clock.advance(10_000)
        assert "berlin" in cache


# ------------------------------------------------------------------ #
# Capacity eviction
# ------------------------------------------------------------------ #


class TestEviction:
    def test_evicts_least_recently_used(self, cache: WeatherCache, record_factory) -> None:
        for name in ("a", "b", "c", "d"):
            cache.put(name, record_factory(name.upper()))
        assert cache.keys() == {"b", "c", "d"}
        assert len(cache) == 3

    def test_get_protects_from_eviction(self, cache: WeatherCache, record_factory) -> None:
        for name in ("a", "b", "c"):
            cache.put(name, record_factory(name.upper()))
        assert cache.get_if_fresh("a") is not None
        cache.put("d", record_factory("D"))
        assert cache.keys() == {"a", "c", "d"}

    def test_overwrite_promotes(self, cache: WeatherCache, record_factory) -> None:
        for name in ("a", "b", "c"):
            cache.put(name, record_factory(name.upper()))
        cache.put("a", record_factory("A"))
        cache.put("d", record_factory("D"))
        assert cache.keys() == {"a", "c", "d"}

    def test_reads_never_evict(self, cache: WeatherCache, record_factory) -> None:
        for name in ("a", "b", "c"):
            cache.put(name, record_factory(name.upper()))
        for _ in range(5):
            cache.get_if_fresh("zzz")
            cache.get_if_fresh("b")
        assert len(cache) == 3

    def test_contains_does_not_promote(self, cache: WeatherCache, record_factory) -> None:
        for name in ("a", "b", "c"):
            cache.put(name, record_factory(name.upper()))
        assert "a" in cache
        cache.put("d", record_factory("D"))
        assert "a" not in cache

    def test_capacity_one(self, clock, record_factory) -> None:
        cache = WeatherCache(capacity=1, ttl_seconds=60, clock=clock)
        cache.put("a", record_factory("A"))
        cache.put("b", record_factory("B"))
        assert cache.keys() == {"b"}


# ------------------------------------------------------------------ #
# Normalization and concurrency
# ------------------------------------------------------------------ #


class TestNormalizeKey:
    @pytest.mark.parametrize("raw", ["  Berlin ", "berlin", "BERLIN", "\tBerlin\n"])
    def test_equivalent_inputs_collide(self, raw: str) -> None:
        assert normalize_key(raw) == "berlin"


class TestConcurrency:
    def test_parallel_puts_respect_capacity(self, record_factory) -> None:
        cache = WeatherCache(capacity=5, ttl_seconds=60)
        record = record_factory()
        barrier = threading.Barrier(8)

        def worker(n: int) -> None:
            barrier.wait()
            for i in range(200):
                key = f"k{n}-{i % 17}"
                cache.put(key, record)
                cache.get_if_fresh(key)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 5
        assert len(cache.keys()) == 5
