"""Bounded recency + TTL cache for weather records.

Recency is tracked with an explicit index (``dict`` of key to node) and a
hand-maintained doubly linked list between two sentinels: the node after
``_head`` is the least recently used, the node before ``_tail`` the most
recently used.  Promotion and eviction are plain list operations, so they
can be reasoned about apart from TTL handling.

Freshness is independent of recency: an entry stored at ``T`` is fresh for
every lookup with ``clock() - T <= ttl_seconds``.

All public methods take the instance lock, so concurrent request and
refresh threads never observe a half-applied update.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional

from weathersdk.models import WeatherRecord


def normalize_key(location: str) -> str:
    """Return the cache key for *location* (trimmed, lowercased)."""
    return location.strip().lower()


class _Node:
    """A list node holding one cache entry (value plus ``stored_at``)."""

    __slots__ = ("key", "value", "stored_at", "prev", "next")

    def __init__(
        self,
        key: str = "",
        value: Optional[WeatherRecord] = None,
        stored_at: float = 0.0,
    ) -> None:
        self.key = key
        self.value = value
        self.stored_at = stored_at
        self.prev: Optional[_Node] = None
        self.next: Optional[_Node] = None


class WeatherCache:
    """Thread-safe LRU cache with a freshness window.

    Args:
        capacity: Maximum number of entries.  Inserting beyond it evicts the
            least recently used key.
        ttl_seconds: Maximum age for an entry to be returned by
            :meth:`get_if_fresh`.
        clock: Monotonic time source in seconds.  Tests inject a fake.

    Example::

        cache = WeatherCache(capacity=10, ttl_seconds=600)
        cache.put("berlin", record)
        cache.get_if_fresh("berlin")   # record, now most recently used
    """

    def __init__(
        self,
        capacity: int,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._index: dict[str, _Node] = {}
        self._head = _Node()
        self._tail = _Node()
        self._head.next = self._tail
        self._tail.prev = self._head

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def put(self, key: str, value: WeatherRecord) -> None:
        """Insert or overwrite *key*, stamping it with the current time.

        The key becomes the most recently used.  If the cache then holds
        more than ``capacity`` entries, the least recently used one is
        evicted.
        """
        with self._lock:
            node = self._index.get(key)
            if node is not None:
                node.value = value
                node.stored_at = self._clock()
                self._unlink(node)
                self._append(node)
                return

            node = _Node(key, value, self._clock())
            self._index[key] = node
            self._append(node)
            if len(self._index) > self._capacity:
                self._evict_lru()

    def get_if_fresh(self, key: str) -> Optional[WeatherRecord]:
        """Return the value for *key* if present and fresh, else ``None``.

        A fresh hit is promoted to most recently used.  A stale entry is
        removed.
        """
        with self._lock:
            node = self._index.get(key)
            if node is None:
                return None
            if self._clock() - node.stored_at > self._ttl:
                self._unlink(node)
                del self._index[key]
                return None
            self._unlink(node)
            self._append(node)
            return node.value

    def remove(self, key: str) -> None:
        """Drop *key* if present."""
        with self._lock:
            node = self._index.pop(key, None)
            if node is not None:
                self._unlink(node)

    def keys(self) -> frozenset[str]:
        """Return a snapshot of the cached keys, safe to iterate unlocked."""
        with self._lock:
            return frozenset(self._index)

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._index.clear()
            self._head.next = self._tail
            self._tail.prev = self._head

    def stats(self) -> dict[str, Any]:
        """Return ``size``, ``capacity`` and ``ttl_seconds``."""
        with self._lock:
            return {
                "size": len(self._index),
                "capacity": self._capacity,
                "ttl_seconds": self._ttl,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._index)

    def __contains__(self, key: object) -> bool:
        # Membership only: no promotion, no freshness check.
        with self._lock:
            return key in self._index

    # ------------------------------------------------------------------ #
    # List helpers (caller must hold the lock)
    # ------------------------------------------------------------------ #

    def _append(self, node: _Node) -> None:
        last = self._tail.prev
        assert last is not None
        last.next = node
        node.prev = last
        node.next = self._tail
        self._tail.prev = node

    def _unlink(self, node: _Node) -> None:
        prev, nxt = node.prev, node.next
        assert prev is not None and nxt is not None
        prev.next = nxt
        nxt.prev = prev
        node.prev = node.next = None

    def _evict_lru(self) -> None:
        lru = self._head.next
        assert lru is not None and lru is not self._tail
        self._unlink(lru)
        del self._index[lru.key]
