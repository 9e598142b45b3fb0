"""
Peer Cache - Bounded in-process map of peer id -> last known node address.

Entries are hints. They are never checked against the shared store on a hit
and never invalidated by the directory; a full cache drops its least
recently used entry.
"""

import time
from typing import Callable, Optional

from cachetools import LRUCache, TTLCache

from .models import PEER_CACHE_MAX


class _CountingEvictions:
    """Counts entries pushed out by the size bound."""

    evictions = 0

    def popitem(self):
        item = super().popitem()
        self.evictions += 1
        return item


class _LRU(_CountingEvictions, LRUCache):
    pass


class _TTL(_CountingEvictions, TTLCache):
    pass


class PeerCache:
    """
    LRU map with an optional per-entry TTL.

    With ttl=None (the default) entries live until evicted. With a ttl,
    an entry older than ttl seconds reads as a miss and is dropped.
    """

    def __init__(
        self,
        max_size: int = PEER_CACHE_MAX,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock
        self._data = self._new_store()

        self.hits = 0
        self.misses = 0
        self._evicted_before_clear = 0

    @property
    def evictions(self) -> int:
        return self._evicted_before_clear + self._data.evictions

    def __len__(self) -> int:
        self._expire()
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str) -> Optional[str]:
        self._expire()
        value = self._data.get(key)
        if value is None:
            self.misses += 1
            return None
        self.hits += 1
        return value

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def pop(self, key: str) -> Optional[str]:
        return self._data.pop(key, None)

    def clear(self) -> None:
        self._evicted_before_clear += self._data.evictions
        self._data = self._new_store()

    def _new_store(self):
        if self.ttl is None:
            return _LRU(maxsize=self.max_size)
        return _TTL(maxsize=self.max_size, ttl=self.ttl, timer=self._clock)

    def _expire(self) -> None:
        if self.ttl is not None:
            self._data.expire()
