"""
Cache Manager Utility
====================

Thread-safe in-memory TTL cache. The weather loader keeps one snapshot
per rounded coordinate bucket here so nearby checkpoints share a lookup.

Entries carry an absolute deadline taken from an injectable clock; an
entry at or past its deadline is dropped on access and never served.
A TTL of 0 means the entry lives until evicted. When the cache is full
the least recently used entry is evicted.

Classes:
    CacheManager: The cache
    CacheEntry: A value and its deadline
    CacheStats: Hit, miss and eviction counters

Author: Route Recommender Team
"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Optional

from config import config


@dataclass
class CacheEntry:
    value: Any
    expires_at: Optional[float]  # None: no expiry

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


@dataclass
class CacheStats:
    """Counters since construction or the last clear()"""
    hits: int = 0
    misses: int = 0
    sets: int = 0
    evictions: int = 0
    expired: int = 0
    size: int = 0
    max_size: int = 0

    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0

    def to_dict(self) -> Dict:
        return {**asdict(self), "hit_rate": self.hit_rate()}


class CacheManager:
    """
    LRU cache with per-entry TTL

    Args:
        max_size (int): Entry limit (default CACHE_MAX_SIZE)
        default_ttl (float): Seconds an entry lives when set() gets no ttl
            (default WEATHER_CACHE_TTL)
        clock (Callable): Monotonic seconds; tests pass a fake
    """

    def __init__(self, max_size: Optional[int] = None, default_ttl: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.logger = logging.getLogger(__name__)

        self.max_size = max_size or config.CACHE_MAX_SIZE
        self.default_ttl = config.WEATHER_CACHE_TTL if default_ttl is None else default_ttl
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self.stats = CacheStats(max_size=self.max_size)

    def get(self, key: str) -> Optional[Any]:
        """Return the live value for key, or None"""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                self.stats.misses += 1
                return None

            self._entries.move_to_end(key)
            self.stats.hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            deadline = self._clock() + ttl if ttl > 0 else None
            self._entries[key] = CacheEntry(value, deadline)
            self._entries.move_to_end(key)
            self.stats.sets += 1

            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self.stats.evictions += 1
                self.logger.debug(f"Evicted {evicted}")

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.stats = CacheStats(max_size=self.max_size)

    def has_key(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def get_stats(self) -> CacheStats:
        with self._lock:
            self.stats.size = len(self._entries)
            return self.stats

    def cleanup_expired(self) -> int:
        """Drop every expired entry; returns how many were dropped"""
        with self._lock:
            now = self._clock()
            stale = [key for key, entry in self._entries.items() if entry.expired(now)]
            for key in stale:
                del self._entries[key]
            self.stats.expired += len(stale)

        if stale:
            self.logger.info(f"Dropped {len(stale)} expired cache entries")
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            del self._entries[key]
            self.stats.expired += 1
            return None
        return entry
