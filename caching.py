"""
In-memory LRU cache with Time-To-Live (TTL) for query results.
"""

import time
from collections import OrderedDict
from typing import Any, Hashable, Optional

_now = time.monotonic


class Cache:
    """
    LRU (Least Recently Used) cache with TTL and hit/miss counters.

    Keys are any hashable value. Query results are keyed on the graph
    revision, so a mutated graph simply stops hitting old entries.
    """
    def __init__(self, max_size: int = 256, ttl_seconds: float = 300):
        """
        Args:
            max_size: Maximum number of entries; 0 disables caching.
            ttl_seconds: Lifetime of each entry, in seconds.
        """
        self.max_size = max_size
        self.ttl = ttl_seconds
        self.hits = 0
        self.misses = 0
        self._cache: "OrderedDict[Hashable, tuple]" = OrderedDict()  # key -> (value, stored_at)

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None on miss or expiry"""
        entry = self._cache.get(key)
        if entry is None:
            self.misses += 1
            return None

        value, stored_at = entry
        if _now() - stored_at > self.ttl:
            del self._cache[key]
            self.misses += 1
            return None

        self._cache.move_to_end(key)
        self.hits += 1
        return value

    def set(self, key: Hashable, value: Any) -> None:
        """Store value, evicting the least recently used entry when full"""
        if self.max_size <= 0:
            return
        if key in self._cache:
            self._cache.move_to_end(key)
        self._cache[key] = (value, _now())

        while len(self._cache) > self.max_size:
            self._cache.popitem(last=False)

    def clear(self) -> None:
        self._cache.clear()

    def stats(self) -> dict:
        return {"size": len(self._cache), "hits": self.hits, "misses": self.misses}

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._cache

__all__ = ["Cache"]
