"""Concrete implementation of the in-memory Caching Service.

Process-lifetime only: a bounded dict of entries with per-entry TTL.
Expiry is lazy (stale entries are dropped when looked up) and eviction at
capacity removes the oldest-inserted entry, not the least recently used.
A hot key can therefore be evicted while colder keys survive.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sheetsguard.domain.interfaces.cache import CacheService
from sheetsguard.domain.models.common import CacheKey
from sheetsguard.domain.models.policies import CacheConfig

logger = logging.getLogger(__name__)

WILDCARD = "*"


@dataclass
class CacheEntry:
    """Internal representation of a cache entry with expiry."""
    value: Any
    expiry_time: float  # Unix timestamp when the entry expires


def matches_pattern(key: str, pattern: str) -> bool:
    """Single-wildcard match: 'head*tail' matches keys starting with head and ending with tail.

    Only the first '*' is special. Without a wildcard the pattern must equal the key.
    """
    if WILDCARD not in pattern:
        return key == pattern
    head, _, tail = pattern.partition(WILDCARD)
    if not key.startswith(head):
        return False
    return key[len(head):].endswith(tail)


class InMemoryCacheService(CacheService):
    """Bounded TTL cache keyed by ``'{spreadsheet_id}:{range}'``."""

    def __init__(self, config: Optional[CacheConfig] = None):
        """Initializes the caching service."""
        self.config = config or CacheConfig()
        # Python dicts keep insertion order, which is the eviction order.
        self._entries: Dict[CacheKey, CacheEntry] = {}
        logger.info(
            f"CachingService initialized (ttl={self.config.ttl_seconds}s, max={self.config.max_entries})"
        )

    def get(self, key: CacheKey) -> Optional[Any]:
        """Retrieves an item; expired entries are removed and reported as absent."""
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache miss for key: {key}")
            return None
        if time.time() >= entry.expiry_time:
            del self._entries[key]
            logger.debug(f"Cache entry expired for key: {key}. Removed.")
            return None
        logger.debug(f"Cache hit for key: {key}")
        return entry.value

    def set(self, key: CacheKey, value: Any, ttl: Optional[float] = None) -> None:
        """Stores an item, evicting the oldest-inserted entry when full."""
        # Re-setting a key moves it to the back of the eviction order.
        self._entries.pop(key, None)
        if len(self._entries) >= self.config.max_entries:
            oldest_key = next(iter(self._entries))
            del self._entries[oldest_key]
            logger.debug(f"Cache full, evicted oldest key: {oldest_key}")

        effective_ttl = ttl if ttl is not None else self.config.ttl_seconds
        self._entries[key] = CacheEntry(value=value, expiry_time=time.time() + effective_ttl)
        logger.debug(f"Stored item in cache: key={key}, ttl={effective_ttl}s")

    def invalidate(self, pattern: Optional[str] = None) -> int:
        """Removes every key matching ``pattern``; no pattern clears the cache."""
        if not pattern:
            removed = len(self._entries)
            self._entries.clear()
            logger.debug(f"Invalidated entire cache ({removed} entries).")
            return removed

        doomed = [key for key in self._entries if matches_pattern(key, pattern)]
        for key in doomed:
            del self._entries[key]
        logger.debug(f"Invalidated {len(doomed)} cache entries matching '{pattern}'.")
        return len(doomed)

    def size(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        """Clears all items from the cache."""
        self._entries.clear()
        logger.info("Cleared in-memory cache.")

    def keys(self):
        """Snapshot of the stored keys in eviction order (oldest first)."""
        return list(self._entries)
