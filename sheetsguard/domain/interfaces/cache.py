"""Interface for caching mechanisms.

Defines the contract for storing, retrieving, and invalidating cached
responses with a per-entry TTL.
"""

import abc
from typing import Any, Optional

from sheetsguard.domain.models.common import CacheKey


class CacheService(abc.ABC):
    """Abstract Base Class for caching operations."""

    @abc.abstractmethod
    def get(self, key: CacheKey) -> Optional[Any]:
        """Retrieves an item from the cache.

        Args:
            key: The cache key to retrieve.

        Returns:
            The cached item if found and not expired, otherwise None.
        """
        pass

    @abc.abstractmethod
    def set(self, key: CacheKey, value: Any, ttl: Optional[float] = None) -> None:
        """Stores an item in the cache.

        Args:
            key: The cache key to store the item under.
            value: The item to store.
            ttl: Time-to-live in seconds (uses the configured default if None).
        """
        pass

    @abc.abstractmethod
    def invalidate(self, pattern: Optional[str] = None) -> int:
        """Removes entries matching ``pattern`` (all entries if None).

        Returns:
            The number of entries removed.
        """
        pass

    @abc.abstractmethod
    def size(self) -> int:
        """Number of entries currently stored (expired ones included until looked up)."""
        pass

    @abc.abstractmethod
    def clear(self) -> None:
        """Clears all items from the cache."""
        pass
