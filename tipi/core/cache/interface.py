"""
Ephemeral Cache Interface

Abstract interface for TTL-keyed string storage shared by the version
check and session liveness.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any


class ICache(ABC):
    """Abstract TTL cache.

    An expired key is indistinguishable from a key that was never set.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Get a cached value.

        Args:
            key: Cache key

        Returns:
            Stored value, or None if absent or expired
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """
        Store a value with a TTL.

        Args:
            key: Cache key
            value: Value to store
            ttl_seconds: Time-to-live; the backend default applies when None
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key (no-op if absent)."""
        pass

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with backend, hits, misses, hit_rate
        """
        pass
