"""
Redis-based Cache Implementation

Cross-process cache; Redis enforces the TTL.
"""

import logging
from typing import Optional, Dict, Any

import redis

from .interface import ICache

logger = logging.getLogger(__name__)


class RedisCache(ICache):
    """Redis cache with namespaced keys."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        default_ttl_seconds: int = 86400,
        prefix: str = "tipi:",
        client: Optional["redis.Redis"] = None,
    ):
        """
        Initialize Redis cache.

        Args:
            redis_url: Redis connection URL
            default_ttl_seconds: TTL used when set() gets none
            prefix: Namespace prepended to every key
            client: Pre-built client (skips redis.from_url)
        """
        self.redis_url = redis_url
        self.default_ttl_seconds = default_ttl_seconds
        self.prefix = prefix
        self.client = client if client is not None else redis.from_url(redis_url, decode_responses=True)
        self.hits = 0
        self.misses = 0
        logger.info(f"RedisCache initialized: {redis_url}")

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def ping(self) -> bool:
        return bool(self.client.ping())

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.client.get(self._key(key))
        except redis.RedisError as e:
            logger.error(f"Redis get failed: {e}")
            self.misses += 1
            return None

        if value is None:
            self.misses += 1
            logger.debug(f"Cache miss: {key}")
            return None

        self.hits += 1
        logger.debug(f"Cache hit: {key}")
        return value

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        try:
            self.client.setex(self._key(key), int(ttl), value)
            logger.debug(f"Cached: {key} (TTL: {ttl}s)")
        except redis.RedisError as e:
            logger.error(f"Redis set failed: {e}")

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self._key(key))
            logger.debug(f"Deleted: {key}")
        except redis.RedisError as e:
            logger.error(f"Redis delete failed: {e}")

    def get_stats(self) -> Dict[str, Any]:
        total = self.hits + self.misses
        return {
            "backend": "redis",
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hits / total if total > 0 else 0.0,
            "redis_url": self.redis_url,
        }
