"""
Cache Factory

Selects Redis or SQLite based on configuration and availability.
"""

import logging
from typing import Optional

import redis

from tipi.core.config import TipiConfig, get_config

from .interface import ICache
from .redis_impl import RedisCache
from .sqlite_impl import SQLiteCache

logger = logging.getLogger(__name__)


def get_cache(config: Optional[TipiConfig] = None) -> ICache:
    """
    Get a cache instance with automatic fallback.

    Priority:
    1. Redis (if TIPI_REDIS_URL is set and answers PING)
    2. SQLite under the root folder

    Returns:
        ICache instance
    """
    config = config or get_config()

    if config.redis_url:
        try:
            cache = RedisCache(config.redis_url, default_ttl_seconds=config.cache_default_ttl_seconds)
            cache.ping()
            logger.info(f"Using Redis cache: {config.redis_url}")
            return cache
        except redis.RedisError as e:
            logger.warning(f"Redis unavailable ({e}), falling back to SQLite cache")

    cache = SQLiteCache(config.cache_path, default_ttl_seconds=config.cache_default_ttl_seconds)
    logger.info(f"Using SQLite cache: {config.cache_path}")
    return cache
