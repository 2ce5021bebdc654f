"""
Ephemeral Cache

TTL key/value storage backed by Redis, with a SQLite fallback.
"""

from .interface import ICache
from .redis_impl import RedisCache
from .sqlite_impl import SQLiteCache
from .factory import get_cache

__all__ = ["ICache", "RedisCache", "SQLiteCache", "get_cache"]
