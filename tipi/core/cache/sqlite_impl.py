"""
SQLite-based Cache Implementation

Fallback cache using SQLite with TTL support. Expired rows are invisible
to get() and purged by cleanup_expired(), which every set() runs.
"""

import sqlite3
import logging
from pathlib import Path
from typing import Callable, Optional, Dict, Any, Union

from tipi.core.storage.paths import ensure_parent
from tipi.core.time import utc_now_ms

from .interface import ICache

logger = logging.getLogger(__name__)


class SQLiteCache(ICache):
    """SQLite cache with TTL support."""

    def __init__(
        self,
        db_path: Union[str, Path],
        default_ttl_seconds: int = 86400,
        clock: Callable[[], int] = utc_now_ms,
    ):
        """
        Initialize SQLite cache.

        Args:
            db_path: Path to SQLite database file
            default_ttl_seconds: TTL used when set() gets none
            clock: Returns the current time in epoch milliseconds
        """
        self.db_path = ensure_parent(db_path)
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self.hits = 0
        self.misses = 0

        self._init_schema()
        logger.info(f"SQLiteCache initialized: {db_path}")

    def _init_schema(self):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS cache_entries (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    expires_at INTEGER NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_cache_entries_expires
                ON cache_entries(expires_at)
            """)
            conn.commit()

    def get(self, key: str) -> Optional[str]:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT value FROM cache_entries WHERE key = ? AND expires_at > ?",
                (key, self._clock()),
            ).fetchone()

        if row:
            self.hits += 1
            logger.debug(f"Cache hit: {key}")
            return row[0]

        self.misses += 1
        logger.debug(f"Cache miss: {key}")
        return None

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        expires_at = self._clock() + int(ttl * 1000)

        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO cache_entries (key, value, expires_at) VALUES (?, ?, ?)",
                (key, value, expires_at),
            )
            conn.commit()

        logger.debug(f"Cached: {key} (TTL: {ttl}s)")

        # Clean up expired entries
        self.cleanup_expired()

    def delete(self, key: str) -> None:
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
            conn.commit()

        logger.debug(f"Deleted: {key}")

    def cleanup_expired(self) -> int:
        """Remove expired entries, returning how many were deleted."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM cache_entries WHERE expires_at <= ?", (self._clock(),)
            )
            deleted = cursor.rowcount
            conn.commit()

        if deleted > 0:
            logger.info(f"Cleaned up {deleted} expired cache entries")
        return deleted

    def get_stats(self) -> Dict[str, Any]:
        total = self.hits + self.misses

        with sqlite3.connect(self.db_path) as conn:
            entry_count = conn.execute(
                "SELECT COUNT(*) FROM cache_entries WHERE expires_at > ?", (self._clock(),)
            ).fetchone()[0]

        return {
            "backend": "sqlite",
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hits / total if total > 0 else 0.0,
            "entry_count": entry_count,
            "db_path": str(self.db_path),
        }
