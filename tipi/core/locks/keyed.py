"""
Per-key critical sections

Requests for the same key (an app id, or the system key) are serialized;
requests for different keys proceed in parallel. Locks are reference
counted and dropped once no thread holds or waits for them.

This covers threads of one process. Cross-process safety comes from the
compare-and-set writes in the Status Store.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from .exceptions import LockConflict

logger = logging.getLogger(__name__)

SYSTEM_KEY = "system"


class _Entry:
    __slots__ = ("lock", "refs")

    def __init__(self):
        self.lock = threading.Lock()
        self.refs = 0


class KeyedLocks:
    """Registry of one lock per key"""

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: Default seconds to wait for a key (None waits forever)
        """
        self.timeout = timeout
        self._entries: Dict[str, _Entry] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, key: str, timeout: Optional[float] = None) -> Iterator[None]:
        """
        Enter the critical section for key

        Raises:
            LockConflict: timeout expired before the key became free
        """
        wait = self.timeout if timeout is None else timeout

        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.refs += 1

        acquired = entry.lock.acquire() if wait is None else entry.lock.acquire(timeout=wait)
        try:
            if not acquired:
                logger.warning(f"Timed out waiting for lock: {key}")
                raise LockConflict(key, timeout=wait)
            yield
        finally:
            if acquired:
                entry.lock.release()
            with self._guard:
                entry.refs -= 1
                if entry.refs == 0:
                    del self._entries[key]

    def active_keys(self) -> int:
        """Number of keys currently held or waited on"""
        with self._guard:
            return len(self._entries)
