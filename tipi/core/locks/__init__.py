"""Per-key critical sections for lifecycle requests."""

from .exceptions import LockConflict
from .keyed import KeyedLocks, SYSTEM_KEY

__all__ = ["KeyedLocks", "LockConflict", "SYSTEM_KEY"]
