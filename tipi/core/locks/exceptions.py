"""Lock-related exceptions."""

from __future__ import annotations

from typing import Optional


class LockConflict(RuntimeError):
    """Raised when a keyed critical section could not be entered in time."""

    def __init__(self, key: str, timeout: Optional[float] = None, message: Optional[str] = None):
        self.key = key
        self.timeout = timeout

        if message is None:
            message = f"Lock conflict on {key}"
            if timeout is not None:
                message += f" (waited {timeout}s)"

        super().__init__(message)
