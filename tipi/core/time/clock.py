"""
Tipi unified clock

Rules:
1. Internal time is always UTC
2. Never call datetime.now() or datetime.utcnow() directly
3. Get time through the functions in this module

Timestamp contract:
- Storage: epoch milliseconds
- Events / CLI output: ISO 8601 UTC with Z suffix
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Get the current UTC time (timezone-aware)

    Returns:
        datetime: aware UTC datetime object
    """
    return datetime.now(timezone.utc)


def utc_now_ms() -> int:
    """
    Get the current UTC timestamp in milliseconds

    Returns:
        int: epoch milliseconds since 1970-01-01T00:00:00Z
    """
    return int(utc_now().timestamp() * 1000)


def utc_now_iso() -> str:
    """
    Get the current UTC time as ISO 8601 with Z suffix

    Example:
        >>> utc_now_iso()
        '2026-01-31T12:34:56.789012Z'
    """
    return utc_now().isoformat().replace("+00:00", "Z")
