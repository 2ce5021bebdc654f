"""Unified UTC clock helpers."""

from tipi.core.time.clock import utc_now, utc_now_ms, utc_now_iso

__all__ = ["utc_now", "utc_now_ms", "utc_now_iso"]
