"""Lifecycle events handed to the external runner."""

from .types import Event, EventEntity, EventType
from .dispatcher import IEventDispatcher, LocalEventDispatcher, SpoolEventDispatcher

__all__ = [
    "Event",
    "EventEntity",
    "EventType",
    "IEventDispatcher",
    "LocalEventDispatcher",
    "SpoolEventDispatcher",
]
