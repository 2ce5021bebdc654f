"""
Event Types - envelope handed to the external runner

Protocol:
{
  "event_id": "01J9Z8Q5N1X2V3B4C5D6E7F8G9",
  "type": "install",
  "ts": "2026-01-27T10:21:33.123Z",
  "source": "core",
  "entity": {
    "kind": "app",
    "id": "calculator"
  },
  "payload": {
    "app_id": "calculator",
    "config": {}
  }
}
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Literal, Optional
from enum import Enum

from ulid import ULID

from tipi.core.time import utc_now_iso


class EventType(str, Enum):
    """Events the external runner accepts"""

    INSTALL = "install"
    UNINSTALL = "uninstall"
    START = "start"
    STOP = "stop"
    UPDATE = "update"
    RESTART = "restart"


@dataclass
class EventEntity:
    """What the event is about"""

    kind: Literal["app", "system"]
    id: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "id": self.id}

    @classmethod
    def app(cls, app_id: str) -> "EventEntity":
        return cls(kind="app", id=app_id)

    @classmethod
    def system(cls) -> "EventEntity":
        return cls(kind="system", id="system")


@dataclass
class Event:
    """
    Dispatched intent

    An event records that work was requested. It carries no promise that
    the work was done.
    """

    type: EventType
    entity: Optional[EventEntity] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    source: Literal["core", "cli"] = "core"
    event_id: str = field(default_factory=lambda: str(ULID()))
    ts: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "type": self.type.value,
            "ts": self.ts,
            "source": self.source,
            "entity": self.entity.to_dict() if self.entity else None,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        entity = data.get("entity")
        return cls(
            type=EventType(data["type"]),
            entity=EventEntity(kind=entity["kind"], id=entity["id"]) if entity else None,
            payload=data.get("payload") or {},
            source=data.get("source", "core"),
            event_id=data["event_id"],
            ts=data["ts"],
        )

    @classmethod
    def for_app(cls, event_type: EventType, app_id: str, **payload) -> "Event":
        return cls(
            type=event_type,
            entity=EventEntity.app(app_id),
            payload={"app_id": app_id, **payload},
        )

    @classmethod
    def for_system(cls, event_type: EventType, **payload) -> "Event":
        return cls(type=event_type, entity=EventEntity.system(), payload=dict(payload))
