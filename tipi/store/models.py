"""
Status Store data models

Timestamps are epoch milliseconds (see tipi.core.time).
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class SystemStatus(str, Enum):
    """System-wide lifecycle state"""

    RUNNING = "RUNNING"
    UPDATING = "UPDATING"
    RESTARTING = "RESTARTING"


class AppStatus(str, Enum):
    """Per-application lifecycle state"""

    RUNNING = "running"
    STOPPED = "stopped"
    INSTALLING = "installing"
    UNINSTALLING = "uninstalling"
    STOPPING = "stopping"
    STARTING = "starting"
    MISSING = "missing"
    UPDATING = "updating"

    @property
    def is_settled(self) -> bool:
        return self in SETTLED_APP_STATUSES


# Written only by the external runner once real work completes
SETTLED_APP_STATUSES = frozenset({AppStatus.RUNNING, AppStatus.STOPPED, AppStatus.MISSING})


@dataclass
class AppRecord:
    """One hosted application as persisted in the Status Store"""

    app_id: str
    status: AppStatus
    config: Dict[str, Any] = field(default_factory=dict)
    exposed: bool = False
    domain: Optional[str] = None
    num_opened: int = 0
    last_opened: Optional[int] = None
    version: int = 1
    created_at: int = 0
    updated_at: int = 0

    @property
    def is_transient(self) -> bool:
        return not self.status.is_settled

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_id": self.app_id,
            "status": self.status.value,
            "config": self.config,
            "exposed": self.exposed,
            "domain": self.domain,
            "num_opened": self.num_opened,
            "last_opened": self.last_opened,
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_row(cls, row) -> "AppRecord":
        """Build from a sqlite3.Row of the apps table"""
        return cls(
            app_id=row["app_id"],
            status=AppStatus(row["status"]),
            config=json.loads(row["config_json"]) if row["config_json"] else {},
            exposed=bool(row["exposed"]),
            domain=row["domain"],
            num_opened=row["num_opened"],
            last_opened=row["last_opened"],
            version=row["version"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


@dataclass
class TransitionOutcome:
    """Result of a compare-and-set status write.

    applied is False when the current status was not in the allowed set;
    previous is None when no record existed.
    """

    applied: bool
    previous: Optional[AppStatus]
    record: Optional[AppRecord]
