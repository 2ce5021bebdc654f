"""Status Store: durable record of system and application status."""

from tipi.store.models import (
    AppRecord,
    AppStatus,
    SETTLED_APP_STATUSES,
    SystemStatus,
    TransitionOutcome,
)
from tipi.store.status_store import StatusStore

__all__ = [
    "AppRecord",
    "AppStatus",
    "SETTLED_APP_STATUSES",
    "StatusStore",
    "SystemStatus",
    "TransitionOutcome",
]
