"""
Typed lifecycle failures

Every failure a caller can observe is a LifecycleError subclass carrying a
stable error code, a human message and structured details. to_dict()
renders the error envelope used by the CLI and any transport layer:

    {
        "ok": false,
        "error_code": "INVALID_TRANSITION",
        "message": "Cannot stop app 'calculator' while it is installing",
        "details": {"app_id": "calculator", "current": "installing", "requested": "stop"}
    }
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Stable error codes"""

    INVALID_TRANSITION = "INVALID_TRANSITION"
    OPERATION_IN_PROGRESS = "OPERATION_IN_PROGRESS"
    ENVIRONMENT_RESTRICTED = "ENVIRONMENT_RESTRICTED"
    VERSION_UNAVAILABLE = "VERSION_UNAVAILABLE"
    ALREADY_UP_TO_DATE = "ALREADY_UP_TO_DATE"
    DOWNGRADE_REJECTED = "DOWNGRADE_REJECTED"
    MAJOR_VERSION_MISMATCH = "MAJOR_VERSION_MISMATCH"
    NOT_FOUND = "NOT_FOUND"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    INVALID_CONFIG = "INVALID_CONFIG"


class LifecycleError(Exception):
    """Base class for all lifecycle failures"""

    code: ErrorCode = ErrorCode.INVALID_TRANSITION
    retryable: bool = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": False,
            "error_code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidTransition(LifecycleError):
    """Current app status does not allow the requested action.

    Retryable once the conflicting operation settles.
    """

    code = ErrorCode.INVALID_TRANSITION
    retryable = True

    def __init__(self, app_id: str, current: Optional[str], requested: str):
        self.app_id = app_id
        self.current = current
        self.requested = requested
        state = current if current is not None else "absent"
        super().__init__(
            f"Cannot {requested} app '{app_id}' while it is {state}",
            {"app_id": app_id, "current": current, "requested": requested},
        )


class OperationInProgress(LifecycleError):
    """A system-wide mutation is already underway"""

    code = ErrorCode.OPERATION_IN_PROGRESS

    def __init__(self, status: str):
        self.status = status
        super().__init__(
            f"System is {status}, wait for the current operation to finish",
            {"status": status},
        )


class EnvironmentRestricted(LifecycleError):
    code = ErrorCode.ENVIRONMENT_RESTRICTED

    def __init__(self, environment: str, action: str):
        self.environment = environment
        super().__init__(
            f"Cannot {action} in {environment} environment",
            {"environment": environment, "action": action},
        )


class VersionUnavailable(LifecycleError):
    code = ErrorCode.VERSION_UNAVAILABLE

    def __init__(self, current: str, reason: Optional[str] = None):
        details = {"current": current}
        if reason is not None:
            details["reason"] = reason
        super().__init__("Could not determine the latest version", details)


class _VersionGuard(LifecycleError):
    """Shared shape of the update-eligibility guards"""

    template = "{current} -> {latest}"

    def __init__(self, current: str, latest: str):
        self.current = current
        self.latest = latest
        super().__init__(
            self.template.format(current=current, latest=latest),
            {"current": current, "latest": latest},
        )


class AlreadyUpToDate(_VersionGuard):
    code = ErrorCode.ALREADY_UP_TO_DATE
    template = "Current version {current} is already the latest"


class DowngradeRejected(_VersionGuard):
    code = ErrorCode.DOWNGRADE_REJECTED
    template = "Current version {current} is newer than latest {latest}"


class MajorVersionMismatch(_VersionGuard):
    code = ErrorCode.MAJOR_VERSION_MISMATCH
    template = "Major version changed ({current} -> {latest}), update manually"


class NotFound(LifecycleError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, app_id: str):
        self.app_id = app_id
        super().__init__(f"App not found: {app_id}", {"app_id": app_id})


class UpstreamUnavailable(LifecycleError):
    """External source (release metadata, runner state files) unreachable"""

    code = ErrorCode.UPSTREAM_UNAVAILABLE

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source} unavailable: {reason}", {"source": source, "reason": reason})


class InvalidConfig(LifecycleError):
    code = ErrorCode.INVALID_CONFIG

    def __init__(self, reason: str, app_id: Optional[str] = None):
        details = {"reason": reason}
        if app_id is not None:
            details["app_id"] = app_id
        super().__init__(f"Invalid app configuration: {reason}", details)
