"""
System Lifecycle Controller

Owns the system-wide state machine:

    RUNNING --request_update()--> UPDATING
    RUNNING --request_restart()--> RESTARTING

UPDATING and RESTARTING are returned to RUNNING by the external runner
(see tipi.core.settlement); this controller never polls or times them out.
"""

import logging
from typing import Optional

from packaging.version import InvalidVersion

from tipi.core.errors import (
    AlreadyUpToDate,
    DowngradeRejected,
    EnvironmentRestricted,
    MajorVersionMismatch,
    OperationInProgress,
    VersionUnavailable,
)
from tipi.core.events import Event, EventType, IEventDispatcher
from tipi.core.locks import KeyedLocks, SYSTEM_KEY
from tipi.store import StatusStore, SystemStatus

from .models import VersionInfo
from .versions import VersionChecker, parse_version

logger = logging.getLogger(__name__)


class SystemLifecycleController:
    """Validates and applies system update/restart requests"""

    def __init__(
        self,
        store: StatusStore,
        dispatcher: IEventDispatcher,
        versions: VersionChecker,
        environment: str = "production",
        restricted: bool = False,
        locks: Optional[KeyedLocks] = None,
    ):
        """
        Args:
            store: Status Store holding the system status
            dispatcher: Where update/restart events go
            versions: Version lookup
            environment: Deployment environment name (reported in errors)
            restricted: Refuse update/restart in this environment
            locks: Shared keyed lock registry
        """
        self.store = store
        self.dispatcher = dispatcher
        self.versions = versions
        self.environment = environment
        self.restricted = restricted
        self.locks = locks or KeyedLocks()

    def get_status(self) -> SystemStatus:
        return self.store.get_system_status()

    def get_version(self) -> VersionInfo:
        return self.versions.get_version()

    def request_update(self) -> Event:
        """
        Move the system to UPDATING and dispatch an update event

        Checks, in order: environment policy, no operation in flight,
        latest version known, not already current, not a downgrade, same
        major version.

        Returns:
            The dispatched update event

        Raises:
            EnvironmentRestricted, OperationInProgress, VersionUnavailable,
            AlreadyUpToDate, DowngradeRejected, MajorVersionMismatch
        """
        self._check_environment("update")
        self._check_idle()

        info = self.versions.get_version()
        if not info.latest:
            raise VersionUnavailable(info.current)

        try:
            current = parse_version(info.current)
            latest = parse_version(info.latest)
        except InvalidVersion as e:
            logger.error(f"Cannot compare versions {info.current!r} and {info.latest!r}: {e}")
            raise VersionUnavailable(info.current, reason=str(e))

        if current == latest:
            raise AlreadyUpToDate(info.current, info.latest)
        if current > latest:
            raise DowngradeRejected(info.current, info.latest)
        if current.major != latest.major:
            raise MajorVersionMismatch(info.current, info.latest)

        with self.locks.hold(SYSTEM_KEY):
            self._transition(SystemStatus.UPDATING)
            event = self.dispatcher.publish(
                Event.for_system(EventType.UPDATE, current=info.current, target=info.latest)
            )

        logger.info(f"System update requested: {info.current} -> {info.latest}")
        return event

    def request_restart(self) -> Event:
        """
        Move the system to RESTARTING and dispatch a restart event

        Raises:
            EnvironmentRestricted, OperationInProgress
        """
        self._check_environment("restart")

        with self.locks.hold(SYSTEM_KEY):
            self._transition(SystemStatus.RESTARTING)
            event = self.dispatcher.publish(Event.for_system(EventType.RESTART))

        logger.info("System restart requested")
        return event

    def _check_environment(self, action: str) -> None:
        if self.restricted:
            logger.warning(f"Refusing system {action} in {self.environment} environment")
            raise EnvironmentRestricted(self.environment, action)

    def _check_idle(self) -> None:
        status = self.store.get_system_status()
        if status != SystemStatus.RUNNING:
            raise OperationInProgress(status.value)

    def _transition(self, new_status: SystemStatus) -> None:
        # Re-checked under the lock: the version lookup above ran unlocked
        applied, current = self.store.transition_system({SystemStatus.RUNNING}, new_status)
        if not applied:
            raise OperationInProgress(current.value)
