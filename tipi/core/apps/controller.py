"""
Application Lifecycle Controller

Each request runs as: enter the app's critical section -> compare-and-set
the status in the Status Store -> publish the event. The status is
committed before the event goes out, so readers never see an actionable
state once work has been dispatched. Settled states (running, stopped,
missing) are written only by the external runner.
"""

import logging
from typing import Any, Dict, List, Optional

from tipi.core.errors import InvalidConfig, InvalidTransition, NotFound
from tipi.core.events import Event, IEventDispatcher
from tipi.core.locks import KeyedLocks
from tipi.store import AppRecord, AppStatus, StatusStore

from .config import ConfigInput, parse_app_config
from .transitions import AppAction, get_transition

logger = logging.getLogger(__name__)


class AppLifecycleController:
    """Validates and applies per-application transition requests"""

    def __init__(
        self,
        store: StatusStore,
        dispatcher: IEventDispatcher,
        locks: Optional[KeyedLocks] = None,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.locks = locks or KeyedLocks()

    # ========== Reads ==========

    def get_app(self, app_id: str) -> AppRecord:
        """
        Latest committed record, transient states included

        Raises:
            NotFound: unknown app id
        """
        return self.store.read(app_id)

    def list_apps(self, status: Optional[AppStatus] = None) -> List[AppRecord]:
        return self.store.list_apps(status)

    # ========== Transitions ==========

    def install(
        self,
        app_id: str,
        config: ConfigInput = None,
        exposed: bool = False,
        domain: Optional[str] = None,
    ) -> AppRecord:
        """
        Install (or re-install a missing) app

        Args:
            app_id: Application identifier
            config: Configuration document (mapping, or JSON/YAML text)
            exposed: Reachable from outside the host
            domain: Domain binding, required when exposed

        Returns:
            Record in status installing

        Raises:
            InvalidConfig: config is not a mapping, or exposed without domain
            InvalidTransition: app exists and is not missing
        """
        parsed = parse_app_config(config, app_id)
        if exposed and not domain:
            raise InvalidConfig("a domain is required when the app is exposed", app_id)

        return self._apply(
            app_id,
            AppAction.INSTALL,
            {"config": parsed, "exposed": exposed, "domain": domain},
            config=parsed,
            exposed=exposed,
            domain=domain if exposed else None,
        )

    def start(self, app_id: str) -> AppRecord:
        return self._apply(app_id, AppAction.START)

    def stop(self, app_id: str) -> AppRecord:
        return self._apply(app_id, AppAction.STOP)

    def uninstall(self, app_id: str) -> AppRecord:
        return self._apply(app_id, AppAction.UNINSTALL)

    def update(self, app_id: str) -> AppRecord:
        return self._apply(app_id, AppAction.UPDATE)

    def record_open(self, app_id: str) -> AppRecord:
        """Usage telemetry; never changes status"""
        return self.store.record_open(app_id)

    def _apply(
        self,
        app_id: str,
        action: AppAction,
        payload: Optional[Dict[str, Any]] = None,
        **changes,
    ) -> AppRecord:
        if not app_id or not app_id.strip():
            raise NotFound(app_id)

        transition = get_transition(action)

        with self.locks.hold(f"app:{app_id}"):
            outcome = self.store.transition_app(
                app_id,
                transition.allowed_from,
                transition.to,
                allow_absent=transition.allow_absent,
                **changes,
            )

            if not outcome.applied:
                if outcome.previous is None:
                    raise NotFound(app_id)
                logger.info(
                    f"Rejected {action.value} for {app_id}: status is {outcome.previous.value}"
                )
                raise InvalidTransition(app_id, outcome.previous.value, action.value)

            self.dispatcher.publish(
                Event.for_app(transition.event, app_id, **(payload or {}))
            )

        logger.info(f"App {action.value} requested: {app_id} -> {transition.to.value}")
        return outcome.record
