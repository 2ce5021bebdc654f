"""
Lifecycle service

Transport-agnostic facade over the controllers. Every method returns a
success payload or raises a LifecycleError subclass.

Usage:
    from tipi.core.lifecycle import build_lifecycle_service

    service = build_lifecycle_service()
    service.install_app("calculator", {})
    service.get_app("calculator").status   # AppStatus.INSTALLING
"""

import logging
from typing import List, Optional

from tipi.core.apps import AppLifecycleController
from tipi.core.apps.config import ConfigInput
from tipi.core.cache import ICache, get_cache
from tipi.core.config import TipiConfig, get_config
from tipi.core.events import Event, IEventDispatcher, SpoolEventDispatcher
from tipi.core.locks import KeyedLocks
from tipi.core.sessions import SessionManager
from tipi.core.system import (
    SystemInfo,
    SystemInfoReader,
    SystemLifecycleController,
    VersionChecker,
    VersionInfo,
)
from tipi.store import AppRecord, AppStatus, StatusStore, SystemStatus

logger = logging.getLogger(__name__)


class LifecycleService:
    """Operations exposed to callers (CLI, HTTP/RPC glue)"""

    def __init__(
        self,
        system: SystemLifecycleController,
        apps: AppLifecycleController,
        info_reader: Optional[SystemInfoReader] = None,
        sessions: Optional[SessionManager] = None,
    ):
        self.system = system
        self.apps = apps
        self.info_reader = info_reader
        self.sessions = sessions

    # System
    def get_system_status(self) -> SystemStatus:
        return self.system.get_status()

    def request_system_update(self) -> Event:
        return self.system.request_update()

    def request_system_restart(self) -> Event:
        return self.system.request_restart()

    def get_version(self) -> VersionInfo:
        return self.system.get_version()

    def get_system_info(self) -> SystemInfo:
        if self.info_reader is None:
            raise RuntimeError("No system info source configured")
        return self.info_reader.read()

    # Apps
    def get_app(self, app_id: str) -> AppRecord:
        return self.apps.get_app(app_id)

    def list_apps(self, status: Optional[AppStatus] = None) -> List[AppRecord]:
        return self.apps.list_apps(status)

    def install_app(
        self,
        app_id: str,
        config: ConfigInput = None,
        exposed: bool = False,
        domain: Optional[str] = None,
    ) -> AppRecord:
        return self.apps.install(app_id, config, exposed=exposed, domain=domain)

    def start_app(self, app_id: str) -> AppRecord:
        return self.apps.start(app_id)

    def stop_app(self, app_id: str) -> AppRecord:
        return self.apps.stop(app_id)

    def uninstall_app(self, app_id: str) -> AppRecord:
        return self.apps.uninstall(app_id)

    def update_app(self, app_id: str) -> AppRecord:
        return self.apps.update(app_id)

    def open_app(self, app_id: str) -> AppRecord:
        return self.apps.record_open(app_id)

    def close(self):
        """Flush dispatched events; call before the process exits"""
        self.apps.dispatcher.close()
        if self.system.dispatcher is not self.apps.dispatcher:
            self.system.dispatcher.close()


def build_lifecycle_service(
    config: Optional[TipiConfig] = None,
    store: Optional[StatusStore] = None,
    cache: Optional[ICache] = None,
    dispatcher: Optional[IEventDispatcher] = None,
    versions: Optional[VersionChecker] = None,
) -> LifecycleService:
    """
    Wire a LifecycleService from configuration

    Any collaborator passed in is used as-is; the rest are built from config.
    """
    config = config or get_config()
    store = store or StatusStore(config.store_path, busy_timeout_ms=config.sqlite_busy_timeout)
    cache = cache or get_cache(config)
    dispatcher = dispatcher or SpoolEventDispatcher(config.events_dir)
    versions = versions or VersionChecker(
        cache,
        current_version=config.version,
        release_url=config.release_url,
        timeout=config.version_lookup_timeout_seconds,
        cache_ttl_seconds=config.version_cache_ttl_seconds,
    )
    locks = KeyedLocks()

    system = SystemLifecycleController(
        store,
        dispatcher,
        versions,
        environment=config.environment,
        restricted=config.is_restricted,
        locks=locks,
    )
    apps = AppLifecycleController(store, dispatcher, locks=locks)
    sessions = SessionManager(
        cache,
        session_ttl_seconds=config.session_ttl_seconds,
        grace_seconds=config.session_refresh_grace_seconds,
    )

    logger.info(f"Lifecycle service ready (environment: {config.environment})")
    return LifecycleService(
        system,
        apps,
        info_reader=SystemInfoReader(config.system_info_path),
        sessions=sessions,
    )
