"""
Settlement write-back

The external runner reports finished work through SettlementReporter.
It is the only writer of settled states; the lifecycle controllers never
call it.
"""

import logging

from tipi.store import AppRecord, AppStatus, SETTLED_APP_STATUSES, StatusStore, SystemStatus

logger = logging.getLogger(__name__)


class SettlementReporter:
    """Records settled states written back by the external runner"""

    def __init__(self, store: StatusStore):
        self.store = store

    def app_settled(self, app_id: str, status: AppStatus) -> AppRecord:
        """
        Record the final status of an app after real work completed

        Args:
            app_id: Application identifier
            status: running, stopped or missing

        Raises:
            ValueError: status is a transient state
            NotFound: unknown app id
        """
        status = AppStatus(status)
        if status not in SETTLED_APP_STATUSES:
            raise ValueError(f"Cannot settle {app_id} as {status.value}: not a settled status")

        record = self.store.write_status(app_id, status)
        logger.info(f"App settled: {app_id} -> {status.value}")
        return record

    def system_settled(self) -> SystemStatus:
        """Restore RUNNING once an update or restart has finished"""
        self.store.write_system_status(SystemStatus.RUNNING)
        logger.info("System settled: RUNNING")
        return SystemStatus.RUNNING
