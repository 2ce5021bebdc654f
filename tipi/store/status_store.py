"""
Status Store accessor

Durable record of the system status (single well-known key) and of one
status record per application. Every method opens its own connection, so
a store instance can be shared across threads. Read-check-write paths run
inside BEGIN IMMEDIATE so the precondition and the write are atomic across
processes too.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from tipi.core.errors import NotFound
from tipi.core.storage.paths import ensure_parent
from tipi.core.time import utc_now_ms
from tipi.store.models import AppRecord, AppStatus, SystemStatus, TransitionOutcome

logger = logging.getLogger(__name__)

SYSTEM_STATUS_KEY = "status"


class StatusStore:
    """SQLite-backed Status Store"""

    def __init__(self, db_path: Union[str, Path], busy_timeout_ms: int = 30000):
        """
        Initialize the store and its schema

        Args:
            db_path: SQLite database file (parent directories are created)
            busy_timeout_ms: How long writers wait on a locked database
        """
        self.db_path = str(ensure_parent(db_path))
        self.busy_timeout_ms = busy_timeout_ms
        self._init_schema()
        logger.info(f"StatusStore initialized at {self.db_path}")

    @contextmanager
    def _get_conn(self):
        """Get a database connection (context manager)"""
        conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout_ms / 1000)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self):
        """Write transaction holding the database write lock from the first read"""
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.busy_timeout_ms / 1000,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._get_conn() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute(f"PRAGMA busy_timeout={int(self.busy_timeout_ms)};")

            conn.execute("""
                CREATE TABLE IF NOT EXISTS apps (
                    app_id TEXT PRIMARY KEY,
                    status TEXT NOT NULL,
                    config_json TEXT,
                    exposed INTEGER NOT NULL DEFAULT 0,
                    domain TEXT,
                    num_opened INTEGER NOT NULL DEFAULT 0,
                    last_opened INTEGER,
                    version INTEGER NOT NULL DEFAULT 1,
                    created_at INTEGER NOT NULL,
                    updated_at INTEGER NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS system_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at INTEGER NOT NULL
                )
            """)

            conn.execute("CREATE INDEX IF NOT EXISTS idx_apps_status ON apps(status)")

            conn.execute(
                "INSERT OR IGNORE INTO system_state (key, value, updated_at) VALUES (?, ?, ?)",
                (SYSTEM_STATUS_KEY, SystemStatus.RUNNING.value, utc_now_ms()),
            )
            conn.commit()

    # ========== Apps ==========

    def get_app(self, app_id: str) -> Optional[AppRecord]:
        with self._get_conn() as conn:
            row = conn.execute("SELECT * FROM apps WHERE app_id = ?", (app_id,)).fetchone()
        return AppRecord.from_row(row) if row else None

    def read(self, app_id: str) -> AppRecord:
        """
        Read one application record

        Raises:
            NotFound: No record exists for app_id
        """
        record = self.get_app(app_id)
        if record is None:
            raise NotFound(app_id)
        return record

    def list_apps(self, status: Optional[AppStatus] = None) -> List[AppRecord]:
        """List application records ordered by id, optionally filtered by status"""
        query = "SELECT * FROM apps"
        params: Tuple[Any, ...] = ()
        if status is not None:
            query += " WHERE status = ?"
            params = (AppStatus(status).value,)
        query += " ORDER BY app_id"

        with self._get_conn() as conn:
            rows = conn.execute(query, params).fetchall()
        return [AppRecord.from_row(row) for row in rows]

    def create(
        self,
        app_id: str,
        config: Optional[Dict[str, Any]] = None,
        status: AppStatus = AppStatus.INSTALLING,
        exposed: bool = False,
        domain: Optional[str] = None,
    ) -> AppRecord:
        """
        Create an application record

        Raises:
            sqlite3.IntegrityError: A record already exists for app_id
        """
        now = utc_now_ms()
        record = AppRecord(
            app_id=app_id,
            status=AppStatus(status),
            config=dict(config or {}),
            exposed=exposed,
            domain=domain,
            created_at=now,
            updated_at=now,
        )
        with self._get_conn() as conn:
            self._insert(conn, record)
            conn.commit()

        logger.info(f"App record created: {app_id} ({record.status.value})")
        return record

    def write_status(self, app_id: str, status: AppStatus) -> AppRecord:
        """
        Unconditional last-write-wins status write

        Raises:
            NotFound: No record exists for app_id
        """
        status = AppStatus(status)
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE apps SET status = ?, version = version + 1, updated_at = ? WHERE app_id = ?",
                (status.value, utc_now_ms(), app_id),
            )
            if cursor.rowcount == 0:
                raise NotFound(app_id)
            row = conn.execute("SELECT * FROM apps WHERE app_id = ?", (app_id,)).fetchone()

        logger.info(f"App status written: {app_id} -> {status.value}")
        return AppRecord.from_row(row)

    def transition_app(
        self,
        app_id: str,
        allowed_from: Iterable[AppStatus],
        new_status: AppStatus,
        allow_absent: bool = False,
        config: Optional[Dict[str, Any]] = None,
        exposed: Optional[bool] = None,
        domain: Optional[str] = None,
    ) -> TransitionOutcome:
        """
        Compare-and-set an application status

        The write happens only when the current status is in allowed_from, or
        when no record exists and allow_absent is set (a record is then
        created). config/exposed/domain, when given, replace the stored
        values in the same write.

        Args:
            app_id: Application identifier
            allowed_from: Statuses the record must currently hold
            new_status: Status to write
            allow_absent: Create the record if it does not exist
            config: Replacement configuration document
            exposed: Replacement exposure flag
            domain: Replacement domain binding

        Returns:
            TransitionOutcome describing what happened
        """
        allowed = {AppStatus(s) for s in allowed_from}
        new_status = AppStatus(new_status)
        now = utc_now_ms()

        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM apps WHERE app_id = ?", (app_id,)).fetchone()

            if row is None:
                if not allow_absent:
                    return TransitionOutcome(applied=False, previous=None, record=None)
                record = AppRecord(
                    app_id=app_id,
                    status=new_status,
                    config=dict(config or {}),
                    exposed=bool(exposed),
                    domain=domain,
                    created_at=now,
                    updated_at=now,
                )
                self._insert(conn, record)
                logger.info(f"App record created: {app_id} ({new_status.value})")
                return TransitionOutcome(applied=True, previous=None, record=record)

            current = AppRecord.from_row(row)
            if current.status not in allowed:
                return TransitionOutcome(applied=False, previous=current.status, record=current)

            sets = ["status = ?", "version = version + 1", "updated_at = ?"]
            params: List[Any] = [new_status.value, now]
            if config is not None:
                sets.append("config_json = ?")
                params.append(json.dumps(config))
            if exposed is not None:
                sets.append("exposed = ?")
                params.append(int(exposed))
            if config is not None or exposed is not None:
                # domain is only meaningful together with exposure
                sets.append("domain = ?")
                params.append(domain)
            params.append(app_id)

            conn.execute(f"UPDATE apps SET {', '.join(sets)} WHERE app_id = ?", params)
            row = conn.execute("SELECT * FROM apps WHERE app_id = ?", (app_id,)).fetchone()

        logger.info(f"App transition: {app_id} {current.status.value} -> {new_status.value}")
        return TransitionOutcome(applied=True, previous=current.status, record=AppRecord.from_row(row))

    def record_open(self, app_id: str) -> AppRecord:
        """
        Bump usage telemetry (open count, last opened); status is untouched

        Raises:
            NotFound: No record exists for app_id
        """
        now = utc_now_ms()
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE apps SET num_opened = num_opened + 1, last_opened = ? WHERE app_id = ?",
                (now, app_id),
            )
            if cursor.rowcount == 0:
                raise NotFound(app_id)
            row = conn.execute("SELECT * FROM apps WHERE app_id = ?", (app_id,)).fetchone()
        return AppRecord.from_row(row)

    @staticmethod
    def _insert(conn: sqlite3.Connection, record: AppRecord) -> None:
        conn.execute("""
            INSERT INTO apps (app_id, status, config_json, exposed, domain,
                              num_opened, last_opened, version, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            record.app_id,
            record.status.value,
            json.dumps(record.config),
            int(record.exposed),
            record.domain,
            record.num_opened,
            record.last_opened,
            record.version,
            record.created_at,
            record.updated_at,
        ))

    # ========== System ==========

    def get_system_status(self) -> SystemStatus:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT value FROM system_state WHERE key = ?", (SYSTEM_STATUS_KEY,)
            ).fetchone()
        if row is None:
            return SystemStatus.RUNNING
        return SystemStatus(row["value"])

    def write_system_status(self, status: SystemStatus) -> None:
        status = SystemStatus(status)
        with self._get_conn() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO system_state (key, value, updated_at) VALUES (?, ?, ?)",
                (SYSTEM_STATUS_KEY, status.value, utc_now_ms()),
            )
            conn.commit()
        logger.info(f"System status written: {status.value}")

    def transition_system(
        self, allowed_from: Iterable[SystemStatus], new_status: SystemStatus
    ) -> Tuple[bool, SystemStatus]:
        """
        Compare-and-set the system status

        Returns:
            (applied, status observed before the write)
        """
        allowed = {SystemStatus(s) for s in allowed_from}
        new_status = SystemStatus(new_status)

        with self._transaction() as conn:
            row = conn.execute(
                "SELECT value FROM system_state WHERE key = ?", (SYSTEM_STATUS_KEY,)
            ).fetchone()
            current = SystemStatus(row["value"]) if row else SystemStatus.RUNNING
            if current not in allowed:
                return False, current
            conn.execute(
                "INSERT OR REPLACE INTO system_state (key, value, updated_at) VALUES (?, ?, ?)",
                (SYSTEM_STATUS_KEY, new_status.value, utc_now_ms()),
            )

        logger.info(f"System transition: {current.value} -> {new_status.value}")
        return True, current
