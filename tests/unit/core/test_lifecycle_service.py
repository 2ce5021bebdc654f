import json

from tipi.core.cache import SQLiteCache
from tipi.core.config import TipiConfig
from tipi.core.lifecycle import build_lifecycle_service
from tipi.core.settlement import SettlementReporter
from tipi.core.system import VersionInfo
from tipi.store import AppStatus, SystemStatus


class StaticVersions:
    def __init__(self, current, latest):
        self.info = VersionInfo(current=current, latest=latest)

    def get_version(self):
        return self.info


def test_wired_service_spools_events_for_the_runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = TipiConfig(root_folder=tmp_path, environment="production", redis_url=None)
    service = build_lifecycle_service(config, versions=StaticVersions("1.0.0", "1.1.0"))
    dispatcher = service.apps.dispatcher

    try:
        record = service.install_app("calculator", {})
        assert record.status == AppStatus.INSTALLING

        service.request_system_update()
        assert service.get_system_status() == SystemStatus.UPDATING

        dispatcher.flush()
        events = [json.loads(p.read_text()) for p in sorted(config.events_dir.glob("*.json"))]
        assert sorted(e["type"] for e in events) == ["install", "update"]

        SettlementReporter(service.apps.store).app_settled("calculator", AppStatus.RUNNING)
        assert service.get_app("calculator").status == AppStatus.RUNNING
        assert [r.app_id for r in service.list_apps(AppStatus.RUNNING)] == ["calculator"]
    finally:
        service.close()


def test_wired_service_sessions_share_cache(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = TipiConfig(root_folder=tmp_path, redis_url=None)
    service = build_lifecycle_service(config, versions=StaticVersions("1.0.0", None))
    try:
        assert isinstance(service.sessions.cache, SQLiteCache)
        grant = service.sessions.create_session("user-1")
        assert service.sessions.get_user(grant.session_id) == "user-1"
    finally:
        service.close()
