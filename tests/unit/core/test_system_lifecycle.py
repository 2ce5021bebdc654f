import pytest

from tipi.core.cache import SQLiteCache
from tipi.core.errors import (
    AlreadyUpToDate,
    DowngradeRejected,
    EnvironmentRestricted,
    MajorVersionMismatch,
    OperationInProgress,
    VersionUnavailable,
)
from tipi.core.events import EventType, LocalEventDispatcher
from tipi.core.settlement import SettlementReporter
from tipi.core.system import (
    LATEST_VERSION_KEY,
    SystemLifecycleController,
    VersionChecker,
    VersionInfo,
)
from tipi.store import StatusStore, SystemStatus


class StaticVersions:
    """Version source with fixed answers"""

    def __init__(self, current, latest):
        self.info = VersionInfo(current=current, latest=latest)
        self.calls = 0

    def get_version(self):
        self.calls += 1
        return self.info


class TestSystemLifecycleController:
    @pytest.fixture(autouse=True)
    def _setup(self, tmp_path):
        self.store = StatusStore(tmp_path / "status.sqlite")
        self.dispatcher = LocalEventDispatcher()

    def _controller(self, current="1.0.0", latest="1.1.0", restricted=False):
        return SystemLifecycleController(
            self.store,
            self.dispatcher,
            StaticVersions(current, latest),
            environment="development" if restricted else "production",
            restricted=restricted,
        )

    def test_update_moves_to_updating_and_dispatches(self):
        controller = self._controller("1.0.0", "1.1.0")

        event = controller.request_update()

        assert controller.get_status() == SystemStatus.UPDATING
        assert event.type == EventType.UPDATE
        assert event.payload == {"current": "1.0.0", "target": "1.1.0"}
        assert self.dispatcher.history() == [event]

    @pytest.mark.parametrize("current,latest,error", [
        ("1.2.0", "1.2.0", AlreadyUpToDate),
        ("2.0.0", "1.9.0", DowngradeRejected),
        ("1.0.0", "2.0.0", MajorVersionMismatch),
        ("1.0.0", None, VersionUnavailable),
        ("dev", "1.1.0", VersionUnavailable),
        ("1.0.0", "1.1.0-nightly.x", VersionUnavailable),
        ("3.4.1+abc", "3.4.1", AlreadyUpToDate),
        ("1.0.0", "1.0.0+build.7", AlreadyUpToDate),
    ])
    def test_update_eligibility_guards(self, current, latest, error):
        controller = self._controller(current, latest)

        with pytest.raises(error):
            controller.request_update()

        assert controller.get_status() == SystemStatus.RUNNING
        assert self.dispatcher.history() == []

    def test_update_tolerates_version_prefix_and_short_forms(self):
        controller = self._controller("v1.2", "1.2.0")
        with pytest.raises(AlreadyUpToDate):
            controller.request_update()

    @pytest.mark.parametrize("busy", [SystemStatus.UPDATING, SystemStatus.RESTARTING])
    @pytest.mark.parametrize("latest", ["1.1.0", "1.0.0", "2.0.0", None])
    def test_update_in_progress_wins_over_version_checks(self, busy, latest):
        self.store.write_system_status(busy)
        controller = self._controller("1.0.0", latest)

        with pytest.raises(OperationInProgress) as exc_info:
            controller.request_update()

        assert exc_info.value.status == busy.value
        assert controller.get_status() == busy
        assert self.dispatcher.history() == []

    def test_restricted_environment_refuses_update_and_restart(self):
        controller = self._controller(restricted=True)

        with pytest.raises(EnvironmentRestricted):
            controller.request_update()
        with pytest.raises(EnvironmentRestricted):
            controller.request_restart()

        assert controller.get_status() == SystemStatus.RUNNING
        assert controller.versions.calls == 0

    def test_restart_once_until_settled(self):
        controller = self._controller()

        controller.request_restart()
        assert controller.get_status() == SystemStatus.RESTARTING

        with pytest.raises(OperationInProgress):
            controller.request_restart()
        assert len(self.dispatcher.history(EventType.RESTART)) == 1

        SettlementReporter(self.store).system_settled()
        controller.request_restart()
        assert len(self.dispatcher.history(EventType.RESTART)) == 2

    def test_update_rechecks_status_under_lock(self):
        controller = self._controller("1.0.0", "1.1.0")

        class RacingVersions(StaticVersions):
            def get_version(inner):
                # Another process starts a restart while the lookup is in flight
                self.store.write_system_status(SystemStatus.RESTARTING)
                return super().get_version()

        controller.versions = RacingVersions("1.0.0", "1.1.0")

        with pytest.raises(OperationInProgress):
            controller.request_update()
        assert controller.get_status() == SystemStatus.RESTARTING
        assert self.dispatcher.history() == []

    def test_unparseable_cached_latest_is_typed_failure(self, tmp_path):
        cache = SQLiteCache(tmp_path / "cache.sqlite")
        cache.set(LATEST_VERSION_KEY, "not-a-version", 3600)
        versions = VersionChecker(cache, "1.0.0", "https://example.invalid/latest", session=object())
        controller = SystemLifecycleController(self.store, self.dispatcher, versions)

        with pytest.raises(VersionUnavailable) as exc_info:
            controller.request_update()

        assert "reason" in exc_info.value.details
        assert controller.get_status() == SystemStatus.RUNNING
        assert self.dispatcher.history() == []

    def test_get_version_delegates(self):
        controller = self._controller("1.0.0", "1.1.0")
        assert controller.get_version().to_dict() == {"current": "1.0.0", "latest": "1.1.0"}
