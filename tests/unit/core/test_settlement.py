import pytest

from tipi.core.errors import NotFound
from tipi.core.settlement import SettlementReporter
from tipi.store import AppStatus, StatusStore, SystemStatus


@pytest.fixture
def store(tmp_path):
    return StatusStore(tmp_path / "status.sqlite")


def test_app_settled_writes_final_status(store):
    store.create("calculator", status=AppStatus.UNINSTALLING)

    record = SettlementReporter(store).app_settled("calculator", AppStatus.MISSING)

    assert record.status == AppStatus.MISSING
    assert store.read("calculator").status == AppStatus.MISSING


@pytest.mark.parametrize("status", [AppStatus.INSTALLING, AppStatus.STOPPING, AppStatus.UPDATING])
def test_transient_status_cannot_be_settled(store, status):
    store.create("calculator", status=AppStatus.RUNNING)

    with pytest.raises(ValueError):
        SettlementReporter(store).app_settled("calculator", status)
    assert store.read("calculator").status == AppStatus.RUNNING


def test_settle_unknown_app(store):
    with pytest.raises(NotFound):
        SettlementReporter(store).app_settled("ghost", AppStatus.RUNNING)


def test_system_settled_restores_running(store):
    store.write_system_status(SystemStatus.UPDATING)
    SettlementReporter(store).system_settled()
    assert store.get_system_status() == SystemStatus.RUNNING
