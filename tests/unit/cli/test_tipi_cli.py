import json

import pytest
from click.testing import CliRunner

from tipi.cli.main import cli
from tipi.core.apps import AppLifecycleController
from tipi.core import lifecycle
from tipi.core.events import EventType, LocalEventDispatcher, SpoolEventDispatcher
from tipi.core.lifecycle import LifecycleService
from tipi.core.system import SystemInfoReader, SystemLifecycleController, VersionInfo
from tipi.store import AppStatus, StatusStore, SystemStatus


class StaticVersions:
    def __init__(self, current, latest):
        self.info = VersionInfo(current=current, latest=latest)

    def get_version(self):
        return self.info


@pytest.fixture
def store(tmp_path):
    return StatusStore(tmp_path / "status.sqlite")


@pytest.fixture
def dispatcher():
    return LocalEventDispatcher()


@pytest.fixture
def invoke(tmp_path, store, dispatcher):
    def _invoke(*args, latest="1.1.0"):
        service = LifecycleService(
            SystemLifecycleController(store, dispatcher, StaticVersions("1.0.0", latest)),
            AppLifecycleController(store, dispatcher),
            info_reader=SystemInfoReader(tmp_path / "system-info.json"),
        )
        return CliRunner().invoke(cli, list(args), obj={"service": service})
    return _invoke


def test_status(invoke):
    result = invoke("status")
    assert result.exit_code == 0
    assert "RUNNING" in result.output


def test_version_unknown_latest(invoke):
    result = invoke("version", latest=None)
    assert result.exit_code == 0
    assert "1.0.0" in result.output
    assert "unknown" in result.output


def test_update_then_update_again(invoke, store):
    result = invoke("update")
    assert result.exit_code == 0
    assert "Update requested" in result.output
    assert store.get_system_status() == SystemStatus.UPDATING

    result = invoke("update")
    assert result.exit_code == 1
    assert "OPERATION_IN_PROGRESS" in result.output


def test_update_already_latest(invoke, store):
    result = invoke("update", latest="1.0.0")
    assert result.exit_code == 1
    assert "ALREADY_UP_TO_DATE" in result.output
    assert store.get_system_status() == SystemStatus.RUNNING


def test_restart(invoke, dispatcher):
    result = invoke("restart")
    assert result.exit_code == 0
    assert len(dispatcher.history(EventType.RESTART)) == 1


def test_install_with_config_and_show(invoke, store):
    result = invoke("apps", "install", "calculator", "--config", '{"port": 8080}')
    assert result.exit_code == 0
    assert "installing" in result.output
    assert store.read("calculator").config == {"port": 8080}

    result = invoke("apps", "show", "calculator")
    assert result.exit_code == 0
    assert "installing" in result.output


def test_install_from_config_file(invoke, store, tmp_path):
    config_file = tmp_path / "calculator.yml"
    config_file.write_text("port: 9000\n")

    result = invoke("apps", "install", "calculator", "--config-file", str(config_file),
                    "--exposed", "--domain", "calc.example.com")

    assert result.exit_code == 0
    record = store.read("calculator")
    assert record.config == {"port": 9000}
    assert record.domain == "calc.example.com"


def test_install_exposed_without_domain(invoke):
    result = invoke("apps", "install", "calculator", "--exposed")
    assert result.exit_code == 1
    assert "INVALID_CONFIG" in result.output


def test_stop_twice(invoke, store):
    store.create("calculator", status=AppStatus.RUNNING)

    assert invoke("apps", "stop", "calculator").exit_code == 0
    result = invoke("apps", "stop", "calculator")

    assert result.exit_code == 1
    assert "INVALID_TRANSITION" in result.output


def test_start_unknown_app(invoke):
    result = invoke("apps", "start", "ghost")
    assert result.exit_code == 1
    assert "NOT_FOUND" in result.output


def test_list_and_filter(invoke, store):
    store.create("alpha", status=AppStatus.RUNNING)
    store.create("beta", status=AppStatus.STOPPED)

    result = invoke("apps", "list", "--status", "stopped")
    assert result.exit_code == 0
    assert "beta" in result.output
    assert "alpha" not in result.output


def test_list_empty(invoke):
    result = invoke("apps", "list")
    assert result.exit_code == 0
    assert "No apps" in result.output


def test_open_counts(invoke, store):
    store.create("calculator", status=AppStatus.RUNNING)
    invoke("apps", "open", "calculator")
    result = invoke("apps", "open", "calculator")

    assert result.exit_code == 0
    assert store.read("calculator").num_opened == 2


def test_info(invoke, tmp_path):
    (tmp_path / "system-info.json").write_text(json.dumps({"cpu": {"load": 3}}))
    result = invoke("info")
    assert result.exit_code == 0
    assert "memory" in result.output


def test_info_missing_snapshot(invoke):
    result = invoke("info")
    assert result.exit_code == 1
    assert "UPSTREAM_UNAVAILABLE" in result.output


def test_built_service_drains_spooled_events_on_exit(tmp_path, monkeypatch):
    store = StatusStore(tmp_path / "status.sqlite")
    spool = SpoolEventDispatcher(tmp_path / "events")
    service = LifecycleService(
        SystemLifecycleController(store, spool, StaticVersions("1.0.0", "1.1.0")),
        AppLifecycleController(store, spool),
    )
    monkeypatch.setattr(lifecycle, "build_lifecycle_service", lambda config: service)

    result = CliRunner().invoke(cli, ["apps", "install", "calculator"])

    assert result.exit_code == 0
    assert len(spool.pending_files()) == 1
    with pytest.raises(RuntimeError):
        spool.dispatch(EventType.START)
