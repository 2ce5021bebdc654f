"""CLI main entry point"""

import functools
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tipi import __version__
from tipi.core.config import get_config
from tipi.core.errors import LifecycleError
from tipi.store import AppRecord, AppStatus, SystemStatus

console = Console()

_SYSTEM_STYLE = {
    SystemStatus.RUNNING: "green",
    SystemStatus.UPDATING: "yellow",
    SystemStatus.RESTARTING: "yellow",
}


def _status_style(status: AppStatus) -> str:
    if status == AppStatus.RUNNING:
        return "green"
    if status in (AppStatus.STOPPED, AppStatus.MISSING):
        return "dim"
    return "yellow"


def _service(ctx: click.Context):
    """Build the lifecycle service on first use (tests inject one via obj)"""
    obj = ctx.ensure_object(dict)
    if "service" not in obj:
        from tipi.core.lifecycle import build_lifecycle_service
        service = build_lifecycle_service(get_config())
        ctx.find_root().call_on_close(service.close)
        obj["service"] = service
    return obj["service"]


def handle_errors(f):
    """Render LifecycleError as a one-line failure and exit 1"""
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except LifecycleError as e:
            console.print(f"[red]✗ {e.code.value}[/red] {escape(e.message)}")
            sys.exit(1)
    return wrapper


def _print_record(record: AppRecord):
    style = _status_style(record.status)
    pending = " [dim](in progress)[/dim]" if record.is_transient else ""
    console.print(f"[bold]{escape(record.app_id)}[/bold]: [{style}]{record.status.value}[/{style}]{pending}")


@click.group()
@click.version_option(version=__version__, prog_name="tipi")
@click.pass_context
def cli(ctx):
    """Tipi - lifecycle control for a self-hosted app platform"""
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=get_config().log_level_value,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


# ========== System ==========

@cli.command()
@click.pass_context
@handle_errors
def status(ctx):
    """Show the system status"""
    current = _service(ctx).get_system_status()
    style = _SYSTEM_STYLE[current]
    console.print(f"System: [{style}]{current.value}[/{style}]")


@cli.command()
@click.pass_context
@handle_errors
def version(ctx):
    """Show current and latest version"""
    info = _service(ctx).get_version()
    console.print(f"Current: [cyan]{info.current}[/cyan]")
    if info.latest:
        console.print(f"Latest:  [cyan]{info.latest}[/cyan]")
    else:
        console.print("Latest:  [yellow]unknown[/yellow]")


@cli.command()
@click.pass_context
@handle_errors
def info(ctx):
    """Show host CPU, disk and memory usage"""
    snapshot = _service(ctx).get_system_info()

    table = Table(title="System Info")
    table.add_column("Resource", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("Used", justify="right")
    table.add_column("Available", justify="right")
    table.add_row("cpu load", "", f"{snapshot.cpu.load:g}", "")
    table.add_row(
        "disk", f"{snapshot.disk.total:g}", f"{snapshot.disk.used:g}", f"{snapshot.disk.available:g}"
    )
    table.add_row(
        "memory", f"{snapshot.memory.total:g}", f"{snapshot.memory.used:g}", f"{snapshot.memory.available:g}"
    )
    console.print(table)


@cli.command()
@click.pass_context
@handle_errors
def update(ctx):
    """Update the system to the latest version"""
    event = _service(ctx).request_system_update()
    console.print(f"[green]✓[/green] Update requested ({event.payload.get('current')} -> {event.payload.get('target')})")
    console.print(f"  Event: {event.event_id}")


@cli.command()
@click.pass_context
@handle_errors
def restart(ctx):
    """Restart the system"""
    event = _service(ctx).request_system_restart()
    console.print("[green]✓[/green] Restart requested")
    console.print(f"  Event: {event.event_id}")


# ========== Apps ==========

@cli.group()
def apps():
    """Manage hosted applications"""
    pass


@apps.command("list")
@click.option(
    "--status", "status_filter",
    type=click.Choice([s.value for s in AppStatus]),
    default=None,
    help="Only show apps in this status",
)
@click.pass_context
@handle_errors
def list_apps(ctx, status_filter: Optional[str]):
    """List installed applications"""
    records = _service(ctx).list_apps(AppStatus(status_filter) if status_filter else None)

    if not records:
        console.print("[dim]No apps[/dim]")
        return

    table = Table(title="Apps")
    table.add_column("App", style="cyan")
    table.add_column("Status")
    table.add_column("Exposed")
    table.add_column("Domain")
    table.add_column("Opened", justify="right")

    for record in records:
        style = _status_style(record.status)
        table.add_row(
            escape(record.app_id),
            f"[{style}]{record.status.value}[/{style}]",
            "yes" if record.exposed else "no",
            escape(record.domain or ""),
            str(record.num_opened),
        )
    console.print(table)


@apps.command()
@click.argument("app_id")
@click.pass_context
@handle_errors
def show(ctx, app_id: str):
    """Show one application"""
    record = _service(ctx).get_app(app_id)
    _print_record(record)
    console.print(f"  Exposed: {'yes' if record.exposed else 'no'}")
    if record.domain:
        console.print(f"  Domain:  {escape(record.domain)}")
    console.print(f"  Opened:  {record.num_opened}")
    console.print(f"  Version: {record.version}")
    if record.config:
        console.print(f"  Config:  {escape(str(record.config))}")


@apps.command()
@click.argument("app_id")
@click.option("--config", "config_text", default=None, help="Configuration as JSON or YAML text")
@click.option(
    "--config-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read configuration from a JSON or YAML file",
)
@click.option("--exposed", is_flag=True, help="Expose the app outside the host")
@click.option("--domain", default=None, help="Domain to bind when exposed")
@click.pass_context
@handle_errors
def install(ctx, app_id: str, config_text: Optional[str], config_file: Optional[Path],
            exposed: bool, domain: Optional[str]):
    """Install an application"""
    if config_text and config_file:
        raise click.UsageError("Use either --config or --config-file, not both")

    raw = config_file.read_text(encoding="utf-8") if config_file else config_text
    record = _service(ctx).install_app(app_id, raw, exposed=exposed, domain=domain)
    _print_record(record)


def _transition_command(name: str, method: str, help_text: str):
    @apps.command(name, help=help_text)
    @click.argument("app_id")
    @click.pass_context
    @handle_errors
    def command(ctx, app_id: str):
        record = getattr(_service(ctx), method)(app_id)
        _print_record(record)
    return command


start = _transition_command("start", "start_app", "Start a stopped application")
stop = _transition_command("stop", "stop_app", "Stop a running application")
uninstall = _transition_command("uninstall", "uninstall_app", "Uninstall an application")
update_app = _transition_command("update", "update_app", "Update an application")


@apps.command("open")
@click.argument("app_id")
@click.pass_context
@handle_errors
def open_app(ctx, app_id: str):
    """Record that an application was opened"""
    record = _service(ctx).open_app(app_id)
    console.print(f"{escape(record.app_id)} opened {record.num_opened} time(s)")


if __name__ == "__main__":
    cli()
