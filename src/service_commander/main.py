# noqa: D401
"""CLI entry point for Service Commander."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import Settings, get_settings
from .errors import ServiceCommanderError
from .logging import configure_logging
from .orchestrator import LifecycleOrchestrator
from .registry import ServiceRegistry, load_registry
from .types import Operation

app = typer.Typer(
    name="sc",
    help="Service Commander - start, stop and check services along with their dependencies",
    add_completion=False,
)

console = Console()


@dataclass
class CliState:
    """Options shared by every command."""

    settings: Settings
    services_dirs: List[Path] = field(default_factory=list)

    def registry(self) -> ServiceRegistry:
        return load_registry(self.services_dirs or self.settings.services_dirs)

    def orchestrator(self) -> LifecycleOrchestrator:
        return LifecycleOrchestrator(self.registry(), settings=self.settings)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Service Commander version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
    services_dir: Optional[List[Path]] = typer.Option(
        None,
        "--services-dir",
        "-d",
        help="Directory of service definition files (repeatable)",
    ),
    logs_dir: Optional[Path] = typer.Option(
        None,
        "--logs-dir",
        help="Directory for operation log files",
    ),
) -> None:
    """Service Commander - start, stop and check services along with their dependencies."""
    settings = get_settings()
    if logs_dir is not None:
        settings = settings.model_copy(update={"logs_dir": logs_dir})
    configure_logging("DEBUG" if verbose else settings.log_level, json=settings.log_json)
    ctx.obj = CliState(settings=settings, services_dirs=list(services_dir or []))


def _run(ctx: typer.Context, operation: Operation, service: str, status: str) -> None:
    state: CliState = ctx.obj
    try:
        orchestrator = state.orchestrator()
        with console.status(f"[bold]{status} {service}..."):
            log_file = orchestrator.execute(operation, service)
    except ServiceCommanderError as e:
        console.print(f"[red]Error: {e}[/red]")
        if e.log_file:
            console.print(f"[dim]  For details, see log file at: {e.log_file}[/dim]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] {operation.value.capitalize()} of '{service}' complete")
    if log_file:
        console.print(f"[dim]  For details, see log file at: {log_file}[/dim]")


@app.command()
def start(
    ctx: typer.Context,
    service: str = typer.Argument(..., help="Service name"),
) -> None:
    """Start a service, starting its dependencies first."""
    _run(ctx, Operation.START, service, "Starting")


@app.command()
def stop(
    ctx: typer.Context,
    service: str = typer.Argument(..., help="Service name"),
) -> None:
    """Stop a service, stopping services that depend on it first."""
    _run(ctx, Operation.STOP, service, "Stopping")


@app.command()
def restart(
    ctx: typer.Context,
    service: str = typer.Argument(..., help="Service name"),
) -> None:
    """Restart a service."""
    _run(ctx, Operation.RESTART, service, "Restarting")


@app.command()
def check(
    ctx: typer.Context,
    service: str = typer.Argument(..., help="Service name"),
) -> None:
    """Check whether a service is running (exit status 1 if not)."""
    state: CliState = ctx.obj
    try:
        alive = state.orchestrator().check(service)
    except ServiceCommanderError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if alive:
        console.print(f"Service '{service}' is [green]RUNNING[/green]")
    else:
        console.print(f"Service '{service}' is [red]NOT RUNNING[/red]")
        raise typer.Exit(1)


@app.command()
def info(
    ctx: typer.Context,
    service: str = typer.Argument(..., help="Service name"),
) -> None:
    """Show a service definition."""
    state: CliState = ctx.obj
    try:
        data = state.orchestrator().info(service)
    except ServiceCommanderError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"{data['name']} ({data['friendly_name']})", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    for key, value in data.items():
        if key in ("name", "friendly_name") or value is None:
            continue
        if isinstance(value, list):
            value = "\n".join(value) if value else "-"
        table.add_row(key.replace("_", " ").capitalize(), str(value))

    console.print(table)


@app.command("list")
def list_services(ctx: typer.Context) -> None:
    """List all known services and whether they are running."""
    state: CliState = ctx.obj
    try:
        registry = state.registry()
        orchestrator = LifecycleOrchestrator(registry, settings=state.settings)
    except ServiceCommanderError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not len(registry):
        console.print("[yellow]No services defined[/yellow]")
        return

    table = Table(title="Services")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Status")

    for svc in sorted(registry, key=lambda s: s.name):
        try:
            status = "[green]RUNNING[/green]" if orchestrator.check(svc.name) else "[dim]stopped[/dim]"
        except ServiceCommanderError as e:
            status = f"[red]error: {e}[/red]"
        table.add_row(svc.name, svc.display_name, status)

    console.print(table)


if __name__ == "__main__":
    app()
