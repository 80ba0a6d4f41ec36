"""CLI commands for nix-installer."""

import asyncio
import json
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from nix_installer import __logo__, __version__
from nix_installer.action.base import ActionDescription, StatefulAction
from nix_installer.action.errors import ActionError
from nix_installer.settings import InitSystem

app = typer.Typer(
    name="nix-installer",
    help=f"{__logo__} nix-installer - install and run the Determinate Nix daemon",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} nix-installer v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
):
    """nix-installer - install and run the Determinate Nix daemon."""
    pass


# ============================================================================
# Helpers
# ============================================================================


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logger.enable("nix_installer")
    else:
        logger.disable("nix_installer")


def _print_descriptions(title: str, descriptions: list[ActionDescription]) -> None:
    """Render action descriptions as a numbered preview."""
    console.print(f"[bold]{title}[/bold]")
    if not descriptions:
        console.print("  [dim]Nothing to do[/dim]")
        return
    for i, desc in enumerate(descriptions, 1):
        console.print(f"  {i}. {desc.description}")
        for step in desc.explanation:
            console.print(f"     [dim]-[/dim] {step}")


def _confirm(question: str, no_confirm: bool) -> None:
    if no_confirm:
        return
    if not typer.confirm(question, default=False):
        console.print("[yellow]Aborted[/yellow]")
        raise typer.Exit(1)


def _settings(init: InitSystem | None, start_daemon: bool | None):
    """Merge CLI overrides over the configured install settings."""
    from nix_installer.config.loader import load_config

    config = load_config()
    settings = config.install
    updates = {}
    if init is not None:
        updates["init"] = init
    if start_daemon is not None:
        updates["start_daemon"] = start_daemon
    return config, settings.model_copy(update=updates)


def _receipt_path(receipt: Path | None) -> Path:
    if receipt is not None:
        return receipt
    from nix_installer.config.loader import load_config

    return load_config().receipt_path


def _warn_ignored_overrides(settings, init: InitSystem | None, start_daemon: bool | None) -> None:
    """A resumed install keeps the settings it was planned with."""
    ignored = []
    if init is not None and init != settings.init:
        ignored.append(f"--init {init} (receipt: {settings.init})")
    if start_daemon is not None and start_daemon != settings.start_daemon:
        flag = "--start-daemon" if start_daemon else "--no-start-daemon"
        ignored.append(f"{flag} (receipt: start daemon {settings.start_daemon})")
    for item in ignored:
        console.print(f"[yellow]Warning:[/yellow] ignoring {item}")


def _load_plan(receipt: Path):
    from nix_installer.plan import InstallPlan

    try:
        return InstallPlan.load_receipt(receipt)
    except ActionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


# ============================================================================
# Plan / Install / Uninstall
# ============================================================================

_INIT_OPTION = typer.Option(None, "--init", help="Init system to configure")
_START_OPTION = typer.Option(
    None, "--start-daemon/--no-start-daemon", help="Start the daemon after registering it"
)


@app.command()
def plan(
    init: InitSystem = _INIT_OPTION,
    start_daemon: bool = _START_OPTION,
    out: Path = typer.Option(None, "--out", "-o", help="Write the planned receipt here"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logs"),
):
    """Show what an install would do, without changing anything."""
    from nix_installer.plan import InstallPlan

    _configure_logging(verbose)
    _, settings = _settings(init, start_daemon)
    try:
        install_plan = InstallPlan.plan(settings)
    except ActionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    _print_descriptions(
        f"Install plan ({settings.init}, start daemon: {settings.start_daemon})",
        install_plan.describe_install(),
    )
    if out is not None:
        out.write_text(json.dumps(install_plan.to_dict(), indent=2))
        console.print(f"[green]✓[/green] Plan written: {out}")


@app.command()
def install(
    init: InitSystem = _INIT_OPTION,
    start_daemon: bool = _START_OPTION,
    receipt: Path = typer.Option(None, "--receipt", help="Install receipt location"),
    no_confirm: bool = typer.Option(False, "--no-confirm", help="Do not ask before acting"),
    rollback_on_failure: bool = typer.Option(
        False, "--rollback-on-failure", help="Revert completed actions if the install fails"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logs"),
):
    """Install and register the Nix daemon, resuming an interrupted install."""
    from nix_installer.plan import InstallPlan

    _configure_logging(verbose)
    config, settings = _settings(init, start_daemon)
    receipt_path = receipt or config.receipt_path

    if receipt_path.exists():
        install_plan = _load_plan(receipt_path)
        console.print(f"Resuming install from {receipt_path}")
        _warn_ignored_overrides(install_plan.settings, init, start_daemon)
    else:
        try:
            install_plan = InstallPlan.plan(settings)
        except ActionError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    _print_descriptions("Install plan", install_plan.describe_install())
    _confirm("Proceed with the install?", no_confirm)

    try:
        asyncio.run(install_plan.install(receipt_path))
    except ActionError as e:
        console.print(f"[red]Error:[/red] {e}")
        if rollback_on_failure:
            console.print("[yellow]Reverting completed actions...[/yellow]")
            try:
                asyncio.run(install_plan.uninstall(receipt_path))
            except ActionError as revert_error:
                console.print(f"[red]Revert failed:[/red] {revert_error}")
        else:
            console.print(
                f"Run [cyan]nix-installer uninstall --receipt {receipt_path}[/cyan] to roll back"
            )
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Installed, receipt: {receipt_path}")


@app.command()
def uninstall(
    receipt: Path = typer.Option(None, "--receipt", help="Install receipt location"),
    no_confirm: bool = typer.Option(False, "--no-confirm", help="Do not ask before acting"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logs"),
):
    """Revert every completed install action recorded in the receipt."""
    _configure_logging(verbose)
    receipt_path = _receipt_path(receipt)
    if not receipt_path.exists():
        console.print(f"[red]Error:[/red] No install receipt at {receipt_path}")
        raise typer.Exit(1)

    install_plan = _load_plan(receipt_path)
    _print_descriptions("Uninstall plan", install_plan.describe_uninstall())
    _confirm("Proceed with the uninstall?", no_confirm)

    try:
        asyncio.run(install_plan.uninstall(receipt_path))
    except ActionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print("[green]✓[/green] Uninstalled")


# ============================================================================
# Status
# ============================================================================


@app.command()
def status(
    receipt: Path = typer.Option(None, "--receipt", help="Install receipt location"),
):
    """Show the actions recorded in the install receipt."""
    receipt_path = _receipt_path(receipt)
    if not receipt_path.exists():
        console.print(f"[yellow]No install receipt at[/yellow] {receipt_path}")
        raise typer.Exit(1)

    install_plan = _load_plan(receipt_path)

    table = Table(title=f"Install Receipt ({install_plan.version})")
    table.add_column("Action", style="cyan")
    table.add_column("Synopsis")
    table.add_column("Completed")

    for action in install_plan.actions:
        _add_status_rows(table, action, depth=0)

    console.print(table)


def _add_status_rows(table: Table, action: StatefulAction, depth: int) -> None:
    done = "[green]yes[/green]" if action.completed else "[dim]no[/dim]"
    table.add_row("  " * depth + action.tag.name, action.action.tracing_synopsis(), done)
    for child in action.action.children():
        _add_status_rows(table, child, depth + 1)


if __name__ == "__main__":
    app()
