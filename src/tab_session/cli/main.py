"""CLI entry point for tab-session.

Invoked as::

    tab-session [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m tab_session.cli.main

Every command hydrates the session from the snapshot file, applies its
change through the action facade, and lets the store persist the result.

Commands
--------
- version   — Show version information
- show      — List the open tabs
- open      — Open a URL (or search) in a new tab
- activate  — Make a tab active
- close     — Close a tab
- reopen    — Reopen the most recently closed tab
- settings  — Show or update settings
- export    — Print the snapshot as JSON or YAML
- clear     — Delete the stored snapshot
"""
from __future__ import annotations

import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tab_session.config import ConfigError, EngineConfig
from tab_session.session.facade import SessionActions
from tab_session.session.factory import CreateTabOptions
from tab_session.session.navigation import resolve_address
from tab_session.session.serializer import SnapshotSerializer
from tab_session.session.store import SessionStore
from tab_session.storage.filesystem import FilesystemBackend
from tab_session.storage.gateway import PersistenceGateway

console = Console()
err_console = Console(stderr=True)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _configure_logging(level: str) -> None:
    """Route the package logger to stderr through rich."""
    package_logger = logging.getLogger("tab_session")
    package_logger.setLevel(level)
    if not any(isinstance(handler, RichHandler) for handler in package_logger.handlers):
        package_logger.addHandler(RichHandler(console=err_console, show_path=False))


def _make_store(config: EngineConfig, *, hydrate: bool = True) -> SessionStore:
    """Build a store over the configured snapshot file."""
    gateway = PersistenceGateway(FilesystemBackend(config.snapshot_path))
    store = SessionStore(gateway)
    if hydrate:
        store.hydrate()
    return store


def _parse_setting(assignment: str) -> tuple[str, str, str | None]:
    """Split ``key=value`` or ``permission_policy.camera=allow``."""
    if "=" not in assignment:
        raise click.BadParameter(f"expected KEY=VALUE, got {assignment!r}")
    key, value = assignment.split("=", 1)
    key = key.strip()
    if "." in key:
        parent, child = key.split(".", 1)
        return parent, value.strip(), child
    return key, value.strip(), None


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="tab-session")
@click.option("--storage-dir", default=None, help="Directory holding the session snapshot.")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def cli(ctx: click.Context, storage_dir: str | None, verbose: bool) -> None:
    """Inspect and edit a persisted browser tab session."""
    try:
        config = EngineConfig.from_env(
            storage_dir=storage_dir,
            log_level="DEBUG" if verbose else None,
        )
    except ConfigError as exc:
        err_console.print(f"[red]Invalid configuration:[/red] {exc}")
        sys.exit(2)
    _configure_logging(config.log_level)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from tab_session import __version__

    console.print(f"[bold]tab-session[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@cli.command(name="show")
@click.pass_context
def show_command(ctx: click.Context) -> None:
    """List the open tabs in order."""
    store = _make_store(ctx.obj["config"])
    state = store.state

    table = Table(title="Tabs", show_lines=False)
    table.add_column("", width=1)
    table.add_column("Tab ID", style="cyan")
    table.add_column("Status")
    table.add_column("Title")
    table.add_column("URL", style="dim")
    table.add_column("Group")

    for tab in state.tabs:
        group = state.tab_groups.get(tab.group_id) if tab.group_id else None
        table.add_row(
            "[green]*[/green]" if tab.active else "",
            tab.id,
            tab.status.value,
            tab.title,
            tab.url,
            group.title if group else "",
        )

    console.print(table)
    console.print(
        f"\n[dim]{len(state.tabs)} open, {len(state.recently_closed)} recently closed, "
        f"{len(state.tab_groups)} groups.[/dim]"
    )


# ---------------------------------------------------------------------------
# open / activate / close / reopen
# ---------------------------------------------------------------------------


@cli.command(name="open")
@click.argument("address")
@click.option("--background", is_flag=True, help="Open without activating the tab.")
@click.option("--incognito", is_flag=True, help="Open a private tab.")
@click.pass_context
def open_command(ctx: click.Context, address: str, background: bool, incognito: bool) -> None:
    """Open ADDRESS (a URL or search text) in a new tab."""
    store = _make_store(ctx.obj["config"])
    actions = SessionActions(store)
    url = resolve_address(address, store.state.settings.default_search_engine)
    actions.record_suggestion(address)
    tab_id = actions.add_tab(
        CreateTabOptions(url=url, incognito=incognito),
        make_active=not background,
    )
    console.print(f"[green]Opened[/green] {tab_id} -> {url}")


@cli.command(name="activate")
@click.argument("tab_id")
@click.pass_context
def activate_command(ctx: click.Context, tab_id: str) -> None:
    """Make TAB_ID the active tab."""
    store = _make_store(ctx.obj["config"])
    if store.state.find_tab(tab_id) is None:
        console.print(f"[red]Tab not found:[/red] {tab_id}")
        sys.exit(1)
    SessionActions(store).set_active_tab(tab_id)
    console.print(f"[green]Active tab:[/green] {tab_id}")


@cli.command(name="close")
@click.argument("tab_id")
@click.pass_context
def close_command(ctx: click.Context, tab_id: str) -> None:
    """Close TAB_ID; the last remaining tab cannot be closed."""
    store = _make_store(ctx.obj["config"])
    if store.state.find_tab(tab_id) is None:
        console.print(f"[red]Tab not found:[/red] {tab_id}")
        sys.exit(1)
    before = store.state
    SessionActions(store).close_tab(tab_id)
    if store.state is before:
        console.print("[yellow]Refusing to close the last open tab.[/yellow]")
        return
    console.print(f"[green]Closed[/green] {tab_id}")


@cli.command(name="reopen")
@click.pass_context
def reopen_command(ctx: click.Context) -> None:
    """Reopen the most recently closed tab."""
    store = _make_store(ctx.obj["config"])
    tab_id = SessionActions(store).reopen_recently_closed()
    if tab_id is None:
        console.print("[yellow]Nothing to reopen.[/yellow]")
        return
    console.print(f"[green]Reopened[/green] {tab_id}")


# ---------------------------------------------------------------------------
# settings
# ---------------------------------------------------------------------------


@cli.command(name="settings")
@click.option(
    "--set",
    "assignments",
    multiple=True,
    help="KEY=VALUE to update; use permission_policy.camera=allow for permissions.",
)
@click.pass_context
def settings_command(ctx: click.Context, assignments: tuple[str, ...]) -> None:
    """Show settings, applying any --set updates first."""
    store = _make_store(ctx.obj["config"])

    if assignments:
        changes: dict[str, object] = {}
        for assignment in assignments:
            key, value, child = _parse_setting(assignment)
            if child is None:
                changes[key] = value
            else:
                nested = changes.setdefault(key, {})
                if not isinstance(nested, dict):
                    raise click.BadParameter(f"{key!r} set both directly and per field")
                nested[child] = value
        try:
            SessionActions(store).update_settings(**changes)
        except ValueError as exc:
            console.print(f"[red]Invalid setting:[/red] {exc}")
            sys.exit(2)

    settings = store.state.settings
    table = Table(title="Settings", show_lines=False)
    table.add_column("Setting", style="bold cyan")
    table.add_column("Value")
    for name, value in settings.model_dump(mode="json", exclude={"permission_policy"}).items():
        table.add_row(name, str(value))
    for name, value in settings.permission_policy.model_dump(mode="json").items():
        table.add_row(f"permission_policy.{name}", str(value))
    console.print(table)


# ---------------------------------------------------------------------------
# export / clear
# ---------------------------------------------------------------------------


@cli.command(name="export")
@click.option(
    "--format",
    "output_format",
    default="json",
    show_default=True,
    type=click.Choice(["json", "yaml"], case_sensitive=False),
    help="Output format.",
)
@click.pass_context
def export_command(ctx: click.Context, output_format: str) -> None:
    """Print the session snapshot."""
    store = _make_store(ctx.obj["config"])
    serializer = SnapshotSerializer()
    if output_format.lower() == "yaml":
        click.echo(serializer.to_yaml(store.state))
    else:
        click.echo(serializer.to_json(store.state, indent=2))


@cli.command(name="clear")
@click.confirmation_option(prompt="Delete the stored session snapshot?")
@click.pass_context
def clear_command(ctx: click.Context) -> None:
    """Delete the stored session snapshot."""
    store = _make_store(ctx.obj["config"], hydrate=False)
    if not store.clear_persisted():
        console.print("[red]Unable to clear the session snapshot.[/red]")
        sys.exit(1)
    console.print("[green]Session snapshot cleared.[/green]")


if __name__ == "__main__":
    cli()
