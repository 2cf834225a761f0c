"""
sshhop CLI.

Usage:
    sshhop connect db1
    sshhop connect 10.0.0.5
    sshhop connect            # interactive pick list
    sshhop --config servers.json list
"""

from __future__ import annotations

import asyncio

import click
from rich.console import Console
from rich.table import Table

from sshhop.config import Settings, get_settings
from sshhop.exceptions import SessionInterruptedError, SSHHopError
from sshhop.inventory import TargetResolver, load_inventory, prompt_for_target
from sshhop.logging import setup_logging
from sshhop.models import Target

console = Console()
err_console = Console(stderr=True)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    help="Path to the inventory file (default: $SSHHOP_INVENTORY_PATH or config.json)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level",
)
@click.version_option(package_name="sshhop")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    """sshhop: pick a server from an inventory and open an SSH terminal."""
    settings = get_settings()
    overrides: dict[str, object] = {}
    if config_path:
        overrides["inventory_path"] = config_path
    if log_level:
        overrides["log_level"] = log_level.upper()
    if overrides:
        settings = settings.model_copy(update=overrides)

    setup_logging(settings)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def get_resolver(settings: Settings, strict: bool = False) -> TargetResolver:
    """Load the inventory or exit with a one-line error."""
    try:
        inventory = load_inventory(settings.inventory_path)
    except SSHHopError as e:
        err_console.print(f"[red]Error loading config:[/red] {e}")
        raise SystemExit(1)
    return TargetResolver(inventory, fallback_to_first=settings.fallback_to_first and not strict)


# =============================================================================
# Connect Command
# =============================================================================


@main.command("connect")
@click.argument("selector", required=False)
@click.option("--alias", "-a", help="Server alias to connect to")
@click.option("--ip", "address", help="IP address of the server to connect to")
@click.option("--strict", is_flag=True, help="Fail instead of defaulting to the first server")
@click.pass_context
def connect_cmd(
    ctx: click.Context,
    selector: str | None,
    alias: str | None,
    address: str | None,
    strict: bool,
) -> None:
    """Open an interactive shell on a server.

    SELECTOR is matched against aliases (case-insensitive), then
    addresses. Without a match you are asked to pick from a list.

    Examples:

        sshhop connect db1

        sshhop connect --ip 10.0.0.5

        sshhop connect --strict
    """
    settings: Settings = ctx.obj["settings"]
    resolver = get_resolver(settings, strict=strict)

    try:
        target = _resolve_target(resolver, selector, alias, address)
    except SSHHopError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    console.print(f"Connecting to [cyan]{target.alias}[/cyan] ({target.endpoint})...", highlight=False)
    code = asyncio.run(_connect_async(target, settings))
    raise SystemExit(code)


def _resolve_target(
    resolver: TargetResolver,
    selector: str | None,
    alias: str | None,
    address: str | None,
) -> Target:
    if selector:
        target = resolver.by_alias(selector) or resolver.by_address(selector)
        if target is not None:
            return target
    return resolver.select(
        alias=alias or selector,
        address=address,
        chooser=lambda targets: prompt_for_target(targets, console),
    )


async def _connect_async(target: Target, settings: Settings) -> int:
    """Dial, run the interactive session and report how it ended."""
    from sshhop.terminal import ConsoleTerminal, TerminalController
    from sshhop.transport import connect

    controller: TerminalController | None = None
    try:
        session = await connect(target, settings)
        controller = TerminalController(session, ConsoleTerminal(), settings)
        await controller.run()
    except SSHHopError as e:
        if controller is not None and controller.started and controller.exit_message:
            console.print(controller.exit_message, markup=False, highlight=False)
        err_console.print(f"[red]Error:[/red] {e}")
        if isinstance(e, SessionInterruptedError):
            return 128 + e.signum
        return 1

    console.print(controller.exit_message, markup=False, highlight=False)
    return 0


# =============================================================================
# List Command
# =============================================================================


@main.command("list")
@click.pass_context
def list_cmd(ctx: click.Context) -> None:
    """List servers in the inventory."""
    settings: Settings = ctx.obj["settings"]
    targets = get_resolver(settings).list_all()

    if not targets:
        console.print("[yellow]No servers configured[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", width=3)
    table.add_column("Alias", width=16)
    table.add_column("Address", width=22)
    table.add_column("User", width=12)
    table.add_column("Auth", width=8)

    for i, target in enumerate(targets, start=1):
        table.add_row(str(i), target.alias, target.endpoint, target.user, target.auth_kind.value)

    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================


if __name__ == "__main__":
    main()
