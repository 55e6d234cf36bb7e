"""
Defines the command-line interface for the application using Typer.

``venaqui LINK [LOCATION]`` is shorthand for ``venaqui download LINK
[LOCATION]``; see ``with_default_command``.
"""

import asyncio
import logging
import os
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from venaqui import __version__
from venaqui.api.client import RealDebridClient
from venaqui.core.monitor import MonitorState
from venaqui.core.resolver import start_transfer
from venaqui.core.session import SessionRunner
from venaqui.daemon.client import Aria2Client
from venaqui.daemon.launcher import ensure_daemon_running
from venaqui.exceptions import TransferError, VenaquiError
from venaqui.storage.config_manager import ConfigManager, get_config_dir
from venaqui.utils.opener import get_file_opener
from venaqui.utils.path import (
    create_dir,
    default_download_dir,
    normalize_path,
    validate_link,
    validate_path,
)

from .display import SessionDisplay
from .formatters import (
    print_config,
    print_summary_panel,
    print_validation_table,
)

console = Console()

logging.basicConfig(
    level="WARNING",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("venaqui")
log.setLevel("INFO")

app = typer.Typer(
    name="venaqui",
    help=(
        "Download hoster links, torrents and magnets through Real-Debrid and"
        " aria2. Use 'venaqui <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)

CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"

DEFAULT_COMMAND = "download"
COMMAND_NAMES = {DEFAULT_COMMAND, "version", "init", "config", "diagnose"}


def with_default_command(args: list[str]) -> list[str]:
    """
    Inserts the ``download`` command in front of the first positional
    argument when it is not a command name, so a bare link works.
    """
    for index, arg in enumerate(args):
        if arg.startswith("-"):
            continue
        if arg in COMMAND_NAMES:
            return args
        return [*args[:index], DEFAULT_COMMAND, *args[index:]]
    return args


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """Real-Debrid + aria2 download manager."""
    if version:
        print_version()
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("venaqui").setLevel(log_level)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def print_version() -> None:
    console.print(f"[bold]venaqui[/bold] version [cyan]{__version__}[/cyan]")


@app.command(name="version")
def version_command():
    """Show version information."""
    print_version()


@app.command()
def init(
    token: str = typer.Argument(
        ..., help="Real-Debrid API token (https://real-debrid.com/apitoken)."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite existing token without asking."
    ),
):
    """Initialize configuration with a Real-Debrid API token."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite the token?")
    ):
        raise typer.Abort()

    async def _init_async():
        console.print("\n[cyan]Validating API token with Real-Debrid...[/cyan]")
        try:
            async with RealDebridClient(token) as client:
                user = await client.validate_token()
        except VenaquiError as e:
            console.print(
                f"[red]✗ Token validation failed: {escape(str(e))}[/red]"
            )
            raise typer.Exit(code=1) from e
        console.print(
            f"[green]✓ Authenticated as {escape(user.get('username', 'unknown'))}.[/green]"
        )

    asyncio.run(_init_async())

    config_manager = ConfigManager(CONFIG_FILE)
    config_manager.save_new_config({"api_token": token})
    console.print(f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    console.print("Ready to download! Try: [cyan]venaqui <LINK>[/cyan]")


@app.command(name="config")
def config_command():
    """Display the current configuration."""
    if not CONFIG_FILE.is_file():
        console.print(
            "[red]✗ Config file not found.[/] Run [cyan]venaqui init[/cyan] first."
        )
        raise typer.Exit(code=1)
    config_manager = ConfigManager(CONFIG_FILE)
    config = config_manager.load_config()
    config_data = config.model_dump(exclude={"config_path"})
    print_config(CONFIG_FILE, config_data)


def _resolve_download_dir(location: str | None, configured: str) -> str:
    download_dir = normalize_path(location or configured or default_download_dir())
    validate_path(download_dir)
    create_dir(Path(download_dir))
    return download_dir


async def _download_async(link: str, download_dir: str, config) -> MonitorState:
    if config.auto_start_daemon:
        await ensure_daemon_running(config.rpc_url, config.rpc_secret)

    async with (
        RealDebridClient(config.api_token) as api_client,
        Aria2Client(config.rpc_url, config.rpc_secret) as daemon,
    ):
        gid, filename = await start_transfer(
            link,
            download_dir,
            api_client,
            daemon,
            torrent_timeout=config.torrent_timeout,
        )
        log.debug(f"aria2 accepted the download as GID {gid}")

        runner = SessionRunner(
            daemon,
            get_file_opener(),
            lambda on_key: SessionDisplay(console, on_key),
            exit_on_complete=config.exit_on_complete,
        )
        return await runner.run(gid, filename)


@app.command(name=DEFAULT_COMMAND)
def download_command(
    link: str = typer.Argument(
        ..., help="Hoster URL, .torrent URL or file, or magnet link."
    ),
    location: str | None = typer.Argument(
        None, help="Download directory (default: config or ~/Downloads)."
    ),
    exit_on_complete: bool | None = typer.Option(
        None,
        "--exit-on-complete/--wait",
        help="Quit as soon as the download finishes instead of waiting for a key.",
    ),
    timeout: int | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Seconds to wait for Real-Debrid to cache a torrent (default 300).",
    ),
    auto_start: bool | None = typer.Option(
        None,
        "--auto-start/--no-auto-start",
        help="Start aria2c when no daemon answers on the RPC URL.",
    ),
):
    """Download a link through Real-Debrid and aria2."""
    cli_options = {
        key: value
        for key, value in {
            "exit_on_complete": exit_on_complete,
            "torrent_timeout": timeout,
            "auto_start_daemon": auto_start,
        }.items()
        if value is not None
    }

    validate_link(link)

    config_manager = ConfigManager(CONFIG_FILE)
    config = config_manager.load_config(cli_options)

    download_dir = _resolve_download_dir(location, config.download_dir)
    log.debug(f"Downloading to {escape(download_dir)}")

    final_state = asyncio.run(_download_async(link, download_dir, config))

    if final_state.error:
        raise TransferError(final_state.error)

    print_summary_panel(final_state, final_state.elapsed(time.monotonic()))


@app.command()
def diagnose():
    """Diagnose common configuration and connectivity issues."""
    console.print("\n[bold cyan]Running diagnostics...[/bold cyan]\n")
    issues_found = False
    config = None

    if CONFIG_FILE.is_file():
        console.print(
            f"[green]✓[/] Config file exists at: [dim]{escape(str(CONFIG_FILE))}[/dim]"
        )
    elif os.getenv("VENAQUI_API_TOKEN"):
        console.print("[yellow]○[/] No config file, using VENAQUI_API_TOKEN.")
    else:
        console.print("[red]✗ Config file not found.[/] Run [cyan]venaqui init[/cyan].")
        raise typer.Exit(code=1)

    try:
        config = ConfigManager(CONFIG_FILE).load_config()
        console.print("[green]✓[/] Configuration file is valid and can be loaded.")
        print_validation_table(
            config, normalize_path(config.download_dir or default_download_dir())
        )
    except VenaquiError as e:
        console.print(
            f"[red]✗ Configuration validation failed: {escape(str(e))}[/red]"
        )
        raise typer.Exit(code=1) from e

    async def check_services() -> bool:
        ok = True
        console.print("\n[dim]Checking the Real-Debrid API token...[/dim]")
        try:
            async with RealDebridClient(config.api_token) as client:
                user = await client.validate_token()
            console.print(
                f"[green]✓[/] Token is valid (user: {escape(user.get('username', '?'))})."
            )
        except VenaquiError as e:
            console.print(f"[red]✗ Real-Debrid check failed: {escape(str(e))}[/red]")
            ok = False

        console.print(f"\n[dim]Contacting aria2 at {escape(config.rpc_url)}...[/dim]")
        try:
            async with Aria2Client(config.rpc_url, config.rpc_secret) as daemon:
                info = await daemon.ping()
            console.print(
                f"[green]✓[/] aria2 {escape(info.get('version', ''))} is answering."
            )
        except VenaquiError as e:
            console.print(f"[red]✗ aria2 check failed: {escape(str(e))}[/red]")
            if config.auto_start_daemon:
                console.print("[dim]  It will be started on the next download.[/dim]")
            else:
                ok = False
        return ok

    if not asyncio.run(check_services()):
        issues_found = True

    console.print()
    if not issues_found:
        console.print(
            "[bold green]✓ All checks passed! Your setup looks good.[/bold green]\n"
        )
    else:
        console.print(
            "[bold red]✗ Some issues were found. "
            "Please review the messages above.[/bold red]\n"
        )
        raise typer.Exit(code=1)
