"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from venaqui.core.monitor import MonitorState
from venaqui.models.config import AppConfig
from venaqui.utils.formatting import format_duration, format_size

SECRET_KEYS = ("api_token", "rpc_secret")


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Run `venaqui init <API_TOKEN>` to create the configuration file.",
            "• Check the values with `venaqui config`.",
            "• VENAQUI_API_TOKEN can be used instead of a config file.",
        ],
        "AuthenticationError": [
            "• Verify the API token in your configuration file.",
            "• Get a new token at https://real-debrid.com/apitoken.",
            "• Run `venaqui init <API_TOKEN> --force` to replace it.",
        ],
        "RateLimitError": [
            "• Real-Debrid is throttling requests from your account.",
            "• Wait a minute before trying again.",
        ],
        "RealDebridError": [
            "• The hoster may not be supported or may be down.",
            "• Check the link in a browser.",
            "• See https://real-debrid.com/compare for supported hosters.",
        ],
        "TorrentError": [
            "• The torrent may have no seeders or may be blocked.",
            "• Check its status on https://real-debrid.com/torrents.",
        ],
        "TorrentTimeoutError": [
            "• Real-Debrid has not cached the torrent yet.",
            "• Raise the limit with `--timeout` or `torrent_timeout` in the config.",
        ],
        "DaemonUnavailableError": [
            "• Make sure aria2 is installed (`aria2c --version`).",
            "• Start it manually: `aria2c --enable-rpc --rpc-listen-all`.",
            "• Check `rpc_url` and `rpc_secret` in the configuration.",
        ],
        "DaemonError": [
            "• aria2 rejected the request. Check `rpc_secret` in the configuration.",
            "• Run `venaqui diagnose` to test the daemon connection.",
        ],
        "TransferError": [
            "• aria2 could not complete the transfer. The link may have expired.",
            "• Run the command again to request a fresh link.",
        ],
        "InvalidLinkError": [
            "• Links must start with http:// or https://.",
            "• Magnet links must start with magnet:?.",
        ],
        "InvalidPathError": [
            "• The download location must be an absolute path.",
            "• The directory (or its parent) must exist and be writable.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration, hiding sensitive data."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if key in SECRET_KEYS and value:
            value = "(hidden)"
        content += f"{key} = {escape(str(value))}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{escape(str(config_path))}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: AppConfig, download_dir: str):
    """Displays the settings a download is about to use."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("aria2 RPC:", f"[dim]{escape(config.rpc_url)}[/dim]")
    table.add_row("RPC Secret:", "✓ Set" if config.rpc_secret else "✗ Not set")
    table.add_row(
        "Auto-start aria2:", "✓ Enabled" if config.auto_start_daemon else "✗ Disabled"
    )
    table.add_row("Torrent Timeout:", format_duration(config.torrent_timeout))
    table.add_row("Download Location:", f"[dim]{escape(download_dir)}[/dim]")

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_summary_panel(state: MonitorState, duration_s: float):
    """Displays the final summary of a finished session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=16)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("File:", Text(state.filename))
    status = state.status
    if status is not None:
        stats_table.add_row(
            "Downloaded:",
            f"[cyan]{format_size(status.completed_length)}[/cyan] / "
            f"{format_size(status.total_length)}",
        )
        if status.file_path:
            stats_table.add_row(
                "Location:", f"[dim]{escape(status.file_path)}[/dim]"
            )

    if duration_s > 0 and status is not None:
        avg_speed = status.completed_length / duration_s
        stats_table.add_row(
            "Avg. Speed:", f"[magenta]{format_size(int(avg_speed))}/s[/magenta]"
        )
    if state.speed_history:
        stats_table.add_row(
            "Peak Speed:",
            f"[magenta]{format_size(max(state.speed_history))}/s[/magenta]",
        )
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    if state.is_complete:
        title = "[bold]Download Complete![/bold]"
        border_color = "green"
    else:
        title = "[bold]Download Stopped[/bold]"
        border_color = "yellow"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
