"""
Renders the monitor state as Rich renderables.

Rendering is a pure function of the monitor state, the current time and an
immutable ``Theme``; the live display owns the only console.
"""

import io
from dataclasses import dataclass

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from venaqui.core.monitor import MonitorState, Phase
from venaqui.utils.formatting import format_duration, format_size, format_speed

TITLE = "Venaqui - Download Manager"
COMPLETE_HELP = "Press 'o' to open file | 'd' to show in directory | 'q' to quit"
ACTIVE_HELP = "Press 'q' or 'Esc' to quit"


@dataclass(frozen=True)
class Theme:
    """Colors and dimensions of the transfer view."""

    primary: str = "#00D9FF"
    secondary: str = "#FF6B9D"
    success: str = "#4CAF50"
    warning: str = "#FFC107"
    error: str = "#F44336"
    text: str = "#E0E0E0"
    dim: str = "#757575"
    border: str = "#424242"
    bar_width: int = 60
    graph_width: int = 60
    graph_height: int = 8


DEFAULT_THEME = Theme()

STATUS_LABELS = {
    Phase.ACTIVE: "● Active",
    Phase.COMPLETE: "✓ Complete",
    Phase.ERROR: "✗ Error",
    Phase.WAITING: "⏳ Waiting",
    Phase.PAUSED: "⏸ Paused",
    Phase.REMOVED: "Removed",
}


def status_label(state: MonitorState) -> str:
    if state.status is None:
        return "Initializing"
    phase = state.phase
    if phase in STATUS_LABELS and phase.value == state.status.status:
        return STATUS_LABELS[phase]
    raw = state.status.status
    return raw[:1].upper() + raw[1:].lower()


def _status_style(state: MonitorState, theme: Theme) -> str:
    phase = state.phase
    if phase is Phase.ACTIVE:
        return f"bold {theme.primary}"
    if phase is Phase.ERROR:
        return f"bold {theme.error}"
    return f"bold {theme.success}"


def _title(theme: Theme) -> Text:
    return Text(f" {TITLE} ", style=f"bold {theme.primary}")


def _help(text: str, theme: Theme) -> Text:
    return Text(text, style=f"italic {theme.dim}")


def _box(content: RenderableType, theme: Theme, title: str | None = None) -> Panel:
    return Panel(
        content,
        title=title,
        title_align="left",
        border_style=theme.border,
        padding=(1, 2),
        expand=False,
    )


def _label_grid(theme: Theme) -> Table:
    grid = Table.grid(padding=(0, 1))
    grid.add_column(style=theme.dim, min_width=12)
    grid.add_column()
    return grid


def render_progress_bar(percent: float, theme: Theme = DEFAULT_THEME) -> Text:
    """A fixed-width bar filled in proportion to ``percent`` (clamped)."""
    width = theme.bar_width
    filled = min(width, max(0, int(percent / 100 * width)))
    bar = Text()
    for i in range(width):
        if i < filled:
            bar.append("█" if i < filled - 2 else "▊", style=theme.primary)
        else:
            bar.append("░", style=theme.dim)
    return bar


def render_speed_graph(history: tuple[int, ...], theme: Theme = DEFAULT_THEME) -> Text:
    """
    Column graph of the most recent speed samples, scaled to the largest
    sample in the window. The peak value labels the top row.
    """
    if not history:
        return Text("No data yet...", style=theme.dim)

    samples = history[-theme.graph_width :]
    height = theme.graph_height
    peak = max(max(samples), 1)
    levels = [max(1, round(s / peak * height)) if s > 0 else 0 for s in samples]

    graph = Text()
    for row in range(height, 0, -1):
        line = "".join("█" if level >= row else " " for level in levels)
        graph.append(line, style=theme.primary)
        if row == height:
            graph.append(f" {format_speed(peak)}", style=theme.dim)
        if row > 1:
            graph.append("\n")
    return graph


def _render_error(state: MonitorState, theme: Theme) -> RenderableType:
    return Group(
        Text(f"✗ Error: {state.error}", style=f"bold {theme.error}"),
        Text(),
        _help("Exiting...", theme),
    )


def _render_terminated(state: MonitorState, theme: Theme) -> RenderableType:
    if state.is_complete:
        return Text("✓ Download complete!", style=f"bold {theme.success}")
    return Text("Exiting...")


def _render_initializing(theme: Theme) -> RenderableType:
    return Group(_title(theme), Text(), Text("Initializing download..."))


def _render_complete(state: MonitorState, theme: Theme) -> RenderableType:
    status = state.status
    parts: list[RenderableType] = [
        _title(theme),
        Text(),
        Text("✓ Download complete!", style=f"bold {theme.success}"),
        Text(),
    ]
    location = status.file_path or status.file_directory
    if location:
        grid = _label_grid(theme)
        grid.add_row("Location:", Text(location, style=f"bold {theme.text}"))
        if status.total_length:
            grid.add_row("Size:", format_size(status.total_length))
        parts.extend([grid, Text()])
    if state.notice:
        parts.extend([Text(f"⚠ {state.notice}", style=theme.warning), Text()])
    parts.append(_help(COMPLETE_HELP, theme))
    return Group(*parts)


def _render_active(state: MonitorState, now: float, theme: Theme) -> RenderableType:
    status = state.status

    file_grid = _label_grid(theme)
    file_grid.add_row("File:", Text(state.filename, style=f"bold {theme.text}"))
    file_grid.add_row(
        "Status:", Text(status_label(state), style=_status_style(state, theme))
    )

    progress = status.progress
    progress_text = Text()
    progress_text.append(format_size(status.completed_length), style="bold")
    progress_text.append(" / ")
    progress_text.append(format_size(status.total_length), style="bold")
    progress_text.append(f" ({progress:.1f}%)")
    progress_box = Group(
        Text("Progress:", style=theme.dim),
        render_progress_bar(progress, theme),
        progress_text,
    )

    stats = Table.grid(padding=(0, 1))
    stats.add_column(style=theme.dim, min_width=12)
    stats.add_column(min_width=14)
    stats.add_column(style=theme.dim, min_width=12)
    stats.add_column()
    eta = status.eta
    stats.add_row(
        "Speed:",
        Text(format_speed(status.download_speed), style=f"bold {theme.primary}"),
        "Elapsed:",
        Text(format_duration(state.elapsed(now)), style="bold"),
    )
    stats.add_row(
        "Upload:",
        Text(format_speed(status.upload_speed), style="bold"),
        "ETA:",
        Text(format_duration(eta) if eta else "Calculating...", style="bold"),
    )
    stats.add_row(
        "Connections:",
        Text(str(status.connections), style="bold"),
        "Remaining:",
        Text(format_size(status.remaining), style="bold"),
    )

    parts: list[RenderableType] = [
        _title(theme),
        _box(file_grid, theme),
        _box(progress_box, theme),
        _box(stats, theme),
    ]
    if state.speed_history:
        parts.append(
            _box(
                Group(
                    Text("Speed History:", style=theme.dim),
                    render_speed_graph(state.speed_history, theme),
                ),
                theme,
            )
        )
    parts.append(_help(ACTIVE_HELP, theme))
    return Group(*parts)


def render(
    state: MonitorState, now: float, theme: Theme = DEFAULT_THEME
) -> RenderableType:
    """Selects and builds the view for the monitor's current phase."""
    if state.error:
        return _render_error(state, theme)
    if state.terminated:
        return _render_terminated(state, theme)
    if state.status is None:
        return _render_initializing(theme)
    if state.is_complete:
        return _render_complete(state, theme)
    return _render_active(state, now, theme)


def render_text(
    state: MonitorState, now: float, theme: Theme = DEFAULT_THEME, width: int = 100
) -> str:
    """Renders a frame to plain text, without colors."""
    buffer = io.StringIO()
    console = Console(
        file=buffer, width=width, color_system=None, force_terminal=False
    )
    console.print(render(state, now, theme))
    return buffer.getvalue()
