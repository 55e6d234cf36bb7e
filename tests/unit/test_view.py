from dataclasses import replace

import pytest

from venaqui.cli.view import (
    ACTIVE_HELP,
    COMPLETE_HELP,
    DEFAULT_THEME,
    Theme,
    render_progress_bar,
    render_speed_graph,
    render_text,
    status_label,
)
from venaqui.core import monitor
from venaqui.core.monitor import StatusFetched, Tick, UserQuit


def _apply(state, status, at):
    state, effects = monitor.update(state, Tick(at))
    return monitor.update(state, StatusFetched(effects[0].seq, status, at))[0]


class TestProgressBar:
    @pytest.mark.parametrize("percent", [0, 37.5, 100])
    def test_fixed_width(self, percent):
        assert len(render_progress_bar(percent).plain) == DEFAULT_THEME.bar_width

    def test_empty_and_full(self):
        assert set(render_progress_bar(0).plain) == {"░"}
        assert "░" not in render_progress_bar(100).plain

    @pytest.mark.parametrize("percent", [-20, 250])
    def test_out_of_range_is_clamped(self, percent):
        bar = render_progress_bar(percent).plain
        assert len(bar) == DEFAULT_THEME.bar_width

    def test_half(self):
        bar = render_progress_bar(50, Theme(bar_width=10)).plain
        assert bar.count("░") == 5


class TestSpeedGraph:
    def test_no_data(self):
        assert render_speed_graph(()).plain == "No data yet..."

    def test_scaled_to_peak(self):
        theme = Theme(graph_height=4, graph_width=10)
        lines = render_speed_graph((1024, 2048, 4096), theme).plain.split("\n")
        assert len(lines) == 4
        assert lines[0].startswith("  █")
        assert "4.0 KB/s" in lines[0]
        assert lines[-1].startswith("███")

    def test_only_last_window_is_drawn(self):
        theme = Theme(graph_height=2, graph_width=3)
        lines = render_speed_graph((9, 9, 9, 1, 1, 1), theme).plain.split("\n")
        assert lines[-1] == "███"
        assert "1 B/s" in lines[0]


class TestStatusLabel:
    def test_labels(self, started_state, make_status):
        state, _ = started_state
        assert status_label(state) == "Initializing"
        for raw, label in [
            ("active", "● Active"),
            ("waiting", "⏳ Waiting"),
            ("paused", "⏸ Paused"),
            ("complete", "✓ Complete"),
        ]:
            assert status_label(replace(state, status=make_status(status=raw))) == label

    def test_unknown_status_is_capitalized(self, started_state, make_status):
        state, _ = started_state
        state = replace(state, status=make_status(status="SEEDING"))
        assert status_label(state) == "Seeding"


class TestRender:
    def test_initializing(self, started_state):
        state, _ = started_state
        assert "Initializing download..." in render_text(state, 100.0)

    def test_active_view(self, started_state, make_status):
        state, _ = started_state
        state = _apply(state, make_status(completed=500_000, speed=100_000), 101.0)
        text = render_text(state, 161.0)

        assert "Venaqui - Download Manager" in text
        assert "file.zip" in text
        assert "● Active" in text
        assert "(50.0%)" in text
        assert "ETA:" in text and "5s" in text
        assert "Elapsed:" in text and "1m 1s" in text
        assert "Speed History:" in text
        assert ACTIVE_HELP in text

    def test_error_view(self, started_state, make_status):
        state, _ = started_state
        state = _apply(
            state, make_status(status="error", error_message="disk full"), 101.0
        )
        text = render_text(state, 102.0)
        assert "✗ Error: download error: disk full" in text
        assert "Exiting..." in text

    def test_quit_view(self, started_state):
        state, _ = started_state
        state, _ = monitor.update(state, UserQuit())
        assert render_text(state, 101.0).strip() == "Exiting..."

    def test_complete_view_shows_notice(self, started_state, make_status):
        state, _ = started_state
        state = _apply(state, make_status(status="complete", path=None), 101.0)
        state, _ = monitor.update(state, monitor.UserAction(monitor.Action.OPEN))
        text = render_text(state, 102.0)
        assert "could not determine file path" in text


def test_rendered_session_end_to_end(started_state, make_status):
    state, _ = started_state

    state = _apply(state, make_status(completed=0, speed=0), 100.5)
    text = render_text(state, 100.5)
    assert "(0.0%)" in text
    assert "Calculating..." in text
    assert "Speed History:" not in text

    state = _apply(state, make_status(completed=500_000, speed=100_000), 101.5)
    text = render_text(state, 101.5)
    assert "(50.0%)" in text
    assert "5s" in text
    assert len(state.speed_history) == 1

    state = _apply(state, make_status(status="complete", completed=1_000_000), 102.5)
    text = render_text(state, 103.0)
    assert "✓ Download complete!" in text
    assert "/downloads/file.zip" in text
    assert COMPLETE_HELP in text
    assert not state.terminated
