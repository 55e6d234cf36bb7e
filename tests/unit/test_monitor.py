import pytest

from venaqui.core import monitor
from venaqui.core.monitor import (
    Action,
    ActionFailed,
    FetchFailed,
    FetchStatus,
    OpenFile,
    OpenFolder,
    Phase,
    Quit,
    RevealInFolder,
    ScheduleTick,
    StatusFetched,
    Tick,
    UserAction,
    UserQuit,
)
from venaqui.models.status import DownloadStatus, TransferFile


def _fetch(state, status, at=101.0):
    """Requests a fetch via a tick and answers it with ``status``."""
    state, effects = monitor.update(state, Tick(at))
    seq = next(e.seq for e in effects if isinstance(e, FetchStatus))
    return monitor.update(state, StatusFetched(seq, status, at))


class TestStart:
    def test_initial_state(self, started_state):
        state, effects = started_state
        assert state.phase is Phase.INITIALIZING
        assert state.start_time == 100.0
        assert state.speed_history == ()
        assert not state.terminated
        assert effects == [FetchStatus(1), ScheduleTick()]

    def test_tick_requests_next_fetch(self, started_state):
        state, _ = started_state
        state, effects = monitor.update(state, Tick(101.0))
        assert effects == [FetchStatus(2), ScheduleTick()]
        assert state.last_update == 101.0


class TestStatusFetched:
    def test_applies_status(self, started_state, make_status):
        state, _ = started_state
        status = make_status(completed=500, speed=10)
        state, effects = monitor.update(state, StatusFetched(1, status, 101.0))
        assert state.status == status
        assert state.phase is Phase.ACTIVE
        assert effects == []

    def test_zero_speed_not_recorded(self, started_state, make_status):
        state, _ = started_state
        state, _ = monitor.update(state, StatusFetched(1, make_status(speed=0), 101.0))
        assert state.speed_history == ()

    def test_history_caps_at_fifty_and_evicts_oldest(self, started_state, make_status):
        state, _ = started_state
        for speed in range(1, 52):
            state, _ = _fetch(state, make_status(speed=speed))
        assert len(state.speed_history) == 50
        assert state.speed_history == tuple(range(2, 52))

    def test_identical_samples_are_each_recorded(self, started_state, make_status):
        state, _ = started_state
        status = make_status(completed=10, speed=100)
        state, _ = _fetch(state, status)
        state, _ = _fetch(state, status)
        assert state.speed_history == (100, 100)

    def test_stale_result_is_dropped(self, started_state, make_status):
        state, _ = started_state
        state, _ = monitor.update(state, Tick(101.0))  # requests seq 2
        newer = make_status(completed=800, speed=50)
        older = make_status(completed=300, speed=20)

        state, _ = monitor.update(state, StatusFetched(2, newer, 101.5))
        after_newer = state
        state, effects = monitor.update(state, StatusFetched(1, older, 101.6))

        assert state == after_newer
        assert state.status.completed_length == 800
        assert effects == []

    def test_error_terminates_with_daemon_message(self, started_state, make_status):
        state, _ = started_state
        status = make_status(status="error", error_message="Resource not found")
        state, effects = monitor.update(state, StatusFetched(1, status, 101.0))
        assert state.terminated
        assert state.phase is Phase.TERMINATED
        assert state.error == "download error: Resource not found"
        assert effects == [Quit()]

    def test_error_without_message_uses_fallback(self, started_state, make_status):
        state, _ = started_state
        state, _ = monitor.update(
            state, StatusFetched(1, make_status(status="error"), 101.0)
        )
        assert state.terminated
        assert state.error == "download error"

    def test_completion_records_time_once(self, started_state, make_status):
        state, _ = started_state
        done = make_status(status="complete", completed=1_000_000)
        state, _ = _fetch(state, done, at=110.0)
        state, _ = _fetch(state, done, at=120.0)
        assert state.completion_time == 110.0
        assert state.elapsed(500.0) == 10.0

    def test_complete_does_not_quit_by_default(self, started_state, make_status):
        state, _ = started_state
        state, effects = monitor.update(
            state, StatusFetched(1, make_status(status="complete"), 101.0)
        )
        assert not state.terminated
        assert effects == []

    def test_complete_quits_when_configured(self, make_status):
        state, _ = monitor.start("gid", "file.zip", 0.0, exit_on_complete=True)
        state, effects = monitor.update(
            state, StatusFetched(1, make_status(status="complete"), 1.0)
        )
        assert state.terminated
        assert state.error is None
        assert effects == [Quit()]


class TestTermination:
    def test_fetch_failure_terminates(self, started_state):
        state, _ = started_state
        state, effects = monitor.update(
            state, FetchFailed(1, "aria2.tellStatus failed: cannot reach aria2")
        )
        assert state.terminated
        assert state.error == "aria2.tellStatus failed: cannot reach aria2"
        assert effects == [Quit()]

    def test_user_quit(self, started_state):
        state, _ = started_state
        state, effects = monitor.update(state, UserQuit())
        assert state.terminated
        assert state.error is None
        assert effects == [Quit()]

    def test_terminated_state_ignores_everything(self, started_state, make_status):
        state, _ = started_state
        state, _ = monitor.update(state, UserQuit())
        for event in (
            Tick(200.0),
            StatusFetched(5, make_status(speed=99), 200.0),
            FetchFailed(6, "late"),
            UserAction(Action.OPEN),
        ):
            new_state, effects = monitor.update(state, event)
            assert new_state == state
            assert effects == []

    def test_unknown_event_raises(self, started_state):
        state, _ = started_state
        with pytest.raises(TypeError):
            monitor.update(state, object())


class TestUserActions:
    def test_open_before_complete_is_noop(self, started_state, make_status):
        state, _ = started_state
        state, _ = _fetch(state, make_status(completed=10, speed=5))
        new_state, effects = monitor.update(state, UserAction(Action.OPEN))
        assert new_state == state
        assert effects == []

    def test_open_without_status_is_noop(self, started_state):
        state, _ = started_state
        new_state, effects = monitor.update(state, UserAction(Action.REVEAL))
        assert new_state == state
        assert effects == []

    def test_open_when_complete(self, started_state, make_status):
        state, _ = started_state
        state, _ = _fetch(state, make_status(status="complete"))
        _, effects = monitor.update(state, UserAction(Action.OPEN))
        assert effects == [OpenFile("/downloads/file.zip")]

    def test_open_without_path_sets_notice(self, started_state, make_status):
        state, _ = started_state
        state, _ = _fetch(state, make_status(status="complete", path=None))
        state, effects = monitor.update(state, UserAction(Action.OPEN))
        assert effects == []
        assert state.notice == "could not determine file path"

    def test_reveal_when_complete(self, started_state, make_status):
        state, _ = started_state
        state, _ = _fetch(state, make_status(status="complete"))
        _, effects = monitor.update(state, UserAction(Action.REVEAL))
        assert effects == [RevealInFolder("/downloads/file.zip")]

    def test_reveal_falls_back_to_directory(self, started_state, make_status):
        state, _ = started_state
        state, _ = _fetch(state, make_status(status="complete", path=None, dir="/dl"))
        _, effects = monitor.update(state, UserAction(Action.REVEAL))
        assert effects == [OpenFolder("/dl")]

    def test_reveal_without_anything_sets_notice(self, started_state, make_status):
        state, _ = started_state
        state, _ = _fetch(state, make_status(status="complete", path=None))
        state, effects = monitor.update(state, UserAction(Action.REVEAL))
        assert effects == []
        assert state.notice == "could not determine download directory"

    def test_action_failure_is_advisory(self, started_state, make_status):
        state, _ = started_state
        state, _ = _fetch(state, make_status(status="complete"))
        state, effects = monitor.update(
            state, ActionFailed(Action.OPEN, "xdg-open exited with status 3")
        )
        assert not state.terminated
        assert state.notice == "failed to open file: xdg-open exited with status 3"
        assert effects == []

        state, _ = monitor.update(state, ActionFailed(Action.REVEAL, "boom"))
        assert state.notice == "failed to open directory: boom"


class TestKeyBindings:
    @pytest.mark.parametrize("key", ["q", "Q", "esc", "ctrl+c"])
    def test_quit_keys(self, key):
        assert monitor.event_for_key(key) == UserQuit()

    @pytest.mark.parametrize(
        "key, action", [("o", Action.OPEN), ("d", Action.REVEAL), ("s", Action.REVEAL)]
    )
    def test_action_keys(self, key, action):
        assert monitor.event_for_key(key) == UserAction(action)

    def test_unbound_key(self):
        assert monitor.event_for_key("x") is None


def test_append_sample_keeps_order():
    history = tuple(range(50))
    assert monitor.append_sample(history, 99, 50) == tuple(range(1, 50)) + (99,)
    assert monitor.append_sample((), 7, 50) == (7,)


def test_session_end_to_end(started_state):
    state, _ = started_state
    state, _ = monitor.update(
        state,
        StatusFetched(
            1,
            DownloadStatus(
                gid="g", status="active", total_length=1_000_000, completed_length=0
            ),
            100.5,
        ),
    )
    assert state.status.progress == 0.0
    assert state.status.eta is None
    assert state.speed_history == ()

    state, _ = _fetch(
        state,
        DownloadStatus(
            gid="g",
            status="active",
            total_length=1_000_000,
            completed_length=500_000,
            download_speed=100_000,
        ),
    )
    assert state.status.progress == 50.0
    assert state.status.eta == 5
    assert state.speed_history == (100_000,)

    state, _ = _fetch(
        state,
        DownloadStatus(
            gid="g",
            status="complete",
            total_length=1_000_000,
            completed_length=1_000_000,
            files=(TransferFile(path="/downloads/file.zip"),),
        ),
        at=105.0,
    )
    assert state.phase is Phase.COMPLETE
    assert not state.terminated
    assert monitor.update(state, UserAction(Action.OPEN))[1] == [
        OpenFile("/downloads/file.zip")
    ]
    assert monitor.update(state, UserAction(Action.REVEAL))[1] == [
        RevealInFolder("/downloads/file.zip")
    ]
