"""
State machine for one monitored aria2 transfer.

Everything here is pure: ``start`` and ``update`` take the current state and
an event and return the next state together with the effects the session
runner must carry out (fetch a status, arm the next tick, open a file...).
Time is passed in on the events so no function reads the clock.
"""

from dataclasses import dataclass, replace
from enum import Enum

from venaqui.models.status import DownloadStatus

MAX_HISTORY = 50
TICK_INTERVAL = 1.0


class Phase(str, Enum):
    INITIALIZING = "initializing"
    WAITING = "waiting"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETE = "complete"
    ERROR = "error"
    REMOVED = "removed"
    TERMINATED = "terminated"


class Action(str, Enum):
    """Post-completion actions the user can trigger."""

    OPEN = "open"
    REVEAL = "reveal"


@dataclass(frozen=True)
class MonitorState:
    gid: str
    filename: str
    start_time: float
    status: DownloadStatus | None = None
    speed_history: tuple[int, ...] = ()
    max_history: int = MAX_HISTORY
    completion_time: float | None = None
    last_update: float | None = None
    error: str | None = None
    notice: str | None = None
    terminated: bool = False
    exit_on_complete: bool = False
    # Sequence numbers tag fetches so late, out-of-order answers can be dropped
    next_seq: int = 1
    applied_seq: int = 0

    @property
    def phase(self) -> Phase:
        if self.terminated:
            return Phase.TERMINATED
        if self.status is None:
            return Phase.INITIALIZING
        try:
            return Phase(self.status.status)
        except ValueError:
            return Phase.ACTIVE

    @property
    def is_complete(self) -> bool:
        return self.status is not None and self.status.is_complete

    @property
    def failed(self) -> bool:
        return self.error is not None

    def elapsed(self, now: float) -> float:
        end = self.completion_time if self.completion_time is not None else now
        return max(0.0, end - self.start_time)


# Events


@dataclass(frozen=True)
class Tick:
    at: float


@dataclass(frozen=True)
class StatusFetched:
    seq: int
    status: DownloadStatus
    at: float


@dataclass(frozen=True)
class FetchFailed:
    seq: int
    error: str


@dataclass(frozen=True)
class UserQuit:
    pass


@dataclass(frozen=True)
class UserAction:
    action: Action


@dataclass(frozen=True)
class ActionFailed:
    action: Action
    error: str


Event = Tick | StatusFetched | FetchFailed | UserQuit | UserAction | ActionFailed


# Effects


@dataclass(frozen=True)
class FetchStatus:
    seq: int


@dataclass(frozen=True)
class ScheduleTick:
    delay: float = TICK_INTERVAL


@dataclass(frozen=True)
class OpenFile:
    path: str


@dataclass(frozen=True)
class RevealInFolder:
    path: str


@dataclass(frozen=True)
class OpenFolder:
    path: str


@dataclass(frozen=True)
class Quit:
    pass


Effect = FetchStatus | ScheduleTick | OpenFile | RevealInFolder | OpenFolder | Quit

KEY_BINDINGS: dict[str, Event] = {
    "q": UserQuit(),
    "esc": UserQuit(),
    "ctrl+c": UserQuit(),
    "o": UserAction(Action.OPEN),
    "d": UserAction(Action.REVEAL),
    "s": UserAction(Action.REVEAL),
}


def event_for_key(key: str) -> Event | None:
    return KEY_BINDINGS.get(key.lower() if len(key) == 1 else key)


def start(
    gid: str,
    filename: str,
    now: float,
    exit_on_complete: bool = False,
    max_history: int = MAX_HISTORY,
) -> tuple[MonitorState, list[Effect]]:
    """Creates the initial state and requests the first fetch right away."""
    state = MonitorState(
        gid=gid,
        filename=filename,
        start_time=now,
        exit_on_complete=exit_on_complete,
        max_history=max_history,
    )
    return _request_fetch(state)


def _request_fetch(state: MonitorState) -> tuple[MonitorState, list[Effect]]:
    seq = state.next_seq
    return replace(state, next_seq=seq + 1), [FetchStatus(seq), ScheduleTick()]


def _terminate(state: MonitorState, error: str | None = None) -> MonitorState:
    return replace(state, terminated=True, error=error)


def append_sample(history: tuple[int, ...], sample: int, limit: int) -> tuple[int, ...]:
    """Appends one speed sample, dropping the oldest ones beyond ``limit``."""
    history = history + (sample,)
    if len(history) > limit:
        history = history[len(history) - limit :]
    return history


def _on_status(
    state: MonitorState, event: StatusFetched
) -> tuple[MonitorState, list[Effect]]:
    if event.seq <= state.applied_seq:
        return state, []

    status = event.status
    was_complete = state.is_complete
    state = replace(state, status=status, applied_seq=event.seq)

    if status.download_speed > 0:
        state = replace(
            state,
            speed_history=append_sample(
                state.speed_history, status.download_speed, state.max_history
            ),
        )

    if status.is_complete and not was_complete and state.completion_time is None:
        state = replace(state, completion_time=event.at)

    if status.is_error:
        message = (
            f"download error: {status.error_message}"
            if status.error_message
            else "download error"
        )
        return _terminate(state, message), [Quit()]

    if status.is_complete and state.exit_on_complete:
        return _terminate(state), [Quit()]

    return state, []


def _on_action(
    state: MonitorState, action: Action
) -> tuple[MonitorState, list[Effect]]:
    if state.status is None or not state.status.is_complete:
        return state, []

    path = state.status.file_path
    if action is Action.OPEN:
        if not path:
            return replace(state, notice="could not determine file path"), []
        return replace(state, notice=None), [OpenFile(path)]

    if path:
        return replace(state, notice=None), [RevealInFolder(path)]
    if directory := state.status.file_directory:
        return replace(state, notice=None), [OpenFolder(directory)]
    return replace(state, notice="could not determine download directory"), []


def update(state: MonitorState, event: Event) -> tuple[MonitorState, list[Effect]]:
    """
    Applies one event to the monitor.

    Once terminated the state is frozen: late fetch results, ticks and key
    presses are all ignored.
    """
    if state.terminated:
        return state, []

    if isinstance(event, Tick):
        return _request_fetch(replace(state, last_update=event.at))

    if isinstance(event, StatusFetched):
        return _on_status(state, event)

    if isinstance(event, FetchFailed):
        return _terminate(state, event.error), [Quit()]

    if isinstance(event, UserQuit):
        return _terminate(state, state.error), [Quit()]

    if isinstance(event, UserAction):
        return _on_action(state, event.action)

    if isinstance(event, ActionFailed):
        what = "file" if event.action is Action.OPEN else "directory"
        return replace(state, notice=f"failed to open {what}: {event.error}"), []

    raise TypeError(f"unknown monitor event: {event!r}")

