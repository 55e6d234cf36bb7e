"""
Drives a single transfer: turns timer ticks, status fetches and key presses
into monitor events and carries out the effects the monitor asks for.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any, Protocol

from rich.markup import escape

from venaqui.daemon.client import Aria2Client
from venaqui.exceptions import VenaquiError
from venaqui.utils.opener import FileOpener

from . import monitor
from .monitor import Action, Effect, Event, MonitorState

log = logging.getLogger(__name__)


class Display(Protocol):
    interactive: bool

    def update(self, state: MonitorState, now: float) -> None: ...

    async def __aenter__(self) -> Any: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...


DisplayFactory = Callable[[Callable[[str], None]], Display]


class SessionRunner:
    """
    Single-threaded event loop around the pure monitor state machine.

    Only ``run`` mutates the state, one event at a time. Fetches run as
    tasks and report back through the queue; results arriving after the
    session ended are never read.
    """

    def __init__(
        self,
        daemon: Aria2Client,
        opener: FileOpener,
        display_factory: DisplayFactory,
        exit_on_complete: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.daemon = daemon
        self.opener = opener
        self.display_factory = display_factory
        self.exit_on_complete = exit_on_complete
        self.clock = clock

        self._gid = ""
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._tasks: set[asyncio.Task] = set()
        self._tick_handle: asyncio.TimerHandle | None = None

    def post(self, event: Event) -> None:
        self._queue.put_nowait(event)

    def _on_key(self, key: str) -> None:
        if event := monitor.event_for_key(key):
            self.post(event)

    def _post_tick(self) -> None:
        self.post(monitor.Tick(self.clock()))

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fetch(self, seq: int) -> None:
        try:
            status = await self.daemon.get_status(self._gid)
        except VenaquiError as e:
            self.post(monitor.FetchFailed(seq, str(e)))
            return
        except Exception as e:
            log.debug("Status fetch crashed:", exc_info=True)
            self.post(monitor.FetchFailed(seq, f"status fetch failed: {e!r}"))
            return
        self.post(monitor.StatusFetched(seq, status, self.clock()))

    async def _perform(self, action: Action, call: Awaitable[None]) -> None:
        try:
            await call
        except VenaquiError as e:
            log.debug(f"{action.value} failed: {escape(str(e))}")
            self.post(monitor.ActionFailed(action, str(e)))

    def _execute(self, effects: list[Effect]) -> None:
        loop = asyncio.get_running_loop()
        for effect in effects:
            if isinstance(effect, monitor.FetchStatus):
                self._spawn(self._fetch(effect.seq))
            elif isinstance(effect, monitor.ScheduleTick):
                self._tick_handle = loop.call_later(effect.delay, self._post_tick)
            elif isinstance(effect, monitor.OpenFile):
                self._spawn(self._perform(Action.OPEN, self.opener.open_file(effect.path)))
            elif isinstance(effect, monitor.RevealInFolder):
                self._spawn(
                    self._perform(Action.REVEAL, self.opener.reveal_in_folder(effect.path))
                )
            elif isinstance(effect, monitor.OpenFolder):
                self._spawn(
                    self._perform(Action.REVEAL, self.opener.open_folder(effect.path))
                )
            elif isinstance(effect, monitor.Quit):
                log.debug("Session terminating")

    async def _shutdown(self) -> None:
        if self._tick_handle:
            self._tick_handle.cancel()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def run(self, gid: str, filename: str) -> MonitorState:
        """
        Watches ``gid`` until the monitor terminates and returns the final state.
        """
        self._gid = gid
        state, effects = monitor.start(
            gid, filename, self.clock(), exit_on_complete=self.exit_on_complete
        )

        async with self.display_factory(self._on_key) as display:
            if not display.interactive and not state.exit_on_complete:
                log.debug("No key input available; ending the session on completion")
                state = replace(state, exit_on_complete=True)
            try:
                display.update(state, self.clock())
                self._execute(effects)
                while not state.terminated:
                    event = await self._queue.get()
                    state, effects = monitor.update(state, event)
                    self._execute(effects)
                    display.update(state, self.clock())
            finally:
                await self._shutdown()

        return state
