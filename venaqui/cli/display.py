"""
Manages the Rich Live display and keyboard input for a monitored transfer.
"""

import asyncio

from rich.console import Console
from rich.live import Live

from venaqui.core.monitor import MonitorState

from .keys import KeyCallback, KeyReader
from .view import DEFAULT_THEME, Theme, render


class SessionDisplay:
    """
    Owns the terminal while a transfer is being watched: the live frame and
    the raw key input feeding the session runner.
    """

    def __init__(
        self,
        console: Console,
        on_key: KeyCallback,
        theme: Theme = DEFAULT_THEME,
        key_reader: KeyReader | None = None,
    ):
        self.console = console
        self.theme = theme
        self._keys = key_reader or KeyReader(on_key)
        self._live: Live | None = None

    @property
    def interactive(self) -> bool:
        """Whether key presses can reach the session."""
        return self._keys.interactive

    def update(self, state: MonitorState, now: float) -> None:
        """Redraws the frame for ``state`` as of ``now``."""
        if self._live:
            self._live.update(render(state, now, self.theme), refresh=True)

    async def __aenter__(self) -> "SessionDisplay":
        self._live = Live(
            console=self.console,
            auto_refresh=False,
            transient=False,
            vertical_overflow="visible",
        )
        self._live.start()
        try:
            await self._keys.__aenter__()
        except Exception:
            self._live.stop()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            await self._keys.__aexit__(exc_type, exc_val, exc_tb)
        finally:
            if self._live:
                await asyncio.sleep(0.1)
                self._live.stop()
