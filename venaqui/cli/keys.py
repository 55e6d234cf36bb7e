"""
Non-blocking single-key input from the controlling terminal.

On POSIX the terminal is switched to cbreak mode and stdin is watched by the
event loop; on Windows the console is polled with msvcrt. When stdin is not
a terminal no keys are delivered.
"""

import asyncio
import logging
import os
import signal
import sys
from collections.abc import Callable

log = logging.getLogger(__name__)

KeyCallback = Callable[[str], None]

ESCAPE = "\x1b"
CTRL_C = "\x03"
POLL_INTERVAL = 0.05


def decode_keys(data: str) -> list[str]:
    """
    Splits raw terminal input into key names.

    A lone escape byte is the Esc key; escape sequences (arrows, function
    keys) are dropped.
    """
    if data == ESCAPE:
        return ["esc"]
    if data.startswith(ESCAPE):
        return []
    keys = []
    for ch in data:
        if ch == CTRL_C:
            keys.append("ctrl+c")
        elif ch.isprintable():
            keys.append(ch)
    return keys


class KeyReader:
    """Async context manager delivering key names to ``on_key``."""

    def __init__(self, on_key: KeyCallback, stream=None):
        self.on_key = on_key
        self.stream = stream or sys.stdin
        self._saved_attrs = None
        self._fd: int | None = None
        self._poll_task: asyncio.Task | None = None
        self._sigint_installed = False
        self.interactive = False

    def _dispatch(self, data: str) -> None:
        for key in decode_keys(data):
            self.on_key(key)

    def _on_readable(self) -> None:
        try:
            data = os.read(self._fd, 32).decode(errors="ignore")
        except OSError as e:
            log.debug(f"Key input read failed: {e}")
            return
        self._dispatch(data)

    def _start_posix(self, loop: asyncio.AbstractEventLoop) -> None:
        import termios
        import tty

        self._fd = self.stream.fileno()
        self._saved_attrs = termios.tcgetattr(self._fd)
        tty.setcbreak(self._fd)
        loop.add_reader(self._fd, self._on_readable)
        # cbreak keeps signal generation on, so Ctrl+C arrives as SIGINT
        try:
            loop.add_signal_handler(signal.SIGINT, self.on_key, "ctrl+c")
            self._sigint_installed = True
        except (NotImplementedError, RuntimeError):
            pass

    def _stop_posix(self, loop: asyncio.AbstractEventLoop) -> None:
        import termios

        loop.remove_reader(self._fd)
        if self._sigint_installed:
            loop.remove_signal_handler(signal.SIGINT)
        if self._saved_attrs is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)

    async def _poll_windows(self) -> None:
        import msvcrt  # type: ignore

        while True:
            while msvcrt.kbhit():
                self._dispatch(msvcrt.getwch())
            await asyncio.sleep(POLL_INTERVAL)

    async def __aenter__(self) -> "KeyReader":
        if not self.stream.isatty():
            log.debug("stdin is not a terminal; key bindings disabled")
            return self
        loop = asyncio.get_running_loop()
        if os.name == "nt":
            self._poll_task = asyncio.create_task(self._poll_windows())
        else:
            self._start_posix(loop)
        self.interactive = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._poll_task:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
        elif self._fd is not None:
            self._stop_posix(asyncio.get_running_loop())
