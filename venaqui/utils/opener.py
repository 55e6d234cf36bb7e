"""
Opens downloaded files and folders with the platform's file manager.

The session only depends on the ``FileOpener`` interface; the concrete
implementation is picked once at startup by ``get_file_opener``.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Protocol

from rich.markup import escape

from venaqui.exceptions import OpenerError

log = logging.getLogger(__name__)


class FileOpener(Protocol):
    async def open_file(self, path: str) -> None: ...

    async def reveal_in_folder(self, path: str) -> None: ...

    async def open_folder(self, path: str) -> None: ...


async def _run(*command: str) -> None:
    log.debug(f"Running: {escape(' '.join(command))}")
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        raise OpenerError(f"could not run {command[0]}: {e}") from e
    returncode = await proc.wait()
    # explorer.exe exits with 1 even when it succeeds
    if returncode != 0 and command[0] != "explorer":
        raise OpenerError(f"{command[0]} exited with status {returncode}")


def _require_file(path: str) -> None:
    if not Path(path).exists():
        raise OpenerError(f"file does not exist: {path}")


def _require_dir(path: str) -> None:
    if not Path(path).is_dir():
        raise OpenerError(f"directory does not exist: {path}")


class MacOpener:
    async def open_file(self, path: str) -> None:
        _require_file(path)
        await _run("open", path)

    async def reveal_in_folder(self, path: str) -> None:
        _require_file(path)
        await _run("open", "-R", path)

    async def open_folder(self, path: str) -> None:
        _require_dir(path)
        await _run("open", path)


class LinuxOpener:
    async def open_file(self, path: str) -> None:
        _require_file(path)
        await _run("xdg-open", path)

    async def reveal_in_folder(self, path: str) -> None:
        # xdg-open cannot select a file; open its directory instead
        _require_file(path)
        await _run("xdg-open", os.path.dirname(os.path.abspath(path)))

    async def open_folder(self, path: str) -> None:
        _require_dir(path)
        await _run("xdg-open", path)


class WindowsOpener:
    async def open_file(self, path: str) -> None:
        _require_file(path)
        # The empty argument is the window title expected by 'start'
        await _run("cmd", "/c", "start", "", path)

    async def reveal_in_folder(self, path: str) -> None:
        _require_file(path)
        await _run("explorer", "/select,", path)

    async def open_folder(self, path: str) -> None:
        _require_dir(path)
        await _run("explorer", path)


class UnsupportedOpener:
    def __init__(self, platform: str):
        self.platform = platform

    async def _fail(self, path: str) -> None:
        raise OpenerError(f"unsupported operating system: {self.platform}")

    open_file = reveal_in_folder = open_folder = _fail


def get_file_opener(platform: str | None = None) -> FileOpener:
    """Selects the opener for the running (or given) platform."""
    platform = platform or sys.platform
    if platform == "darwin":
        return MacOpener()
    if platform.startswith("linux") or platform.startswith("freebsd"):
        return LinuxOpener()
    if platform in ("win32", "cygwin"):
        return WindowsOpener()
    return UnsupportedOpener(platform)
