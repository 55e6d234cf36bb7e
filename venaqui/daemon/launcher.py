"""
Starts a local aria2c daemon when none is listening on the configured RPC URL.
"""

import asyncio
import logging
import shutil
from urllib.parse import urlparse

from rich.markup import escape

from venaqui.exceptions import DaemonError, DaemonUnavailableError

from .client import Aria2Client

log = logging.getLogger(__name__)

ARIA2_BIN = "aria2c"
STARTUP_DELAY = 2.0
PING_RETRIES = 5
PING_INTERVAL = 1.0


def build_daemon_command(rpc_url: str, secret: str = "") -> list[str]:
    command = [
        ARIA2_BIN,
        "--enable-rpc",
        "--rpc-listen-all",
        "--daemon=true",
        "--max-connection-per-server=16",
        "--split=16",
        "--min-split-size=1M",
        "--rpc-allow-origin-all",
    ]
    port = urlparse(rpc_url).port
    if port and port != 6800:
        command.append(f"--rpc-listen-port={port}")
    if secret:
        command.append(f"--rpc-secret={secret}")
    return command


async def is_daemon_running(rpc_url: str, secret: str = "") -> bool:
    async with Aria2Client(rpc_url, secret) as client:
        try:
            await client.ping()
            return True
        except DaemonError as e:
            log.debug(f"aria2 ping failed: {escape(str(e))}")
            return False


async def ensure_daemon_running(
    rpc_url: str,
    secret: str = "",
    startup_delay: float = STARTUP_DELAY,
    retries: int = PING_RETRIES,
    interval: float = PING_INTERVAL,
) -> None:
    """
    Makes sure an aria2 daemon answers on ``rpc_url``, spawning one if needed.

    Raises:
        DaemonUnavailableError: If aria2c is missing or never becomes responsive.
    """
    if await is_daemon_running(rpc_url, secret):
        log.debug("aria2 daemon already running")
        return

    if shutil.which(ARIA2_BIN) is None:
        raise DaemonUnavailableError(
            "aria2c was not found on PATH. Install aria2 or start the daemon manually."
        )

    log.info("Starting aria2 daemon...")
    command = build_daemon_command(rpc_url, secret)
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        raise DaemonUnavailableError(f"failed to start aria2: {e}") from e
    # --daemon=true forks, so the launcher process exits almost immediately
    await proc.wait()

    await asyncio.sleep(startup_delay)
    for attempt in range(1, retries + 1):
        if await is_daemon_running(rpc_url, secret):
            log.info("[green]✓ aria2 daemon started.[/green]")
            return
        log.debug(f"aria2 not responsive yet (attempt {attempt}/{retries})")
        await asyncio.sleep(interval)

    raise DaemonUnavailableError("aria2 failed to start or is not accessible")
