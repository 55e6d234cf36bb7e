"""
Async JSON-RPC client for the aria2 download daemon.
"""

import asyncio
import itertools
import logging
from typing import Any

import aiohttp

from venaqui.exceptions import DaemonError, DaemonUnavailableError
from venaqui.models.config import DEFAULT_RPC_URL
from venaqui.models.status import STATUS_KEYS, DownloadStatus

log = logging.getLogger(__name__)

# Segmented download settings handed to aria2 for every transfer
DOWNLOAD_OPTIONS = {
    "max-connection-per-server": "16",
    "split": "16",
    "min-split-size": "1M",
}


class Aria2Client:
    """
    Speaks JSON-RPC 2.0 over HTTP to a running aria2c instance.

    The underlying HTTP session is opened lazily and must be released with
    ``close()`` or by using the client as an async context manager.
    """

    def __init__(self, rpc_url: str = DEFAULT_RPC_URL, secret: str = ""):
        self.rpc_url = rpc_url or DEFAULT_RPC_URL
        self.secret = secret
        self._ids = itertools.count(1)
        self._session: aiohttp.ClientSession | None = None

    async def _initialize_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=10, connect=5),
            )
        return self._session

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "Aria2Client":
        await self._initialize_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def call(self, method: str, *params: Any) -> Any:
        """
        Invokes an aria2 RPC method.

        The secret token, when configured, is prepended to the parameters as
        ``token:<secret>``.

        Raises:
            DaemonUnavailableError: If the daemon cannot be reached.
            DaemonError: If aria2 answers with a JSON-RPC error.
        """
        session = await self._initialize_session()
        rpc_params = list(params)
        if self.secret:
            rpc_params.insert(0, f"token:{self.secret}")
        request_id = next(self._ids)
        payload = {
            "jsonrpc": "2.0",
            "id": str(request_id),
            "method": method,
            "params": rpc_params,
        }

        try:
            async with session.post(self.rpc_url, json=payload) as r:
                try:
                    body = await r.json(content_type=None)
                except ValueError as e:
                    raise DaemonError(
                        f"{method} failed: invalid response (HTTP {r.status})"
                    ) from e
        except aiohttp.ClientError as e:
            raise DaemonUnavailableError(
                f"{method} failed: cannot reach aria2 at {self.rpc_url}: {e}"
            ) from e
        except asyncio.TimeoutError as e:
            raise DaemonUnavailableError(
                f"{method} failed: aria2 at {self.rpc_url} timed out"
            ) from e

        if not isinstance(body, dict):
            raise DaemonError(f"{method} failed: unexpected response {body!r}")
        if error := body.get("error"):
            raise DaemonError(
                f"{method} failed: {error.get('message', 'unknown error')}",
                error.get("code"),
            )
        return body.get("result")

    async def ping(self) -> dict[str, Any]:
        """Returns aria2's version info; raises if the daemon is not responsive."""
        return await self.call("aria2.getVersion")

    async def add_download(self, url: str, download_dir: str) -> str:
        """Queues a direct URL and returns its GID."""
        options = {"dir": download_dir, **DOWNLOAD_OPTIONS}
        gid = await self.call("aria2.addUri", [url], options)
        log.debug(f"aria2 accepted download as GID {gid}")
        return gid

    async def get_status(self, gid: str) -> DownloadStatus:
        result = await self.call("aria2.tellStatus", gid, list(STATUS_KEYS))
        return DownloadStatus.from_rpc(result or {})

    async def remove_download(self, gid: str) -> None:
        await self.call("aria2.remove", gid)

    async def get_active_downloads(self) -> list[str]:
        result = await self.call("aria2.tellActive", ["gid"])
        return [item["gid"] for item in result or []]
