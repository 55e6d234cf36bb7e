"""
Handles torrent and magnet submission to Real-Debrid, file selection and
waiting for the remote download to finish.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

import aiofiles

from venaqui.exceptions import TorrentError, TorrentTimeoutError
from venaqui.models.realdebrid import AddTorrentResponse, TorrentInfo

if TYPE_CHECKING:
    from .client import RealDebridClient

log = logging.getLogger(__name__)

READY_STATUS = "downloaded"
SELECTION_STATUS = "waiting_files_selection"
FAILED_STATUSES = frozenset({"error", "magnet_error", "virus", "dead"})


class TorrentManager:
    """
    Manages the torrent flow for the Real-Debrid API client.
    """

    def __init__(self, api_client: "RealDebridClient"):
        """
        Initializes the torrent helper.

        Args:
            api_client: A reference to the main RealDebridClient instance.
        """
        self._api_client = api_client

    async def add_magnet(self, magnet_link: str) -> AddTorrentResponse:
        log.info("Adding magnet to Real-Debrid...")
        payload = await self._api_client.api_call(
            "POST",
            "torrents/addMagnet",
            operation="add magnet",
            expected=(201,),
            data={"magnet": magnet_link},
        )
        return AddTorrentResponse.model_validate(payload or {})

    async def add_torrent(self, source: str) -> AddTorrentResponse:
        """
        Uploads a .torrent file to Real-Debrid.

        Args:
            source: An http(s) URL of the torrent file, or a local path.
        """
        log.info("Adding torrent to Real-Debrid...")
        if "://" in source:
            torrent_data = await self._api_client.fetch_bytes(
                source, operation="download torrent file"
            )
        else:
            try:
                async with aiofiles.open(Path(source).expanduser(), "rb") as f:
                    torrent_data = await f.read()
            except OSError as e:
                raise TorrentError(f"failed to read torrent file: {e}") from e

        payload = await self._api_client.api_call(
            "PUT",
            "torrents/addTorrent",
            operation="add torrent",
            expected=(201,),
            data=torrent_data,
            headers={"Content-Type": "application/x-bittorrent"},
        )
        return AddTorrentResponse.model_validate(payload or {})

    async def select_files(self, torrent_id: str, file_ids: list[int]) -> None:
        """Selects files to download; an empty list selects all of them."""
        files = ",".join(str(i) for i in file_ids) if file_ids else "all"
        log.debug(f"Selecting files {files} for torrent {torrent_id}")
        # 204 on success, 202 when the selection was already done
        await self._api_client.api_call(
            "POST",
            f"torrents/selectFiles/{torrent_id}",
            operation="select files",
            expected=(202, 204),
            data={"files": files},
        )

    async def get_torrent_info(self, torrent_id: str) -> TorrentInfo:
        payload = await self._api_client.api_call(
            "GET", f"torrents/info/{torrent_id}", operation="get torrent info"
        )
        return TorrentInfo.model_validate(payload or {})

    async def select_all_if_needed(self, info: TorrentInfo) -> None:
        if info.status == SELECTION_STATUS:
            file_ids = [f.id for f in info.files]
            if file_ids:
                log.info("Selecting files...")
                await self.select_files(info.id, file_ids)

    async def wait_until_ready(
        self, torrent_id: str, timeout: float = 300, poll_interval: float = 2.0
    ) -> TorrentInfo:
        """
        Polls the torrent until Real-Debrid has finished downloading it.

        Args:
            torrent_id: Real-Debrid torrent ID.
            timeout: Maximum seconds to wait.
            poll_interval: Seconds between polls.

        Returns:
            The torrent info with its hoster links populated.

        Raises:
            TorrentError: If Real-Debrid reports a failed torrent.
            TorrentTimeoutError: If the torrent is not ready in time.
        """
        deadline = time.monotonic() + timeout

        while True:
            info = await self.get_torrent_info(torrent_id)
            log.debug(f"Torrent {torrent_id}: {info.status} ({info.progress:.0f}%)")

            if info.status == READY_STATUS:
                return info
            if info.status in FAILED_STATUSES:
                raise TorrentError(
                    f"torrent failed ({info.status}): {info.filename or torrent_id}"
                )
            await self.select_all_if_needed(info)

            if time.monotonic() >= deadline:
                raise TorrentTimeoutError(
                    f"timeout waiting for torrent to be ready after {timeout:.0f}s "
                    f"(last status: {info.status})"
                )
            await asyncio.sleep(poll_interval)
