"""
Turns a user-supplied link into a running aria2 transfer.

Hoster links are unrestricted directly. Torrents and magnets are first
added to Real-Debrid, have all their files selected, and are waited on until
Real-Debrid has cached them; the first resulting hoster link is then
unrestricted.
"""

import logging
from dataclasses import dataclass

from venaqui.api.client import RealDebridClient
from venaqui.daemon.client import Aria2Client
from venaqui.exceptions import TorrentError
from venaqui.utils.path import filename_from_url, is_magnet_link, is_torrent_link

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedLink:
    """A direct download URL and the name to show for it."""

    url: str
    filename: str


class LinkResolver:
    def __init__(
        self,
        api_client: RealDebridClient,
        torrent_timeout: float = 300,
        poll_interval: float = 2.0,
    ):
        self.api_client = api_client
        self.torrent_timeout = torrent_timeout
        self.poll_interval = poll_interval

    async def resolve(self, link: str) -> ResolvedLink:
        if is_magnet_link(link) or is_torrent_link(link):
            return await self._resolve_torrent(link)

        log.info("Unrestricting link via Real-Debrid...")
        unrestricted = await self.api_client.unrestrict_link(link)
        url = unrestricted.direct_url
        return ResolvedLink(url=url, filename=unrestricted.filename or filename_from_url(url))

    async def _resolve_torrent(self, link: str) -> ResolvedLink:
        torrents = self.api_client.torrents
        if is_magnet_link(link):
            added = await torrents.add_magnet(link)
        else:
            added = await torrents.add_torrent(link)

        info = await torrents.get_torrent_info(added.id)
        await torrents.select_all_if_needed(info)

        log.info("Waiting for torrent to be processed...")
        info = await torrents.wait_until_ready(
            added.id, timeout=self.torrent_timeout, poll_interval=self.poll_interval
        )
        if not info.links:
            raise TorrentError("No download links available from torrent")
        if len(info.links) > 1:
            log.info(
                f"[yellow]Torrent has {len(info.links)} links; downloading the "
                "first one.[/yellow]"
            )

        log.info("Unrestricting download link...")
        unrestricted = await self.api_client.unrestrict_link(info.links[0])
        filename = (
            info.filename
            or unrestricted.filename
            or filename_from_url(unrestricted.direct_url)
        )
        return ResolvedLink(url=unrestricted.direct_url, filename=filename)


async def start_transfer(
    link: str,
    download_dir: str,
    api_client: RealDebridClient,
    daemon: Aria2Client,
    torrent_timeout: float = 300,
    poll_interval: float = 2.0,
) -> tuple[str, str]:
    """
    Resolves ``link`` and queues it in aria2.

    Returns:
        The aria2 GID and the display filename.
    """
    await api_client.validate_token()

    resolver = LinkResolver(api_client, torrent_timeout, poll_interval)
    resolved = await resolver.resolve(link)

    log.info("Starting download...")
    gid = await daemon.add_download(resolved.url, download_dir)
    return gid, resolved.filename
