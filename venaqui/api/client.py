"""
Async client for the Real-Debrid REST API (v1.0).
"""

import asyncio
import json
import logging
import time
from typing import Any

import aiohttp
from rich.markup import escape

from venaqui.exceptions import AuthenticationError, RateLimitError, RealDebridError
from venaqui.models.realdebrid import UnrestrictedLink

from .rate_limiter import RateLimiter
from .torrents import TorrentManager

log = logging.getLogger(__name__)


class RealDebridClient:
    """
    Thin async wrapper over the Real-Debrid endpoints needed to turn a hoster,
    torrent or magnet link into a direct download URL.
    """

    BASE_URL = "https://api.real-debrid.com/rest/1.0"

    def __init__(self, api_token: str, base_url: str | None = None):
        """
        Initializes the API client.

        Args:
            api_token: Private API token from https://real-debrid.com/apitoken.
            base_url: Overrides the API root (used by tests).
        """
        self.api_token = api_token
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

        self._session: aiohttp.ClientSession | None = None
        self._rate_limiter = RateLimiter()
        self._torrents = TorrentManager(self)

    @property
    def torrents(self) -> TorrentManager:
        """Provides access to the torrent/magnet helper."""
        return self._torrents

    async def _initialize_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "User-Agent": "venaqui",
                    "Accept-Encoding": "gzip, deflate",
                },
                timeout=aiohttp.ClientTimeout(total=30, connect=15),
            )
        return self._session

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "RealDebridClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @staticmethod
    def _api_error_message(body: str) -> str | None:
        try:
            payload = json.loads(body)
        except ValueError:
            return None
        if isinstance(payload, dict) and "error" in payload:
            return str(payload["error"])
        return None

    async def _raise_for_status(self, operation: str, r: aiohttp.ClientResponse):
        body = await r.text()
        api_message = self._api_error_message(body)

        if r.status == 401:
            raise AuthenticationError(
                f"{operation} failed: unauthorized, invalid API token", r.status
            )
        if r.status == 429:
            retry_after = r.headers.get("Retry-After")
            await self._rate_limiter.on_429(
                float(retry_after) if retry_after and retry_after.isdigit() else None
            )
            raise RateLimitError(
                f"{operation} failed: rate limited, too many requests, please wait",
                r.status,
            )
        if r.status == 503:
            raise RealDebridError(
                f"{operation} failed: service unavailable, Real-Debrid is "
                "temporarily unavailable",
                r.status,
            )
        if api_message is None:
            raise RealDebridError(
                f"{operation} failed: RD API error: {r.status} - {body.strip()}",
                r.status,
            )
        if r.status == 403:
            raise RealDebridError(
                f"{operation} failed: forbidden: {api_message}", r.status
            )
        raise RealDebridError(
            f"{operation} failed: RD API error ({r.status}): {api_message}", r.status
        )

    async def api_call(
        self,
        method: str,
        endpoint: str,
        *,
        operation: str,
        expected: tuple[int, ...] = (200,),
        **kwargs: Any,
    ) -> Any:
        """
        Makes an authenticated API call with rate limiting and error mapping.

        Args:
            method: HTTP verb.
            endpoint: Path below the API root, e.g. ``unrestrict/link``.
            operation: Human-readable name used in error messages.
            expected: Status codes that count as success.
            **kwargs: Passed through to ``aiohttp.ClientSession.request``.

        Returns:
            The decoded JSON body, or None for empty responses.
        """
        session = await self._initialize_session()
        await self._rate_limiter.acquire()

        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self.api_token}"
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        start_time = time.monotonic()

        try:
            async with session.request(method, url, headers=headers, **kwargs) as r:
                duration_ms = (time.monotonic() - start_time) * 1000
                log.debug(f"{method} {endpoint} -> {r.status} ({duration_ms:.0f} ms)")

                if r.status not in expected:
                    await self._raise_for_status(operation, r)

                body = await r.text()
                if not body.strip():
                    return None
                try:
                    return json.loads(body)
                except ValueError as e:
                    raise RealDebridError(
                        f"{operation} failed: could not decode response: {e}",
                        r.status,
                    ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.debug(f"API call to {endpoint} failed: {escape(str(e))}")
            raise RealDebridError(f"{operation} failed: request failed: {e}") from e

    async def fetch_bytes(self, url: str, operation: str) -> bytes:
        """Downloads a small unauthenticated resource such as a .torrent file."""
        session = await self._initialize_session()
        try:
            async with session.get(url) as r:
                if r.status != 200:
                    raise RealDebridError(
                        f"{operation} failed: status {r.status}", r.status
                    )
                return await r.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RealDebridError(f"{operation} failed: {e}") from e

    # Public API Methods
    async def validate_token(self) -> dict[str, Any]:
        """
        Checks that the API token is accepted.

        Returns:
            The ``/user`` payload (username, account type, expiration...).
        """
        user = await self.api_call("GET", "user", operation="token validation")
        user = user or {}
        log.info(
            "Authenticated with Real-Debrid as: "
            f"{escape(user.get('username', 'unknown'))}"
        )
        if user.get("type") and user["type"] != "premium":
            log.warning(
                "[yellow]Real-Debrid account is not premium; most hosters will be "
                "refused.[/yellow]"
            )
        return user

    async def unrestrict_link(self, link: str) -> UnrestrictedLink:
        """Converts a hoster link into a direct download link."""
        payload = await self.api_call(
            "POST", "unrestrict/link", operation="unrestrict link", data={"link": link}
        )
        return UnrestrictedLink.model_validate(payload or {})
