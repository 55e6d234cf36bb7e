"""
Keeps request volume under Real-Debrid's documented limit of 250 requests
per minute and backs off after a 429 "Too Many Requests" answer.
"""

import asyncio
import logging
import time
from collections import deque

log = logging.getLogger(__name__)


class RateLimiter:
    """
    Sliding-window limiter with a cooldown that honours ``Retry-After``.
    """

    def __init__(
        self,
        max_calls: int = 250,
        period: float = 60.0,
        default_cooldown: float = 5.0,
    ):
        """
        Initializes the rate limiter.

        Args:
            max_calls: Requests allowed within one window.
            period: Window length in seconds.
            default_cooldown: Pause applied after a 429 with no Retry-After header.
        """
        self.max_calls = max_calls
        self.period = period
        self.default_cooldown = default_cooldown
        self._calls: deque[float] = deque()
        self._blocked_until = 0.0
        self._lock = asyncio.Lock()

    async def on_429(self, retry_after: float | None = None) -> None:
        """Blocks every caller for the cooldown the API asked for."""
        cooldown = retry_after if retry_after and retry_after > 0 else self.default_cooldown
        async with self._lock:
            self._blocked_until = max(self._blocked_until, time.monotonic() + cooldown)
        log.warning(
            f"[yellow]Real-Debrid rate limit hit, pausing requests for "
            f"{cooldown:.0f}s[/yellow]"
        )

    async def acquire(self) -> None:
        """Waits until a request can be sent without exceeding the limit."""
        async with self._lock:
            while True:
                now = time.monotonic()
                while self._calls and now - self._calls[0] >= self.period:
                    self._calls.popleft()

                wait = self._blocked_until - now
                if len(self._calls) >= self.max_calls:
                    wait = max(wait, self.period - (now - self._calls[0]))
                if wait <= 0:
                    break
                log.debug(f"Rate limiter waiting {wait:.2f}s")
                await asyncio.sleep(wait)

            self._calls.append(time.monotonic())
