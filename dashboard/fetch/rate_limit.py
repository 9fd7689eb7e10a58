"""Per-host request spacing."""
import asyncio
import logging
import time
from typing import Callable
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class RateLimiter:
    """Hands out start times at least ``1 / rate_per_second`` apart per host.

    Each caller reserves the next free slot up front and sleeps until it,
    so concurrent callers queue without holding a lock while they wait.
    A rate of 0 disables limiting.
    """

    def __init__(self, rate_per_second: float, clock: Callable[[], float] = time.monotonic):
        self.min_interval = 1.0 / rate_per_second if rate_per_second > 0 else 0.0
        self.clock = clock
        self._next_slot: dict[str, float] = {}

    @staticmethod
    def host_of(url: str) -> str:
        return urlparse(url).netloc or url

    def reserve(self, url: str) -> float:
        """Claim the host's next slot; returns the seconds until it starts."""
        if not self.min_interval:
            return 0.0
        host = self.host_of(url)
        now = self.clock()
        slot = max(now, self._next_slot.get(host, now))
        self._next_slot[host] = slot + self.min_interval
        return slot - now

    async def acquire(self, url: str) -> None:
        delay = self.reserve(url)
        if delay > 0:
            logger.debug(f"Throttling {self.host_of(url)} for {delay:.3f}s")
            await asyncio.sleep(delay)
