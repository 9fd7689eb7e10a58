"""In-process TTL cache with stale fallback."""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheLookup(Generic[T]):
    value: T
    from_cache: bool
    stale: bool = False


class TTLCache(Generic[T]):
    """Holds one loaded value for ``ttl_seconds``.

    ``get`` loads on first use, after expiry, or when ``refresh`` is set.
    If a reload fails and an older value exists, the older value is served
    and the error is logged; with nothing to fall back on it propagates.
    """

    def __init__(
        self,
        name: str,
        loader: Callable[[], Awaitable[T]],
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.loader = loader
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._value: Optional[T] = None
        self._loaded_at: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def has_value(self) -> bool:
        return self._loaded_at is not None

    def is_fresh(self) -> bool:
        if self._loaded_at is None:
            return False
        return self.clock() - self._loaded_at < self.ttl_seconds

    async def lookup(self, refresh: bool = False) -> CacheLookup[T]:
        async with self._lock:
            if not refresh and self.is_fresh():
                return CacheLookup(self._value, from_cache=True)
            try:
                value = await self.loader()
            except Exception as e:
                if self.has_value:
                    logger.error(f"Reloading {self.name} failed, serving stale copy: {e}")
                    return CacheLookup(self._value, from_cache=True, stale=True)
                raise
            self._value = value
            self._loaded_at = self.clock()
            logger.debug(f"Loaded {self.name}")
            return CacheLookup(value, from_cache=False)

    async def get(self, refresh: bool = False) -> T:
        return (await self.lookup(refresh=refresh)).value
