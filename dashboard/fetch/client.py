"""HTTP client with retries and error handling."""
import logging
from typing import Any, Iterable, Optional
import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from dashboard.config import config
from dashboard.fetch.rate_limit import RateLimiter
from dashboard.parse.redact import redact_string

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = (429, 500, 502, 503, 504)


def is_retryable_status(response: httpx.Response, statuses: Iterable[int] = RETRYABLE_STATUSES) -> bool:
    """Check if status code is retryable."""
    return response.status_code in statuses


def is_retryable_error(exc: BaseException, statuses: Iterable[int] = RETRYABLE_STATUSES) -> bool:
    """Network failures and retryable statuses are worth another attempt."""
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return is_retryable_status(exc.response, statuses)
    return False


class FetchClient:
    """Shared async HTTP client with per-host rate limiting and retries.

    Non-retryable responses (4xx) are returned as-is so callers can map
    them onto their own errors. Retryable ones raise
    ``httpx.HTTPStatusError`` once attempts are exhausted.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        rate_per_second: float = config.RATE_PER_DOMAIN,
        max_attempts: int = config.MAX_RETRIES,
        backoff_min: float = 1.0,
        backoff_max: float = 10.0,
    ):
        if client is None:
            limits = httpx.Limits(
                max_connections=50,
                max_keepalive_connections=10,
            )
            client = httpx.AsyncClient(
                http2=True,
                timeout=config.TIMEOUT,
                follow_redirects=True,
                limits=limits,
            )
        self.client = client
        self.rate_limiter = RateLimiter(rate_per_second)
        self.max_attempts = max(1, max_attempts)
        self.backoff_min = backoff_min
        self.backoff_max = backoff_max
        self.retry_count = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def request(
        self,
        method: str,
        url: str,
        retry_statuses: Iterable[int] = RETRYABLE_STATUSES,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request with rate limiting and retries.

        ``retry_statuses`` narrows which responses are retried; pass ``()``
        to retry network failures only and get every response back.
        """
        statuses = tuple(retry_statuses)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=self.backoff_min, max=self.backoff_max),
            retry=retry_if_exception(lambda exc: is_retryable_error(exc, statuses)),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    self.retry_count += 1
                    logger.info(
                        f"Retrying {method} {redact_string(url)} "
                        f"(attempt {attempt.retry_state.attempt_number}/{self.max_attempts})"
                    )
                response = await self._send(method, url, statuses, **kwargs)
        return response

    async def _send(self, method: str, url: str, statuses: tuple[int, ...], **kwargs: Any) -> httpx.Response:
        await self.rate_limiter.acquire(url)
        try:
            response = await self.client.request(method, url, **kwargs)
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            logger.warning(f"Network error for {method} {redact_string(url)}: {e}")
            raise

        if is_retryable_status(response, statuses):
            logger.warning(
                f"{method} {redact_string(str(response.url))} returned {response.status_code}"
            )
            response.raise_for_status()
        return response

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def get_json(self, url: str, **kwargs: Any) -> Any:
        """GET and decode JSON; raises ``httpx.HTTPStatusError`` on 4xx."""
        response = await self.get(url, **kwargs)
        response.raise_for_status()
        return response.json()

    async def get_text(self, url: str, **kwargs: Any) -> str:
        """GET and return the body text; raises ``httpx.HTTPStatusError`` on 4xx."""
        response = await self.get(url, **kwargs)
        response.raise_for_status()
        return response.text
