"""Steam partner financial reporting client."""
import logging
from datetime import date
from typing import Any, Callable, Optional

import httpx

from dashboard.config import config
from dashboard.errors import (
    ConfigurationError,
    UpstreamError,
    UpstreamTransientError,
    UpstreamUnauthorized,
)
from dashboard.fetch.client import RETRYABLE_STATUSES, FetchClient
from dashboard.fetch.endpoints import changed_dates_url, detailed_sales_url
from dashboard.parse.models import CountryInfo, SalesRecord
from dashboard.parse.redact import redact_string
from dashboard.parse.report_dates import format_report_date, utc_today

logger = logging.getLogger(__name__)

UNAUTHORIZED_STATUSES = (401, 403)


class SteamFinancialsClient:
    """Lists report dates and pulls per-country sales for one date."""

    def __init__(
        self,
        fetch: FetchClient,
        api_key: Optional[str] = None,
        today: Callable[[], date] = utc_today,
    ):
        self.fetch = fetch
        self.api_key = api_key if api_key is not None else config.STEAM_FINANCIAL_API_KEY
        self.today = today

    def require_key(self) -> str:
        """The partner API key; raises ``ConfigurationError`` when unset."""
        if not self.api_key:
            raise ConfigurationError("STEAM_FINANCIAL_API_KEY not configured")
        return self.api_key

    async def _get(self, url: str, params: dict[str, Any]) -> dict:
        params = {"key": self.require_key(), **params}
        try:
            # Status codes are not retried here; the caller decides
            response = await self.fetch.get(url, params=params, retry_statuses=())
        except httpx.TransportError as e:
            raise UpstreamTransientError(f"Steam API unreachable: {redact_string(str(e))}") from e

        if response.status_code in UNAUTHORIZED_STATUSES:
            raise UpstreamUnauthorized("Invalid Financial API key", status=response.status_code)
        if response.status_code in RETRYABLE_STATUSES:
            raise UpstreamTransientError(
                f"Steam API error: {response.status_code}", status=response.status_code
            )
        if not response.is_success:
            raise UpstreamError(f"Steam API error: {response.status_code}", status=response.status_code)
        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError("Steam API returned a non-JSON body") from e
        return payload.get("response") or {}

    async def list_changed_dates(self) -> list[str]:
        """Report dates with data, oldest first."""
        body = await self._get(changed_dates_url(), {"highwatermark": 0})
        dates = sorted(str(d) for d in body.get("dates") or [])
        logger.info(f"Steam reports {len(dates)} dates with sales data")
        return dates

    async def get_detailed_sales(self, report_date: str) -> tuple[list[SalesRecord], list[CountryInfo]]:
        """Per-country rows for one date, tagged with today's fetch date."""
        body = await self._get(
            detailed_sales_url(), {"date": report_date, "highwatermark_id": 0}
        )
        fetched_on = format_report_date(self.today())
        records = []
        for row in body.get("results") or []:
            if not isinstance(row, dict):
                continue
            records.append(
                SalesRecord(
                    **{k: v for k, v in row.items() if k in SalesRecord.model_fields and k not in ("date", "last_fetched")},
                    date=report_date,
                    last_fetched=fetched_on,
                )
            )
        countries = [
            CountryInfo(
                country_code=str(c["country_code"]),
                country_name=c.get("country_name") or "",
                region=c.get("region") or "",
            )
            for c in body.get("country_info") or []
            if isinstance(c, dict) and c.get("country_code")
        ]
        logger.debug(f"Fetched {len(records)} sales rows for {report_date}")
        return records, countries
