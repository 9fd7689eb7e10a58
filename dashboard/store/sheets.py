"""Google Sheets values API client (read, append, update, clear)."""
import logging
from typing import Any, Protocol

import httpx

from dashboard.errors import ConfigurationError, UpstreamError, UpstreamTransientError
from dashboard.fetch.client import FetchClient
from dashboard.fetch.endpoints import sheet_values_url
from dashboard.parse.redact import redact_json, redact_string

logger = logging.getLogger(__name__)


class TokenProvider(Protocol):
    async def get_token(self) -> str | None: ...


class SheetsClient:
    """Thin wrapper over ``spreadsheets.values`` with a bearer token."""

    def __init__(self, fetch: FetchClient, tokens: TokenProvider):
        self.fetch = fetch
        self.tokens = tokens

    async def _headers(self) -> dict[str, str]:
        token = await self.tokens.get_token()
        if not token:
            raise ConfigurationError("Failed to get access token")
        return {"Authorization": f"Bearer {token}"}

    async def _call(self, method: str, url: str, **kwargs: Any) -> dict:
        headers = await self._headers()
        try:
            response = await self.fetch.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPStatusError as e:
            raise UpstreamTransientError(
                f"Sheets API error: {e.response.status_code}", status=e.response.status_code
            ) from e
        except httpx.TransportError as e:
            raise UpstreamTransientError(f"Sheets API unreachable: {redact_string(str(e))}") from e

        if not response.is_success:
            try:
                detail = redact_json(response.json())
            except ValueError:
                detail = redact_string(response.text[:200])
            logger.warning(f"Sheets API {method} returned {response.status_code}: {detail}")
            raise UpstreamError(f"Sheets API error: {response.status_code}", status=response.status_code)
        if not response.content:
            return {}
        return response.json()

    async def get_values(self, sheet_id: str, value_range: str) -> list[list[str]]:
        """All rows in the range; empty trailing cells are omitted by the API."""
        data = await self._call("GET", sheet_values_url(sheet_id, value_range))
        return data.get("values") or []

    async def append_values(self, sheet_id: str, value_range: str, values: list[list[str]]) -> None:
        await self._call(
            "POST",
            sheet_values_url(sheet_id, value_range, ":append"),
            params={"valueInputOption": "RAW"},
            json={"values": values},
        )
        logger.debug(f"Appended {len(values)} rows to {value_range}")

    async def update_values(self, sheet_id: str, value_range: str, values: list[list[str]]) -> None:
        await self._call(
            "PUT",
            sheet_values_url(sheet_id, value_range),
            params={"valueInputOption": "RAW"},
            json={"values": values},
        )

    async def clear_values(self, sheet_id: str, value_range: str) -> None:
        await self._call("POST", sheet_values_url(sheet_id, value_range, ":clear"), json={})
        logger.info(f"Cleared {value_range}")
