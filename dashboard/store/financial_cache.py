"""Spreadsheet-backed cache of daily sales rows."""
import logging
from typing import Optional

from dashboard.config import config
from dashboard.errors import CacheUnavailable, CacheWriteFailure, DashboardError
from dashboard.parse.models import CACHE_HEADERS, SalesRecord
from dashboard.store.sheets import SheetsClient

logger = logging.getLogger(__name__)


class FinancialCache:
    """Append-only store of ``SalesRecord`` rows, one sheet row per record.

    Rows are never updated in place. A re-fetched date is appended again and
    readers keep the newest ``last_fetched`` per date.
    """

    def __init__(
        self,
        sheets: Optional[SheetsClient],
        sheet_id: Optional[str] = None,
        value_range: Optional[str] = None,
    ):
        self.sheets = sheets
        self.sheet_id = sheet_id if sheet_id is not None else config.FINANCIAL_CACHE_SHEET_ID
        self.value_range = value_range or config.FINANCIAL_CACHE_RANGE
        self.tab = self.value_range.split("!", 1)[0] if "!" in self.value_range else self.value_range

    @property
    def enabled(self) -> bool:
        return bool(self.sheets and self.sheet_id)

    async def read_all(self) -> list[SalesRecord]:
        """Every cached row; empty when the sheet is missing or unreachable."""
        if not self.enabled:
            return []
        try:
            rows = await self.sheets.get_values(self.sheet_id, self.value_range)
        except DashboardError as e:
            logger.warning(f"{CacheUnavailable.__name__}: failed to read cache, treating as empty: {e}")
            return []

        if len(rows) < 2:
            return []

        headers = [str(h).strip() for h in rows[0]]
        records = []
        for raw in rows[1:]:
            row = {h: (raw[i] if i < len(raw) else "") for i, h in enumerate(headers)}
            if not str(row.get("date", "")).strip():
                continue
            records.append(SalesRecord.from_row(row))
        logger.info(f"Read {len(records)} cached sales rows")
        return records

    async def _ensure_header(self) -> None:
        existing = await self.sheets.get_values(self.sheet_id, f"{self.tab}!A1:A1")
        if not existing:
            await self.sheets.append_values(self.sheet_id, f"{self.tab}!A1", [CACHE_HEADERS])
            logger.info(f"Wrote cache header row to {self.tab}")

    async def append_rows(self, records: list[SalesRecord]) -> None:
        """Append records, writing the header first on an empty sheet.

        Raises ``CacheWriteFailure``; callers log it and carry on.
        """
        if not self.enabled or not records:
            return
        try:
            await self._ensure_header()
            await self.sheets.append_values(
                self.sheet_id, self.value_range, [record.to_row() for record in records]
            )
        except DashboardError as e:
            raise CacheWriteFailure(f"Failed to write cache: {e}") from e
        logger.info(f"Cached {len(records)} sales rows")

    async def clear_all(self) -> None:
        """Wipe the cache range (hard refresh). Failures are logged only."""
        if not self.enabled:
            return
        try:
            await self.sheets.clear_values(self.sheet_id, self.value_range)
        except DashboardError as e:
            logger.error(f"Failed to clear cache: {e}")
