"""UTM link table kept in a Google Sheet, edited row by row."""
import logging
from typing import Any, Optional

from dashboard.config import config
from dashboard.store.sheets import SheetsClient

logger = logging.getLogger(__name__)

LAST_COLUMN = "Z"
FIRST_DATA_ROW = 2


class UtmLinkStore:
    """Reads the sheet as header-keyed rows and writes single rows back.

    Rows carry ``_rowIndex``, their 1-based sheet row, which update and
    delete address. Delete blanks the row rather than removing it, so the
    indexes of the rows below stay valid.
    """

    def __init__(self, sheets: SheetsClient, sheet_id: Optional[str] = None, tab: Optional[str] = None):
        self.sheets = sheets
        self.sheet_id = sheet_id or config.UTM_SHEET_ID
        self.tab = tab or config.UTM_SHEET_TAB

    def _row_range(self, row_index: int) -> str:
        if row_index < FIRST_DATA_ROW:
            raise ValueError(f"Row {row_index} is not a data row")
        return f"{self.tab}!A{row_index}:{LAST_COLUMN}{row_index}"

    async def read(self) -> dict[str, Any]:
        rows = await self.sheets.get_values(self.sheet_id, f"{self.tab}!A:{LAST_COLUMN}")
        if not rows:
            return {"headers": [], "rows": [], "uniqueValues": {}}

        headers = rows[0]
        data_rows = []
        for offset, raw in enumerate(rows[1:]):
            row: dict[str, Any] = {"_rowIndex": offset + FIRST_DATA_ROW}
            for i, header in enumerate(headers):
                row[header] = raw[i] if i < len(raw) else ""
            data_rows.append(row)

        unique_values = {}
        for i, header in enumerate(headers):
            unique_values[header] = sorted({raw[i] for raw in rows[1:] if i < len(raw) and raw[i]})

        return {"headers": headers, "rows": data_rows, "uniqueValues": unique_values}

    @staticmethod
    def _values(headers: list[str], row_data: dict[str, Any]) -> list[str]:
        return [str(row_data.get(header) or "") for header in headers]

    async def add(self, headers: list[str], row_data: dict[str, Any]) -> None:
        await self.sheets.append_values(
            self.sheet_id, f"{self.tab}!A:{LAST_COLUMN}", [self._values(headers, row_data)]
        )
        logger.info("Added UTM link row")

    async def update(self, row_index: int, headers: list[str], row_data: dict[str, Any]) -> None:
        await self.sheets.update_values(
            self.sheet_id, self._row_range(row_index), [self._values(headers, row_data)]
        )
        logger.info(f"Updated UTM link row {row_index}")

    async def delete(self, row_index: int, headers: list[str]) -> None:
        await self.sheets.update_values(
            self.sheet_id, self._row_range(row_index), [["" for _ in headers]]
        )
        logger.info(f"Cleared UTM link row {row_index}")
