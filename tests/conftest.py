"""Shared fakes for the sheet store and the Steam sales source."""
import asyncio
from datetime import date

import pytest

from dashboard.errors import ConfigurationError, UpstreamError
from dashboard.parse.models import CountryInfo, SalesRecord
from dashboard.parse.report_dates import format_report_date


class FakeSheets:
    """In-memory stand-in for ``SheetsClient``; one value grid per tab."""

    def __init__(self, tabs=None):
        self.tabs = {name: [list(r) for r in rows] for name, rows in (tabs or {}).items()}
        self.calls = []
        self.fail_reads = False
        self.fail_writes = False

    @staticmethod
    def _tab(value_range):
        return value_range.split("!", 1)[0]

    async def get_values(self, sheet_id, value_range):
        self.calls.append(("get", value_range))
        if self.fail_reads:
            raise UpstreamError("Sheets API error: 500", status=500)
        rows = self.tabs.get(self._tab(value_range), [])
        if value_range.endswith("A1:A1"):
            return [rows[0][:1]] if rows and rows[0] else []
        return [list(r) for r in rows]

    async def append_values(self, sheet_id, value_range, values):
        self.calls.append(("append", value_range))
        if self.fail_writes:
            raise UpstreamError("Sheets API error: 500", status=500)
        self.tabs.setdefault(self._tab(value_range), []).extend([list(v) for v in values])

    async def update_values(self, sheet_id, value_range, values):
        self.calls.append(("update", value_range))
        tab, cells = value_range.split("!", 1)
        row_index = int("".join(ch for ch in cells.split(":", 1)[0] if ch.isdigit()))
        rows = self.tabs.setdefault(tab, [])
        while len(rows) < row_index:
            rows.append([])
        rows[row_index - 1] = list(values[0])

    async def clear_values(self, sheet_id, value_range):
        self.calls.append(("clear", value_range))
        if self.fail_writes:
            raise UpstreamError("Sheets API error: 500", status=500)
        self.tabs[self._tab(value_range)] = []


class FakeSalesSource:
    """Returns canned rows per date and records concurrency."""

    def __init__(self, today=date(2024, 1, 15), sales=None, errors=None, delay=0.0, api_key="key"):
        self.api_key = api_key
        self.today = today
        self.sales = sales or {}
        self.errors = errors or {}
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    def require_key(self):
        if not self.api_key:
            raise ConfigurationError("STEAM_FINANCIAL_API_KEY not configured")
        return self.api_key

    async def get_detailed_sales(self, report_date):
        self.calls.append(report_date)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if report_date in self.errors:
                raise self.errors[report_date]
            rows = self.sales.get(report_date, [])
            records = [
                SalesRecord(**row, date=report_date, last_fetched=format_report_date(self.today))
                for row in rows
            ]
            countries = [
                CountryInfo(country_code=row["country_code"], country_name=f"Country {row['country_code']}")
                for row in rows
            ]
            return records, countries
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_sheets():
    return FakeSheets()


@pytest.fixture
def sales_source():
    return FakeSalesSource()
