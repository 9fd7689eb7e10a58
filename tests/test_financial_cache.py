"""Tests for the spreadsheet-backed sales cache."""
from decimal import Decimal

import pytest

from conftest import FakeSheets
from dashboard.errors import CacheWriteFailure
from dashboard.parse.models import CACHE_HEADERS, SalesRecord
from dashboard.store.financial_cache import FinancialCache


def make_cache(sheets):
    return FinancialCache(sheets, sheet_id="sheet", value_range="financials!A:J")


@pytest.mark.asyncio
async def test_header_written_once():
    """Test the header row is only added to an empty sheet."""
    sheets = FakeSheets()
    cache = make_cache(sheets)
    record = SalesRecord(date="2024/01/10", country_code="US", gross_sales_usd="3", last_fetched="2024/01/11")

    await cache.append_rows([record])
    await cache.append_rows([record])

    rows = sheets.tabs["financials"]
    assert rows.count(CACHE_HEADERS) == 1
    assert len(rows) == 3


@pytest.mark.asyncio
async def test_round_trip_normalizes_values():
    """Test rows read back as typed records."""
    sheets = FakeSheets()
    cache = make_cache(sheets)
    await cache.append_rows([
        SalesRecord(date="2024/01/10", country_code="US", gross_sales_usd="1.25",
                    gross_units_sold="4", last_fetched="2024/01/11"),
    ])

    records = await cache.read_all()

    assert len(records) == 1
    assert records[0].gross_sales_usd == Decimal("1.25")
    assert records[0].gross_units_sold == 4
    assert records[0].last_fetched == "2024/01/11"


@pytest.mark.asyncio
async def test_rows_without_date_are_skipped():
    """Test blank-date rows do not become records."""
    sheets = FakeSheets({"financials": [CACHE_HEADERS, ["", "US", "1"], ["2024/01/10", "DE", "2"]]})
    records = await make_cache(sheets).read_all()

    assert [r.country_code for r in records] == ["DE"]


@pytest.mark.asyncio
async def test_read_failure_reads_as_empty():
    """Test an unreachable sheet behaves like an empty cache."""
    sheets = FakeSheets({"financials": [CACHE_HEADERS, ["2024/01/10", "US", "1"]]})
    sheets.fail_reads = True

    assert await make_cache(sheets).read_all() == []


@pytest.mark.asyncio
async def test_write_failure_raises_cache_write_failure():
    """Test append errors surface as a cache write failure."""
    sheets = FakeSheets()
    sheets.fail_writes = True

    with pytest.raises(CacheWriteFailure):
        await make_cache(sheets).append_rows([SalesRecord(date="2024/01/10")])


@pytest.mark.asyncio
async def test_clear_all_empties_the_range():
    """Test a hard refresh wipes the cache."""
    sheets = FakeSheets({"financials": [CACHE_HEADERS, ["2024/01/10", "US", "1"]]})
    cache = make_cache(sheets)

    await cache.clear_all()

    assert sheets.tabs["financials"] == []
    assert await cache.read_all() == []


@pytest.mark.asyncio
async def test_disabled_without_sheet():
    """Test a cache with no sheet client is a no-op."""
    cache = FinancialCache(None, sheet_id="", value_range="financials!A:J")

    assert cache.enabled is False
    assert await cache.read_all() == []
    await cache.append_rows([SalesRecord(date="2024/01/10")])
