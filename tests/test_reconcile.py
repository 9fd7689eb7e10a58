"""Tests for the sales reconciliation engine."""
from datetime import date
from decimal import Decimal

import pytest

from conftest import FakeSalesSource, FakeSheets
from dashboard.errors import ConfigurationError, UpstreamTransientError, UpstreamUnauthorized
from dashboard.jobs.reconcile import ReconciliationEngine, group_by_date, needs_fetch
from dashboard.jobs.revenue import summarize
from dashboard.parse.models import CACHE_HEADERS, SalesRecord
from dashboard.store.financial_cache import FinancialCache

TODAY = date(2024, 1, 15)

US_ROW = {"country_code": "US", "gross_sales_usd": "100", "net_sales_usd": "90",
          "gross_returns_usd": "-5", "net_tax_usd": "10", "gross_units_sold": 4}
DE_ROW = {"country_code": "DE", "gross_sales_usd": "50", "net_sales_usd": "40",
          "gross_returns_usd": "0", "net_tax_usd": "8", "gross_units_sold": 2}


def cache_row(date_, country, gross, last_fetched):
    record = SalesRecord(date=date_, country_code=country, gross_sales_usd=gross, last_fetched=last_fetched)
    return record.to_row()


def make_engine(source, sheets=None, batch_size=5):
    sheets = sheets if sheets is not None else FakeSheets()
    cache = FinancialCache(sheets, sheet_id="sheet", value_range="financials!A:J")
    return ReconciliationEngine(source, cache, batch_size=batch_size, today=lambda: TODAY), sheets


def test_needs_fetch_uses_calendar_dates():
    """Test fetches on or before the report day are not final."""
    assert needs_fetch("2024/01/10", "2024/01/10") is True
    assert needs_fetch("2024/01/10", "2024/01/09") is True
    assert needs_fetch("2024/01/10", "2024/01/11") is False
    assert needs_fetch("2024/01/10", "2024/01/12") is False


def test_needs_fetch_handles_unpadded_and_bad_dates():
    """Test staleness is not decided by string order."""
    # "2024/1/9" sorts after "2024/01/10" as a string but is an earlier day
    assert needs_fetch("2024/01/10", "2024/1/9") is True
    assert needs_fetch("2024/01/10", "2024-01-11") is False
    assert needs_fetch("2024/01/10", "") is True
    assert needs_fetch("2024/01/10", "garbage") is True


def test_group_by_date_keeps_newest_fetch():
    """Test older fetches of a date are shadowed by the newest one."""
    records = [
        SalesRecord(date="2024/01/10", country_code="US", gross_sales_usd="1", last_fetched="2024/01/10"),
        SalesRecord(date="2024/01/10", country_code="DE", gross_sales_usd="2", last_fetched="2024/01/10"),
        SalesRecord(date="2024/01/10", country_code="US", gross_sales_usd="3", last_fetched="2024/01/12"),
        SalesRecord(date="2024/01/10", country_code="US", gross_sales_usd="4", last_fetched="2024/01/12"),
    ]
    entries = group_by_date(records, today="2024/01/15")

    entry = entries["2024/01/10"]
    assert entry.last_fetched == "2024/01/12"
    assert [r.gross_sales_usd for r in entry.records] == [Decimal("4")]


def test_group_by_date_defaults_missing_last_fetched_to_today():
    """Test rows without last_fetched count as fetched today."""
    entries = group_by_date([SalesRecord(date="2024/01/10", country_code="US")], today="2024/01/15")
    assert entries["2024/01/10"].last_fetched == "2024/01/15"


@pytest.mark.asyncio
async def test_missing_date_is_fetched_and_cached():
    """Test a date with no cache entry is fetched and written back."""
    source = FakeSalesSource(today=TODAY, sales={"2024/01/10": [US_ROW]})
    engine, sheets = make_engine(source)

    result = await engine.reconcile(["2024/01/10"])

    assert result.fetched == 1
    assert result.cached == 0
    assert source.calls == ["2024/01/10"]
    assert sheets.tabs["financials"][0] == CACHE_HEADERS
    assert len(sheets.tabs["financials"]) == 2
    assert sheets.tabs["financials"][1][0] == "2024/01/10"
    assert sheets.tabs["financials"][1][CACHE_HEADERS.index("last_fetched")] == "2024/01/15"
    assert result.results[0].gross_sales_usd == Decimal("100")


@pytest.mark.asyncio
async def test_finalized_cache_entry_is_served_from_cache():
    """Test a date fetched on a later day is trusted."""
    sheets = FakeSheets({"financials": [CACHE_HEADERS, cache_row("2024/01/10", "US", "70", "2024/01/12")]})
    source = FakeSalesSource(today=TODAY, sales={"2024/01/10": [US_ROW]})
    engine, _ = make_engine(source, sheets)

    result = await engine.reconcile(["2024/01/10"])

    assert result.cached == 1
    assert result.fetched == 0
    assert source.calls == []
    assert [r.gross_sales_usd for r in result.results] == [Decimal("70")]


@pytest.mark.asyncio
async def test_same_day_cache_entry_is_refetched_and_shadowed():
    """Test an unfinalized cache entry is replaced by fresh rows."""
    sheets = FakeSheets({"financials": [CACHE_HEADERS, cache_row("2024/01/15", "US", "1", "2024/01/15")]})
    source = FakeSalesSource(today=TODAY, sales={"2024/01/15": [US_ROW, DE_ROW]})
    engine, _ = make_engine(source, sheets)

    result = await engine.reconcile(["2024/01/15"])

    assert result.fetched == 1
    assert sorted(r.country_code for r in result.results) == ["DE", "US"]
    assert Decimal("1") not in [r.gross_sales_usd for r in result.results]
    # the stale row stays in the sheet, only shadowed
    assert len(sheets.tabs["financials"]) == 4


@pytest.mark.asyncio
async def test_counts_add_up_to_requested_dates():
    """Test fetched + cached equals the number of distinct requested dates."""
    sheets = FakeSheets({"financials": [
        CACHE_HEADERS,
        cache_row("2024/01/01", "US", "5", "2024/01/03"),
        cache_row("2024/01/02", "US", "5", "2024/01/02"),
    ]})
    source = FakeSalesSource(today=TODAY)
    engine, _ = make_engine(source, sheets)

    requested = ["2024/01/01", "2024/01/02", "2024/01/03", "2024/01/01"]
    result = await engine.reconcile(requested)

    assert result.fetched + result.cached == 3
    assert result.cached == 1
    assert result.date_range.from_ == "2024/01/01"
    assert result.date_range.to == "2024/01/03"


@pytest.mark.asyncio
async def test_fetches_run_in_waves_of_batch_size():
    """Test no more than batch_size fetches are in flight at once."""
    dates = [f"2024/01/{day:02d}" for day in range(1, 13)]
    source = FakeSalesSource(today=TODAY, delay=0.01)
    engine, _ = make_engine(source, batch_size=5)

    result = await engine.reconcile(dates)

    assert result.fetched == 12
    assert sorted(source.calls) == dates
    assert source.max_in_flight == 5


@pytest.mark.asyncio
async def test_single_fetch_failure_is_tolerated():
    """Test one failing date does not abort its siblings."""
    source = FakeSalesSource(
        today=TODAY,
        sales={"2024/01/10": [US_ROW], "2024/01/11": [DE_ROW]},
        errors={"2024/01/12": UpstreamTransientError("Steam API error: 502", status=502)},
    )
    engine, sheets = make_engine(source)

    result = await engine.reconcile(["2024/01/10", "2024/01/11", "2024/01/12"])

    assert result.fetched == 3
    assert result.failed == 1
    assert sorted(r.country_code for r in result.results) == ["DE", "US"]
    assert len(sheets.tabs["financials"]) == 3


@pytest.mark.asyncio
async def test_unauthorized_fails_whole_request():
    """Test a rejected credential is fatal, with nothing written."""
    source = FakeSalesSource(
        today=TODAY,
        sales={"2024/01/10": [US_ROW]},
        errors={"2024/01/11": UpstreamUnauthorized("Invalid Financial API key", status=403)},
    )
    engine, sheets = make_engine(source)

    with pytest.raises(UpstreamUnauthorized):
        await engine.reconcile(["2024/01/10", "2024/01/11"])
    assert "financials" not in sheets.tabs


@pytest.mark.asyncio
async def test_empty_request_touches_nothing():
    """Test an empty date set returns early."""
    source = FakeSalesSource(today=TODAY)
    engine, sheets = make_engine(source)

    result = await engine.reconcile([])

    assert result.results == []
    assert result.fetched == 0 and result.cached == 0
    assert source.calls == []
    assert sheets.calls == []


@pytest.mark.asyncio
async def test_force_refresh_clears_cache_and_refetches():
    """Test hard refresh ignores finalized cache entries."""
    sheets = FakeSheets({"financials": [CACHE_HEADERS, cache_row("2024/01/10", "US", "70", "2024/01/12")]})
    source = FakeSalesSource(today=TODAY, sales={"2024/01/10": [US_ROW]})
    engine, _ = make_engine(source, sheets)

    result = await engine.reconcile(["2024/01/10"], force_refresh=True)

    assert ("clear", "financials!A:J") in sheets.calls
    assert ("get", "financials!A:J") not in sheets.calls
    assert result.fetched == 1
    assert [r.gross_sales_usd for r in result.results] == [Decimal("100")]
    assert len(sheets.tabs["financials"]) == 2


@pytest.mark.asyncio
async def test_unreadable_cache_counts_as_empty():
    """Test a failing cache read falls back to fetching."""
    sheets = FakeSheets()
    sheets.fail_reads = True
    source = FakeSalesSource(today=TODAY, sales={"2024/01/10": [US_ROW]})
    engine, _ = make_engine(source, sheets)

    result = await engine.reconcile(["2024/01/10"])

    assert result.fetched == 1
    assert len(result.results) == 1


@pytest.mark.asyncio
async def test_cache_write_failure_does_not_fail_request():
    """Test write-back errors are logged and ignored."""
    sheets = FakeSheets()
    sheets.fail_writes = True
    source = FakeSalesSource(today=TODAY, sales={"2024/01/10": [US_ROW]})
    engine, _ = make_engine(source, sheets)

    result = await engine.reconcile(["2024/01/10"])

    assert len(result.results) == 1


@pytest.mark.asyncio
async def test_country_info_is_deduplicated():
    """Test country metadata is unique per code."""
    source = FakeSalesSource(today=TODAY, sales={"2024/01/10": [US_ROW], "2024/01/11": [US_ROW, DE_ROW]})
    engine, _ = make_engine(source)

    result = await engine.reconcile(["2024/01/10", "2024/01/11"])

    assert sorted(c.country_code for c in result.country_info) == ["DE", "US"]


@pytest.mark.asyncio
async def test_repeated_reconcile_gives_same_summary():
    """Test two runs over finalized dates summarize identically."""
    source = FakeSalesSource(today=TODAY, sales={"2024/01/10": [US_ROW, DE_ROW]})
    engine, _ = make_engine(source)

    first = await engine.reconcile(["2024/01/10"])
    second = await engine.reconcile(["2024/01/10"])

    assert first.fetched == 1
    assert second.cached == 1
    assert summarize(first.results) == summarize(second.results)


@pytest.mark.asyncio
async def test_missing_key_fails_even_when_fully_cached():
    """Test an unset Steam key is reported before the cache is consulted."""
    sheets = FakeSheets({"financials": [CACHE_HEADERS, cache_row("2024/01/10", "US", "70", "2024/01/12")]})
    source = FakeSalesSource(today=TODAY, api_key="")
    engine, _ = make_engine(source, sheets)

    with pytest.raises(ConfigurationError):
        await engine.reconcile(["2024/01/10"])
    assert sheets.calls == []


@pytest.mark.asyncio
async def test_missing_key_does_not_clear_cache_on_refresh():
    """Test a hard refresh without a key leaves the cache intact."""
    sheets = FakeSheets({"financials": [CACHE_HEADERS, cache_row("2024/01/10", "US", "70", "2024/01/12")]})
    source = FakeSalesSource(today=TODAY, api_key="")
    engine, _ = make_engine(source, sheets)

    with pytest.raises(ConfigurationError):
        await engine.reconcile(["2024/01/10"], force_refresh=True)
    assert len(sheets.tabs["financials"]) == 2
    assert ("clear", "financials!A:J") not in sheets.calls
