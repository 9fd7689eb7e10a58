"""Merge the spreadsheet cache with live Steam sales fetches.

A report date's sales keep changing for a while after the date itself, so
cached rows are only trusted when they were pulled on a later calendar day
than the date they describe. Everything else is re-fetched from Steam in
small concurrent waves, written back to the cache, and served fresh.
"""
import asyncio
import logging
from datetime import date
from typing import Callable, Iterable, Optional, Protocol

from dashboard.config import config
from dashboard.errors import CacheWriteFailure, ConfigurationError, UpstreamUnauthorized
from dashboard.jobs.metrics import ReconcileMetrics
from dashboard.parse.models import (
    CacheEntry,
    CountryInfo,
    DateRange,
    ReconciliationResult,
    SalesRecord,
)
from dashboard.parse.report_dates import format_report_date, parse_report_date, utc_today

logger = logging.getLogger(__name__)

# Errors that mean every other fetch will fail the same way
FATAL_ERRORS = (UpstreamUnauthorized, ConfigurationError)


class SalesSource(Protocol):
    def require_key(self) -> str: ...

    async def get_detailed_sales(self, report_date: str) -> tuple[list[SalesRecord], list[CountryInfo]]: ...


class SalesCache(Protocol):
    async def read_all(self) -> list[SalesRecord]: ...

    async def append_rows(self, records: list[SalesRecord]) -> None: ...

    async def clear_all(self) -> None: ...


def needs_fetch(report_date: str, last_fetched: Optional[str]) -> bool:
    """True unless the row was fetched on a later calendar day than its date.

    Unparseable dates on either side also mean a fetch.
    """
    report_day = parse_report_date(report_date)
    fetched_day = parse_report_date(last_fetched)
    if report_day is None or fetched_day is None:
        return True
    return fetched_day <= report_day


def _fetch_order(value: str) -> tuple:
    parsed = parse_report_date(value)
    return (parsed is not None, parsed or date.min, value)


def group_by_date(records: Iterable[SalesRecord], today: str) -> dict[str, CacheEntry]:
    """Build one ``CacheEntry`` per date from raw cache rows.

    Only the rows of the newest fetch of a date are kept, one per country
    with the last appended row winning; older fetches of the same date are
    shadowed. Rows without ``last_fetched`` count as fetched ``today``.
    """
    by_date: dict[str, list[SalesRecord]] = {}
    for record in records:
        if not record.last_fetched:
            record = record.model_copy(update={"last_fetched": today})
        by_date.setdefault(record.date, []).append(record)

    entries = {}
    for report_date, rows in by_date.items():
        newest = max((row.last_fetched for row in rows), key=_fetch_order)
        latest_rows: dict[str, SalesRecord] = {}
        for row in rows:
            if row.last_fetched == newest:
                latest_rows.pop(row.country_code, None)
                latest_rows[row.country_code] = row
        entries[report_date] = CacheEntry(
            date=report_date, records=list(latest_rows.values()), last_fetched=newest
        )
    return entries


class ReconciliationEngine:
    """Serves sales for a set of report dates from cache or Steam."""

    def __init__(
        self,
        source: SalesSource,
        cache: SalesCache,
        batch_size: int = config.FETCH_BATCH_SIZE,
        today: Callable[[], date] = utc_today,
    ):
        self.source = source
        self.cache = cache
        self.batch_size = max(1, batch_size)
        self.today = today

    async def reconcile(self, requested_dates: Iterable[str], force_refresh: bool = False) -> ReconciliationResult:
        dates = list(dict.fromkeys(d.strip() for d in requested_dates if d and d.strip()))
        if not dates:
            return ReconciliationResult()
        # A missing credential fails before the cache is read or cleared
        self.source.require_key()

        today = format_report_date(self.today())
        metrics = ReconcileMetrics(len(dates))

        if force_refresh:
            logger.info("Hard refresh requested, clearing sales cache")
            await self.cache.clear_all()
            entries: dict[str, CacheEntry] = {}
        else:
            entries = group_by_date(await self.cache.read_all(), today)

        to_fetch = [d for d in dates if d not in entries or needs_fetch(d, entries[d].last_fetched)]
        logger.info(f"Dates to fetch: {len(to_fetch)}/{len(dates)}")

        fresh, countries, failed = await self._fetch_in_waves(to_fetch)
        new_records = [record for d in to_fetch for record in fresh.get(d, [])]
        metrics.increment("fetched", len(to_fetch))
        metrics.increment("failed", failed)
        metrics.increment("rows_fetched", len(new_records))

        if new_records:
            try:
                await self.cache.append_rows(new_records)
            except CacheWriteFailure as e:
                logger.error(str(e))

        fetched_dates = set(to_fetch)
        results: list[SalesRecord] = []
        for d in dates:
            if d in fetched_dates:
                results.extend(fresh.get(d, []))
            else:
                metrics.increment("cached")
                metrics.increment("rows_cached", len(entries[d].records))
                results.extend(entries[d].records)

        unique_countries: dict[str, CountryInfo] = {}
        for info in countries:
            unique_countries[info.country_code] = info

        metrics.report()
        return ReconciliationResult(
            results=results,
            country_info=list(unique_countries.values()),
            fetched=len(to_fetch),
            cached=len(dates) - len(to_fetch),
            failed=failed,
            date_range=DateRange(from_=min(dates), to=max(dates)),
        )

    async def _fetch_in_waves(
        self, dates: list[str]
    ) -> tuple[dict[str, list[SalesRecord]], list[CountryInfo], int]:
        """Fetch dates ``batch_size`` at a time, one wave after another.

        A failing date yields no rows and does not stop its siblings. A
        rejected credential aborts once the current wave has finished.
        """
        fresh: dict[str, list[SalesRecord]] = {}
        countries: list[CountryInfo] = []
        failed = 0

        for start in range(0, len(dates), self.batch_size):
            wave = dates[start:start + self.batch_size]
            outcomes = await asyncio.gather(
                *(self.source.get_detailed_sales(d) for d in wave),
                return_exceptions=True,
            )
            fatal: Optional[BaseException] = None
            for report_date, outcome in zip(wave, outcomes):
                if isinstance(outcome, FATAL_ERRORS):
                    fatal = fatal or outcome
                elif isinstance(outcome, Exception):
                    failed += 1
                    logger.warning(f"Fetching sales for {report_date} failed: {outcome}")
                elif isinstance(outcome, BaseException):
                    raise outcome
                else:
                    records, infos = outcome
                    fresh[report_date] = records
                    countries.extend(infos)
            if fatal is not None:
                raise fatal

        return fresh, countries, failed
