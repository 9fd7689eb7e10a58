"""Revenue waterfall and breakdowns over sales records.

Everything here is pure: no I/O, same input gives the same output.
"""
from collections import defaultdict
from decimal import Decimal
from typing import Any, Iterable

from dashboard.parse.models import (
    CountryBreakdown,
    CountryInfo,
    DailyPayout,
    ReconciliationResult,
    RevenueSummary,
    SalesRecord,
)

PLATFORM_SHARE = Decimal("0.30")
DEVELOPER_SHARE = Decimal("0.70")
US_WITHHOLDING_RATE = Decimal("0.15")

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def percent_of(component: Decimal, gross: Decimal) -> Decimal:
    """``component / gross * 100``, 0 when gross is 0."""
    if not gross:
        return ZERO
    return component / gross * HUNDRED


def payout_for(gross: Decimal, tax: Decimal, returns: Decimal) -> Decimal:
    """Final payout after tax, returns, platform cut and US withholding."""
    after_tax = gross - tax - abs(returns)
    developer_cut = after_tax * DEVELOPER_SHARE
    return developer_cut - developer_cut * US_WITHHOLDING_RATE


def summarize(records: Iterable[SalesRecord]) -> RevenueSummary:
    records = list(records)

    gross_sales = sum((r.gross_sales_usd for r in records), ZERO)
    net_sales = sum((r.net_sales_usd for r in records), ZERO)
    returns = sum((r.gross_returns_usd for r in records), ZERO)
    tax = sum((r.net_tax_usd for r in records), ZERO)
    units_sold = sum(r.gross_units_sold for r in records)
    units_returned = sum(r.gross_units_returned for r in records)
    activations = sum(r.gross_units_activated for r in records)

    after_tax = gross_sales - tax - abs(returns)
    platform_cut = after_tax * PLATFORM_SHARE
    developer_cut = after_tax * DEVELOPER_SHARE
    us_withholding = developer_cut * US_WITHHOLDING_RATE
    final_payout = developer_cut - us_withholding

    days = len({r.date for r in records})
    daily_average = final_payout / days if days else ZERO

    percentages = {
        "gross_sales": percent_of(gross_sales, gross_sales),
        "tax": percent_of(tax, gross_sales),
        "returns": percent_of(abs(returns), gross_sales),
        "after_tax": percent_of(after_tax, gross_sales),
        "platform_cut": percent_of(platform_cut, gross_sales),
        "developer_cut": percent_of(developer_cut, gross_sales),
        "us_withholding": percent_of(us_withholding, gross_sales),
        "final_payout": percent_of(final_payout, gross_sales),
    }

    return RevenueSummary(
        gross_sales=gross_sales,
        net_sales=net_sales,
        returns=returns,
        tax=tax,
        units_sold=units_sold,
        units_returned=units_returned,
        net_units=units_sold - abs(units_returned),
        activations=activations,
        after_tax=after_tax,
        platform_cut=platform_cut,
        developer_cut=developer_cut,
        us_withholding=us_withholding,
        final_payout=final_payout,
        days=days,
        daily_average=daily_average,
        percentages=percentages,
    )


def by_country(records: Iterable[SalesRecord], country_info: Iterable[CountryInfo] = ()) -> list[CountryBreakdown]:
    """Per-country gross/net/units, largest gross first.

    Units count sold plus activated keys.
    """
    names = {c.country_code: c.country_name for c in country_info if c.country_name}
    totals: dict[str, dict] = defaultdict(lambda: {"gross": ZERO, "net": ZERO, "units": 0})
    for r in records:
        entry = totals[r.country_code]
        entry["gross"] += r.gross_sales_usd
        entry["net"] += r.net_sales_usd
        entry["units"] += r.gross_units_sold + r.gross_units_activated

    rows = [
        CountryBreakdown(code=code, name=names.get(code, code), **values)
        for code, values in totals.items()
    ]
    rows.sort(key=lambda row: row.gross, reverse=True)
    return rows


def daily_payouts(records: Iterable[SalesRecord]) -> list[DailyPayout]:
    """Payout per report date, oldest first, rounded to cents."""
    per_date: dict[str, dict] = defaultdict(lambda: {"gross": ZERO, "tax": ZERO, "returns": ZERO})
    for r in records:
        entry = per_date[r.date]
        entry["gross"] += r.gross_sales_usd
        entry["tax"] += r.net_tax_usd
        entry["returns"] += r.gross_returns_usd

    return [
        DailyPayout(
            date=day,
            gross=values["gross"],
            payout=payout_for(values["gross"], values["tax"], values["returns"]).quantize(Decimal("0.01")),
        )
        for day, values in sorted(per_date.items())
    ]


def build_report(result: ReconciliationResult) -> dict[str, Any]:
    """JSON-ready payload for a reconciled date range."""
    return {
        "results": [r.model_dump(mode="json") for r in result.results],
        "country_info": [c.model_dump(mode="json") for c in result.country_info],
        "fetched": result.fetched,
        "cached": result.cached,
        "failed": result.failed,
        "dateRange": result.date_range.model_dump(mode="json", by_alias=True),
        "summary": summarize(result.results).model_dump(mode="json"),
        "countries": [c.model_dump(mode="json") for c in by_country(result.results, result.country_info)],
        "daily": [d.model_dump(mode="json") for d in daily_payouts(result.results)],
    }
