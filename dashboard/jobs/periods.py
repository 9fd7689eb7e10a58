"""Select report dates for a named time period."""
from typing import Optional, Sequence

from dashboard.parse.report_dates import normalize_report_date

PERIODS = ("latest", "yesterday", "week", "2weeks", "month", "all", "custom")

# Rolling windows skip the newest date, whose report is usually incomplete
WINDOW_DAYS = {"week": 7, "2weeks": 14, "month": 31}


def select_dates(
    available: Sequence[str],
    period: str = "latest",
    custom_from: Optional[str] = None,
    custom_to: Optional[str] = None,
) -> list[str]:
    """Pick dates from an ascending list of available report dates."""
    if period not in PERIODS:
        raise ValueError(f"Unknown period {period!r}, expected one of {', '.join(PERIODS)}")
    dates = list(available)
    if not dates:
        return []

    if period == "latest":
        return [dates[-1]]
    if period == "yesterday":
        return [dates[-2]] if len(dates) > 1 else []
    if period == "all":
        return dates
    if period == "custom":
        if not custom_from or not custom_to:
            return []
        start = normalize_report_date(custom_from)
        end = normalize_report_date(custom_to)
        return [d for d in dates if start <= d <= end]

    return dates[:-1][-WINDOW_DAYS[period]:]
