"""Helpers for ``YYYY/MM/DD`` report dates."""
from datetime import date, datetime, timezone
from typing import Optional

REPORT_DATE_FORMAT = "%Y/%m/%d"


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def format_report_date(value: date) -> str:
    return value.strftime(REPORT_DATE_FORMAT)


def parse_report_date(value: Optional[str]) -> Optional[date]:
    """Calendar date of a report date string; ``-`` separators accepted too.

    Returns None for blank or malformed input.
    """
    if not value:
        return None
    text = value.strip().replace("-", "/")
    try:
        return datetime.strptime(text, REPORT_DATE_FORMAT).date()
    except ValueError:
        return None


def normalize_report_date(value: str) -> str:
    """Zero-padded ``YYYY/MM/DD`` form, or the stripped input if unparseable."""
    parsed = parse_report_date(value)
    return format_report_date(parsed) if parsed else value.strip()
