"""Tests for period-based date selection."""
import pytest

from dashboard.jobs.periods import select_dates

DATES = [f"2024/01/{day:02d}" for day in range(1, 21)]


def test_latest_and_yesterday():
    """Test single-date periods."""
    assert select_dates(DATES, "latest") == ["2024/01/20"]
    assert select_dates(DATES, "yesterday") == ["2024/01/19"]
    assert select_dates(["2024/01/01"], "yesterday") == []


def test_rolling_windows_skip_newest_date():
    """Test week/2weeks windows exclude the newest report."""
    week = select_dates(DATES, "week")
    assert week == DATES[12:19]
    assert "2024/01/20" not in week
    assert len(select_dates(DATES, "2weeks")) == 14


def test_month_with_short_history():
    """Test a window longer than the history returns what exists."""
    assert select_dates(DATES, "month") == DATES[:-1]


def test_all_and_empty():
    """Test the all period and no available dates."""
    assert select_dates(DATES, "all") == DATES
    assert select_dates([], "week") == []


def test_custom_range_inclusive():
    """Test custom bounds are inclusive and normalized."""
    assert select_dates(DATES, "custom", "2024-01-03", "2024/1/5") == ["2024/01/03", "2024/01/04", "2024/01/05"]
    assert select_dates(DATES, "custom", "2024/01/03", None) == []


def test_unknown_period():
    """Test an invalid period is rejected."""
    with pytest.raises(ValueError):
        select_dates(DATES, "fortnight")
