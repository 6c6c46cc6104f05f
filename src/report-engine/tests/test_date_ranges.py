"""Date-range resolution tests."""

from datetime import UTC, datetime, timedelta

import pytest

from shared.models import ForecastPeriod

from app.services.date_ranges import DEFAULT_WINDOW_DAYS, period_for_range, resolve_date_range

NOW = datetime(2024, 4, 2, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    "spec,days",
    [
        ("last_7_days", 7),
        ("last_30_days", 30),
        ("last_90_days", 90),
        ("last_quarter", 90),
        ("last_365_days", 365),
        ("last_year", 365),
    ],
)
def test_named_ranges(spec: str, days: int):
    window = resolve_date_range(spec, now=NOW)
    assert window.end == NOW
    assert window.start == NOW - timedelta(days=days)


def test_custom_range():
    window = resolve_date_range("2024-01-01 to 2024-01-31", now=NOW)
    assert window.start == datetime(2024, 1, 1, tzinfo=UTC)
    assert window.end == datetime(2024, 1, 31, tzinfo=UTC)


def test_custom_range_keeps_offsets():
    window = resolve_date_range("2024-01-01T08:00:00+02:00 to 2024-01-02T08:00:00+02:00", now=NOW)
    assert window.start.utcoffset() == timedelta(hours=2)


@pytest.mark.parametrize(
    "spec",
    [
        "not-a-date",
        "2024-01-01 to someday",
        "2024-02-01 to 2024-01-01",
        "yesterday",
        "2024-01-01",
    ],
)
def test_unresolvable_ranges_use_default_window(spec: str):
    """Malformed specifiers degrade to the trailing 30-day window."""
    window = resolve_date_range(spec, now=NOW)
    assert window.end == NOW
    assert window.start == NOW - timedelta(days=DEFAULT_WINDOW_DAYS)


def test_surrounding_whitespace_ignored():
    window = resolve_date_range("  last_7_days ", now=NOW)
    assert window.start == NOW - timedelta(days=7)


@pytest.mark.parametrize(
    "spec,period",
    [
        ("last_7_days", ForecastPeriod.WEEK),
        ("last_30_days", ForecastPeriod.MONTH),
        ("last_quarter", ForecastPeriod.QUARTER),
        ("last_365_days", ForecastPeriod.YEAR),
        ("2024-01-01 to 2024-12-31", ForecastPeriod.MONTH),
        ("not-a-date", ForecastPeriod.MONTH),
    ],
)
def test_period_for_range(spec: str, period: ForecastPeriod):
    assert period_for_range(spec) == period
