"""Date-range specifier resolution.

A specifier is either a named trailing window (``last_7_days``,
``last_30_days``, ``last_90_days``/``last_quarter``,
``last_365_days``/``last_year``) or a custom ``"<start> to <end>"`` string of
ISO dates. Anything that cannot be resolved degrades to the default 30-day
trailing window instead of failing the report.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from shared.models import DateWindow, ForecastPeriod
from shared.observability import get_logger

logger = get_logger(__name__)

DEFAULT_WINDOW_DAYS = 30
CUSTOM_RANGE_SEPARATOR = " to "

NAMED_RANGES: dict[str, int] = {
    "last_7_days": 7,
    "last_30_days": 30,
    "last_90_days": 90,
    "last_quarter": 90,
    "last_365_days": 365,
    "last_year": 365,
}

_PERIOD_BY_DAYS: dict[int, ForecastPeriod] = {
    7: ForecastPeriod.WEEK,
    30: ForecastPeriod.MONTH,
    90: ForecastPeriod.QUARTER,
    365: ForecastPeriod.YEAR,
}


def _trailing_window(days: int, now: datetime) -> DateWindow:
    return DateWindow(start=now - timedelta(days=days), end=now)


def _parse_instant(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def resolve_date_range(spec: str, now: datetime | None = None) -> DateWindow:
    """Resolve a date-range specifier into concrete start/end instants.

    Args:
        spec: Named range token or ``"<start> to <end>"``
        now: Reference instant for trailing windows (defaults to current UTC time)

    Returns:
        The resolved window; never raises for malformed input.
    """
    now = now or datetime.now(UTC)
    token = spec.strip()

    if token in NAMED_RANGES:
        return _trailing_window(NAMED_RANGES[token], now)

    if CUSTOM_RANGE_SEPARATOR in token:
        raw_start, raw_end = token.split(CUSTOM_RANGE_SEPARATOR, 1)
        start = _parse_instant(raw_start)
        end = _parse_instant(raw_end)
        if start is not None and end is not None and start <= end:
            return DateWindow(start=start, end=end)

    logger.warning(
        "Unresolvable date range, using default window",
        date_range=spec,
        default_days=DEFAULT_WINDOW_DAYS,
    )
    return _trailing_window(DEFAULT_WINDOW_DAYS, now)


def period_for_range(spec: str) -> ForecastPeriod:
    """Planning period implied by a date-range specifier.

    Named windows map onto week/month/quarter/year; custom ranges plan monthly.
    """
    days = NAMED_RANGES.get(spec.strip())
    if days is None:
        return ForecastPeriod.MONTH
    return _PERIOD_BY_DAYS[days]
