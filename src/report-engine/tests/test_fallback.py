"""Fallback synthesizer tests."""

import math
import random
from datetime import UTC, datetime

import pytest

from shared.models import AggregatedSnapshot, ForecastPeriod, Provenance, ReportKind

from app.services import catalogue
from app.services.fallback import (
    build_scenarios,
    default_forecast_metrics,
    month_offset,
    seasonal_multiplier,
    synthesize,
)

NOW = datetime(2024, 1, 15, 9, 30, tzinfo=UTC)


@pytest.fixture
def empty_snapshot() -> AggregatedSnapshot:
    return AggregatedSnapshot(
        start=datetime(2023, 12, 16, tzinfo=UTC),
        end=datetime(2024, 1, 15, tzinfo=UTC),
    )


@pytest.mark.parametrize("horizon", [1, 2, 6, 12, 24])
def test_scenario_count_and_ordering(snapshot, horizon):
    payload = synthesize(snapshot, "month", horizon, now=NOW)

    for scenarios in (payload.revenue_scenarios, payload.visitor_scenarios):
        assert len(scenarios) == horizon
        for item in scenarios:
            assert item.optimistic >= item.realistic >= item.pessimistic >= 0
            assert 85 <= item.confidence <= 95


def test_scenario_values_follow_seasonal_model():
    first, second = build_scenarios(50000, 2, now=NOW)

    expected = 50000 * (1 + 0.3 * math.sin(2 * math.pi / 6))  # February
    assert first.month == "2024-02"
    assert first.realistic == round(expected)
    assert first.optimistic == round(expected * 1.25)
    assert first.pessimistic == round(expected * 0.75)
    assert second.month == "2024-03"


def test_months_roll_over_year_end():
    scenarios = build_scenarios(1000, 3, now=datetime(2024, 11, 30, tzinfo=UTC))
    assert [s.month for s in scenarios] == ["2024-12", "2025-01", "2025-02"]
    assert month_offset(datetime(2024, 12, 1, tzinfo=UTC), 13) == (2026, 1)


def test_seasonal_multiplier_range():
    values = [seasonal_multiplier(month) for month in range(1, 13)]
    assert min(values) == pytest.approx(0.7)
    assert max(values) == pytest.approx(1.3)


def test_values_are_deterministic(snapshot):
    first = synthesize(snapshot, "quarter", 6, now=NOW, rng=random.Random(1))
    second = synthesize(snapshot, "quarter", 6, now=NOW, rng=random.Random(99))

    assert [s.realistic for s in first.revenue_scenarios] == [s.realistic for s in second.revenue_scenarios]
    assert [s.optimistic for s in first.visitor_scenarios] == [s.optimistic for s in second.visitor_scenarios]
    assert first.summary == second.summary
    assert first.key_findings == second.key_findings
    assert first.forecast_metrics == second.forecast_metrics


def test_seeded_rng_reproduces_confidence(snapshot):
    first = synthesize(snapshot, "month", 3, now=NOW, rng=random.Random(5))
    second = synthesize(snapshot, "month", 3, now=NOW, rng=random.Random(5))
    assert first == second


def test_empty_snapshot_uses_baselines(empty_snapshot):
    payload = synthesize(empty_snapshot, "month", 1, now=NOW)
    multiplier = seasonal_multiplier(2)

    assert payload.revenue_scenarios[0].realistic == round(catalogue.REVENUE_BASELINE * multiplier)
    assert payload.visitor_scenarios[0].realistic == round(catalogue.VISITOR_BASELINE * multiplier)


@pytest.mark.parametrize("period", list(ForecastPeriod))
def test_forecast_metrics_within_period_bounds(snapshot, period):
    from app.services.prompts import PERIOD_PROFILES

    profile = PERIOD_PROFILES[period]
    metrics = default_forecast_metrics(snapshot, period, now=NOW)

    low, high = profile.visitor_range
    assert low <= metrics.next_month_visitors <= high
    growth_low, growth_high = profile.growth_range
    assert growth_low <= metrics.growth_rate <= growth_high
    assert 0.5 <= metrics.seasonal_index <= 2.0
    assert metrics.accuracy_score == catalogue.DEFAULT_ACCURACY_SCORE
    assert metrics.quarterly_revenue == metrics.next_month_revenue * 3


def test_payload_shape(snapshot):
    payload = synthesize(
        snapshot, "month", 3, report_type="revenue_report", date_range="last_30_days", now=NOW
    )

    assert payload.metadata.provenance == Provenance.SYNTHETIC
    assert payload.metadata.forecast_horizon == 3
    assert payload.metadata.report_type == "revenue_report"
    assert payload.data == snapshot
    assert "Revenue report" in payload.summary
    assert "Most visited attraction: Castle with 3 visits" in payload.key_findings
    assert payload.insights == catalogue.DEFAULT_INSIGHTS
    assert payload.recommendations[0] == catalogue.KIND_RECOMMENDATIONS[ReportKind.REVENUE_REPORT]
    assert [f.category for f in payload.trend_factors] == ["seasonal", "economic", "weather", "marketing"]
    assert payload.forecast_insights.key_predictions == catalogue.DEFAULT_KEY_PREDICTIONS


def test_zero_horizon_rejected(snapshot):
    with pytest.raises(ValueError):
        synthesize(snapshot, "month", 0, now=NOW)
