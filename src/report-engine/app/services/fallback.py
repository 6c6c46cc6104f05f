"""Deterministic fallback synthesizer.

Produces a ReportPayload with the same shape as the AI path using a seasonal
model over the snapshot. Scenario values depend only on the snapshot, the
period, the horizon and the reference instant; confidences carry a bounded
jitter.
"""

from __future__ import annotations

import math
import random
from datetime import UTC, datetime

from shared.models import (
    SEASONAL_INDEX_BOUNDS,
    AggregatedSnapshot,
    ForecastInsights,
    ForecastMetrics,
    ForecastPeriod,
    Provenance,
    ReportKind,
    ReportMetadata,
    ReportPayload,
    Scenario,
)

from . import catalogue
from .prompts import coerce_period, profile_for

CONFIDENCE_BOUNDS = (85.0, 95.0)
CONFIDENCE_JITTER = 0.05
OPTIMISTIC_FACTOR = 1.25
PESSIMISTIC_FACTOR = 0.75
SEASONAL_AMPLITUDE = 0.3
DAYS_PER_MONTH = 30


def clamp(value: float, low: float, high: float) -> float:
    """Constrain ``value`` to the closed interval [low, high]."""
    return max(low, min(high, value))


def month_offset(now: datetime, months: int) -> tuple[int, int]:
    """(year, month) that lies ``months`` calendar months after ``now``."""
    index = now.month - 1 + months
    return now.year + index // 12, index % 12 + 1


def seasonal_multiplier(month: int) -> float:
    """Seasonal weight for a calendar month (1-12)."""
    month_index = month - 1
    return 1 + SEASONAL_AMPLITUDE * math.sin((month_index + 1) * math.pi / 6)


def jittered_confidence(rng: random.Random | None = None) -> float:
    """Fallback confidence, always within CONFIDENCE_BOUNDS."""
    rng = rng or random.Random()
    jitter = rng.uniform(-CONFIDENCE_JITTER, CONFIDENCE_JITTER)
    return round(clamp(catalogue.FALLBACK_CONFIDENCE * (1 + jitter), *CONFIDENCE_BOUNDS), 1)


def build_scenarios(
    base_value: float,
    horizon: int,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> list[Scenario]:
    """Month-by-month projections for ``horizon`` months after ``now``."""
    now = now or datetime.now(UTC)
    base_value = max(0.0, base_value)
    scenarios = []
    for offset in range(1, horizon + 1):
        year, month = month_offset(now, offset)
        base = base_value * seasonal_multiplier(month)
        scenarios.append(
            Scenario(
                month=f"{year:04d}-{month:02d}",
                optimistic=round(base * OPTIMISTIC_FACTOR),
                realistic=round(base),
                pessimistic=round(base * PESSIMISTIC_FACTOR),
                confidence=jittered_confidence(rng),
            )
        )
    return scenarios


def monthly_baselines(snapshot: AggregatedSnapshot) -> tuple[float, float]:
    """Monthly (visitors, revenue) run-rates, or catalogue baselines for empty data."""
    days = max(1.0, (snapshot.end - snapshot.start).total_seconds() / 86400)
    visitors = snapshot.total_visits / days * DAYS_PER_MONTH
    revenue = snapshot.total_revenue / days * DAYS_PER_MONTH
    return (
        visitors if visitors > 0 else catalogue.VISITOR_BASELINE,
        revenue if revenue > 0 else catalogue.REVENUE_BASELINE,
    )


def default_forecast_metrics(
    snapshot: AggregatedSnapshot,
    period: ForecastPeriod | str,
    now: datetime | None = None,
) -> ForecastMetrics:
    """Forecast metrics derived from the snapshot run-rate, within the period's bounds."""
    now = now or datetime.now(UTC)
    profile = profile_for(period)
    growth_low, growth_high = profile.growth_range
    growth_rate = round((growth_low + growth_high) / 2, 1)
    visitors, revenue = monthly_baselines(snapshot)
    next_revenue = round(revenue * (1 + growth_rate / 100))
    _, next_month = month_offset(now, 1)

    return ForecastMetrics(
        next_month_visitors=round(
            clamp(visitors * (1 + growth_rate / 100), *profile.visitor_range)
        ),
        next_month_revenue=next_revenue,
        quarterly_revenue=next_revenue * 3,
        seasonal_index=round(clamp(seasonal_multiplier(next_month), *SEASONAL_INDEX_BOUNDS), 2),
        accuracy_score=catalogue.DEFAULT_ACCURACY_SCORE,
        growth_rate=growth_rate,
    )


def default_summary(snapshot: AggregatedSnapshot, report_type: ReportKind | str, date_range: str) -> str:
    label = catalogue.REPORT_LABELS.get(ReportKind(report_type), "Tourism")
    return (
        f"{label} report generated for {date_range}. "
        f"Total visits: {snapshot.total_visits:,}, "
        f"revenue: ${snapshot.total_revenue:,.2f}, "
        f"unique visitors: {snapshot.unique_visitors:,}, "
        f"average attraction rating: {snapshot.avg_rating:.1f}/5.0."
    )


def default_key_findings(snapshot: AggregatedSnapshot) -> list[str]:
    findings = [
        f"Total visits recorded: {snapshot.total_visits:,}",
        f"Total revenue generated: ${snapshot.total_revenue:,.2f}",
        f"Unique visitors: {snapshot.unique_visitors:,}",
        f"Average attraction rating: {snapshot.avg_rating:.1f}/5.0",
    ]
    if snapshot.top_attractions:
        leader = snapshot.top_attractions[0]
        findings.append(
            f"Most visited attraction: {leader.name} with {leader.visits:,} visits"
        )
    return findings


def default_recommendations(report_type: ReportKind | str) -> list[str]:
    kind = ReportKind(report_type)
    return [catalogue.KIND_RECOMMENDATIONS[kind], *catalogue.DEFAULT_RECOMMENDATIONS]


def default_forecast_insights() -> ForecastInsights:
    return ForecastInsights(
        key_predictions=list(catalogue.DEFAULT_KEY_PREDICTIONS),
        risk_factors=list(catalogue.DEFAULT_RISK_FACTORS),
        opportunities=list(catalogue.DEFAULT_OPPORTUNITIES),
    )


def synthesize(
    snapshot: AggregatedSnapshot,
    period: ForecastPeriod | str,
    horizon_months: int,
    report_type: ReportKind | str = ReportKind.CUSTOM,
    date_range: str = "the selected period",
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> ReportPayload:
    """Build a complete synthetic payload for a snapshot.

    Args:
        snapshot: Aggregated data the report describes
        period: Planning period used for metric bounds
        horizon_months: Number of scenario months (>= 1)
        report_type: Report kind, selects summary wording and recommendations
        date_range: Date-range specifier echoed in the summary and metadata
        now: Reference instant for scenario months
        rng: Source of confidence jitter (a fresh Random when omitted)
    """
    if horizon_months < 1:
        raise ValueError("horizon_months must be at least 1")

    now = now or datetime.now(UTC)
    period = coerce_period(period)
    visitors, revenue = monthly_baselines(snapshot)

    return ReportPayload(
        summary=default_summary(snapshot, report_type, date_range),
        key_findings=default_key_findings(snapshot),
        insights=list(catalogue.DEFAULT_INSIGHTS),
        recommendations=default_recommendations(report_type),
        data=snapshot,
        forecast_metrics=default_forecast_metrics(snapshot, period, now),
        revenue_scenarios=build_scenarios(revenue, horizon_months, now, rng),
        visitor_scenarios=build_scenarios(visitors, horizon_months, now, rng),
        forecast_insights=default_forecast_insights(),
        trend_factors=[factor.model_copy() for factor in catalogue.DEFAULT_TREND_FACTORS],
        metadata=ReportMetadata(
            generated_at=now,
            provenance=Provenance.SYNTHETIC,
            report_type=ReportKind(report_type),
            period=period,
            date_range=date_range,
            attraction_id=snapshot.attraction_id,
            forecast_horizon=horizon_months,
        ),
    )
