"""Prompt construction for the reasoning service.

The reasoning service is an untyped text boundary, so the prompt states the
exact response schema and the numeric ranges the answer must respect. The
validator re-checks every one of them on the way back.
"""

from __future__ import annotations

from datetime import UTC, date, datetime

from pydantic import BaseModel

from shared.models import (
    ACCURACY_SCORE_BOUNDS,
    SCENARIO_CONFIDENCE_BOUNDS,
    SEASONAL_INDEX_BOUNDS,
    TREND_CONFIDENCE_BOUNDS,
    AggregatedSnapshot,
    ForecastPeriod,
    ReportKind,
)


class PeriodProfile(BaseModel):
    """Analysis focus and expected numeric ranges for one planning period."""

    focus: str
    planning_focus: str
    growth_range: tuple[float, float]
    visitor_range: tuple[int, int]

    @property
    def growth_label(self) -> str:
        low, high = self.growth_range
        return f"{low:g}-{high:g}%"

    @property
    def visitor_label(self) -> str:
        low, high = self.visitor_range
        return f"{low}-{high}"


PERIOD_PROFILES: dict[ForecastPeriod, PeriodProfile] = {
    ForecastPeriod.WEEK: PeriodProfile(
        focus=(
            "Focus on short-term daily patterns, weekend vs weekday trends, and immediate "
            "booking patterns. Analyze daily fluctuations. Provide week-specific insights."
        ),
        planning_focus="daily operations and short-term optimization",
        growth_range=(2, 8),
        visitor_range=(5000, 20000),
    ),
    ForecastPeriod.MONTH: PeriodProfile(
        focus=(
            "Analyze monthly trends, seasonal effects, and holiday impacts. Focus on mid-term "
            "planning and monthly revenue cycles. Provide month-specific insights."
        ),
        planning_focus="monthly planning and seasonal preparation",
        growth_range=(5, 15),
        visitor_range=(12000, 30000),
    ),
    ForecastPeriod.QUARTER: PeriodProfile(
        focus=(
            "Focus on quarterly business cycles, seasonal tourism patterns, and strategic "
            "planning metrics. Emphasize 3-month trend analysis. Provide quarter-specific insights."
        ),
        planning_focus="quarterly strategy and long-term trends",
        growth_range=(8, 25),
        visitor_range=(25000, 60000),
    ),
    ForecastPeriod.YEAR: PeriodProfile(
        focus=(
            "Analyze annual patterns, long-term growth trends, economic cycles, and "
            "year-over-year comparisons. Focus on strategic insights for yearly planning."
        ),
        planning_focus="annual planning and strategic decisions",
        growth_range=(10, 40),
        visitor_range=(50000, 150000),
    ),
}

REPORT_FOCUS: dict[ReportKind, str] = {
    ReportKind.VISITOR_ANALYSIS: (
        "Examine visitor volumes, daily patterns, repeat visitation and how traffic is "
        "distributed across attractions."
    ),
    ReportKind.REVENUE_REPORT: (
        "Examine revenue totals, revenue per visit, the revenue contribution of each "
        "attraction and pricing opportunities."
    ),
    ReportKind.ATTRACTION_PERFORMANCE: (
        "Benchmark attractions against each other on visits, revenue and rating and explain "
        "what separates the leaders from the rest."
    ),
    ReportKind.DEMOGRAPHIC_INSIGHTS: (
        "Examine the visitor demographic mix, which segments are under-represented and how "
        "to reach them."
    ),
    ReportKind.CUSTOM: (
        "Examine visitor patterns, revenue trends and performance metrics across the "
        "provided data."
    ),
}


def coerce_period(period: ForecastPeriod | str) -> ForecastPeriod:
    """Parse a period, defaulting to monthly for unknown values."""
    try:
        return ForecastPeriod(period)
    except ValueError:
        return ForecastPeriod.MONTH


def profile_for(period: ForecastPeriod | str) -> PeriodProfile:
    """Profile for a period, defaulting to the monthly profile."""
    return PERIOD_PROFILES[coerce_period(period)]


def _bounds(bounds: tuple[float, float]) -> str:
    return f"{bounds[0]:g}-{bounds[1]:g}"


def build_prompt(
    snapshot: AggregatedSnapshot,
    report_type: ReportKind | str,
    period: ForecastPeriod | str,
    forecast_horizon: int,
    date_range: str,
    today: date | None = None,
) -> str:
    """Build the instruction text for one report.

    Pure function of its arguments; ``today`` defaults to the current UTC date.
    """
    profile = profile_for(period)
    kind = ReportKind(report_type)
    period_name = coerce_period(period).value
    current_date = (today or datetime.now(UTC).date()).isoformat()
    growth = profile.growth_label
    visitors = profile.visitor_label

    return f"""
You are a senior tourism analytics consultant. Analyze the tourism data below for the
period "{date_range}" and produce a {kind.value} report with predictive analytics
SPECIFICALLY FOR {period_name.upper()} ANALYSIS.

ANALYSIS CONTEXT:
- Current Date: {current_date}
- Analysis Period: {period_name}
- Forecast Horizon: {forecast_horizon} months
- Target Metrics: {profile.planning_focus}
- Expected Growth Range: {growth}
- Expected Visitor Range: {visitors}

REPORT FOCUS:
{REPORT_FOCUS[kind]}

PERIOD-SPECIFIC REQUIREMENTS:
{profile.focus}

TOURISM DATA:
{snapshot.model_dump_json(indent=2)}

CRITICAL INSTRUCTIONS:
- Use growth rates within the {growth} range
- Use visitor forecasts within the {visitors} range
- Provide exactly {forecast_horizon} entries in revenueScenarios and in visitorScenarios,
  one per month starting with the month after {current_date}
- Every scenario must satisfy optimistic >= realistic >= pessimistic >= 0
- Include specific numbers and percentages taken from the data

Respond with ONE JSON object and nothing else, using exactly this structure:
{{
  "summary": "Executive summary with the most important figures",
  "keyFindings": ["Finding with specific metrics", "..."],
  "insights": {{
    "keyPredictions": ["Prediction relevant to {period_name} planning", "..."],
    "riskFactors": ["Risk relevant to the {period_name} timeframe", "..."],
    "opportunities": ["Opportunity aligned with {period_name} strategy", "..."]
  }},
  "recommendations": ["Actionable recommendation", "..."],
  "forecastMetrics": {{
    "nextMonthVisitors": number (within {visitors}),
    "nextMonthRevenue": number (>= 0),
    "quarterlyRevenue": number (>= 0),
    "seasonalIndex": number ({_bounds(SEASONAL_INDEX_BOUNDS)}),
    "accuracyScore": number ({_bounds(ACCURACY_SCORE_BOUNDS)}),
    "growthRate": number (within {growth})
  }},
  "revenueScenarios": [
    {{"month": "YYYY-MM", "optimistic": number, "realistic": number, "pessimistic": number, "confidence": number ({_bounds(SCENARIO_CONFIDENCE_BOUNDS)})}}
  ],
  "visitorScenarios": [
    {{"month": "YYYY-MM", "optimistic": number, "realistic": number, "pessimistic": number, "confidence": number ({_bounds(SCENARIO_CONFIDENCE_BOUNDS)})}}
  ],
  "trendFactors": [
    {{
      "factor": "Factor name",
      "impact": "positive|negative|neutral",
      "description": "Detailed description",
      "expectedChange": number (percentage),
      "category": "weather|events|economic|seasonal|marketing|external",
      "confidence": number ({_bounds(TREND_CONFIDENCE_BOUNDS)})
    }}
  ]
}}
""".strip()
