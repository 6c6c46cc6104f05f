"""Fixed default content used when analytical text has to be synthesized.

Both the fallback synthesizer and the response validator draw from these
entries so that a defaulted section reads the same whichever path produced it.
"""

from __future__ import annotations

from shared.models import FactorCategory, FactorImpact, ReportKind, TrendFactor

REVENUE_BASELINE = 50000.0
VISITOR_BASELINE = 1000.0
DEFAULT_ACCURACY_SCORE = 94.2
DEFAULT_SCENARIO_CONFIDENCE = 85.0
FALLBACK_CONFIDENCE = 90.0

REPORT_LABELS: dict[ReportKind, str] = {
    ReportKind.VISITOR_ANALYSIS: "Visitor analysis",
    ReportKind.REVENUE_REPORT: "Revenue report",
    ReportKind.ATTRACTION_PERFORMANCE: "Attraction performance",
    ReportKind.DEMOGRAPHIC_INSIGHTS: "Demographic insights",
    ReportKind.CUSTOM: "Custom",
}

DEFAULT_INSIGHTS = [
    "Tourism data analysis completed based on available metrics",
    "Visitor patterns show standard tourism behavior",
    "Revenue trends align with industry expectations",
]

DEFAULT_RECOMMENDATIONS = [
    "Continue monitoring tourism metrics regularly",
    "Focus on maintaining service quality",
    "Consider implementing visitor feedback systems",
]

KIND_RECOMMENDATIONS: dict[ReportKind, str] = {
    ReportKind.VISITOR_ANALYSIS: "Spread demand by promoting off-peak days to regular visitors",
    ReportKind.REVENUE_REPORT: "Review pricing on the highest-traffic attractions",
    ReportKind.ATTRACTION_PERFORMANCE: "Share operating practices from top-rated attractions",
    ReportKind.DEMOGRAPHIC_INSIGHTS: "Target campaigns at under-represented visitor segments",
    ReportKind.CUSTOM: "Define follow-up metrics for the questions this report raises",
}

DEFAULT_KEY_PREDICTIONS = [
    "Tourism growth expected to continue based on historical trends",
    "Seasonal patterns suggest strong performance in upcoming months",
    "Digital engagement initiatives showing positive impact",
]

DEFAULT_RISK_FACTORS = [
    "Weather dependency remains a significant factor",
    "Economic uncertainty may impact visitor spending",
]

DEFAULT_OPPORTUNITIES = [
    "Growing interest in sustainable tourism options",
    "Digital marketing channels showing strong conversion rates",
]

DEFAULT_TREND_FACTORS = [
    TrendFactor(
        factor="Seasonal Tourism Patterns",
        impact=FactorImpact.POSITIVE,
        description="Favorable season approaching with expected 25% increase in visitors",
        expected_change=25,
        category=FactorCategory.SEASONAL,
        confidence=90,
    ),
    TrendFactor(
        factor="Economic Indicators",
        impact=FactorImpact.POSITIVE,
        description="Strong economic outlook supporting discretionary travel spending",
        expected_change=12,
        category=FactorCategory.ECONOMIC,
        confidence=85,
    ),
    TrendFactor(
        factor="Weather Conditions",
        impact=FactorImpact.POSITIVE,
        description="Favorable weather forecasts expected to boost outdoor attraction visits",
        expected_change=18,
        category=FactorCategory.WEATHER,
        confidence=75,
    ),
    TrendFactor(
        factor="Marketing Campaigns",
        impact=FactorImpact.POSITIVE,
        description="Digital marketing initiatives showing strong ROI and visitor acquisition",
        expected_change=15,
        category=FactorCategory.MARKETING,
        confidence=88,
    ),
]
