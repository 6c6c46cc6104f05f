"""Shared data models for TourEase Analytics.

All models follow these conventions:
- Timestamps: ISO 8601 format with timezone (UTC preferred)
- Field names: lowercase snake_case
- Enums: lowercase string values
"""

# Base
from .base import TourismBaseModel

# Analytics domain
from .analytics import (
    ACCURACY_SCORE_BOUNDS,
    SCENARIO_CONFIDENCE_BOUNDS,
    SEASONAL_INDEX_BOUNDS,
    TREND_CONFIDENCE_BOUNDS,
    AggregatedSnapshot,
    DemographicBucket,
    FactorCategory,
    FactorImpact,
    ForecastInsights,
    ForecastMetrics,
    Scenario,
    TopAttraction,
    TrendFactor,
    TrendPoint,
)

# Common types
from .common import (
    DateWindow,
    PaginatedResponse,
    PaginationParams,
)

# Report models
from .reports import (
    ForecastPeriod,
    Provenance,
    Report,
    ReportFormat,
    ReportKind,
    ReportMetadata,
    ReportPayload,
    ReportRequest,
    ReportStats,
    ReportStatus,
)

__all__ = [
    # Base
    "TourismBaseModel",
    # Common
    "DateWindow",
    "PaginatedResponse",
    "PaginationParams",
    # Analytics
    "ACCURACY_SCORE_BOUNDS",
    "SCENARIO_CONFIDENCE_BOUNDS",
    "SEASONAL_INDEX_BOUNDS",
    "TREND_CONFIDENCE_BOUNDS",
    "AggregatedSnapshot",
    "DemographicBucket",
    "FactorCategory",
    "FactorImpact",
    "ForecastInsights",
    "ForecastMetrics",
    "Scenario",
    "TopAttraction",
    "TrendFactor",
    "TrendPoint",
    # Reports
    "ForecastPeriod",
    "Provenance",
    "Report",
    "ReportFormat",
    "ReportKind",
    "ReportMetadata",
    "ReportPayload",
    "ReportRequest",
    "ReportStats",
    "ReportStatus",
]
