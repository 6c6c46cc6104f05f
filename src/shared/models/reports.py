"""Report models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import Field, field_validator

from .analytics import (
    AggregatedSnapshot,
    ForecastInsights,
    ForecastMetrics,
    Scenario,
    TrendFactor,
)
from .base import TourismBaseModel


class ReportKind(str, Enum):
    """Type of analytical report."""

    VISITOR_ANALYSIS = "visitor_analysis"
    REVENUE_REPORT = "revenue_report"
    ATTRACTION_PERFORMANCE = "attraction_performance"
    DEMOGRAPHIC_INSIGHTS = "demographic_insights"
    CUSTOM = "custom"


class ReportStatus(str, Enum):
    """Report lifecycle status. Completed and failed are terminal."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ReportFormat(str, Enum):
    """Download format."""

    PDF = "pdf"
    JSON = "json"
    MARKDOWN = "markdown"


class ForecastPeriod(str, Enum):
    """Planning period the forecast is tuned for."""

    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class Provenance(str, Enum):
    """Which path produced the analytical text of a report."""

    AI = "ai"
    SYNTHETIC = "synthetic"


class ReportRequest(TourismBaseModel):
    """Immutable request to generate a report."""

    model_config = TourismBaseModel.model_config | {"frozen": True}

    report_type: ReportKind
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    date_range: str = Field(
        default="last_30_days",
        max_length=100,
        description="Named range (last_7_days, last_30_days, ...) or '<start> to <end>'",
    )
    attraction_id: int | None = Field(default=None, description="None means all attractions")
    period: ForecastPeriod | None = Field(
        default=None, description="Derived from the date range when omitted"
    )
    forecast_horizon: int | None = Field(default=None, ge=1, description="Months to forecast")
    format: ReportFormat = ReportFormat.PDF

    @field_validator("title", "date_range")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class ReportMetadata(TourismBaseModel):
    """Provenance metadata stored with every payload."""

    generated_at: datetime
    provenance: Provenance
    report_type: ReportKind
    period: ForecastPeriod
    date_range: str
    attraction_id: int | None = None
    forecast_horizon: int = Field(ge=1)
    ai_model: str | None = None
    defaulted_fields: list[str] = Field(default_factory=list)


class ReportPayload(TourismBaseModel):
    """Complete analytical content of one report."""

    summary: str = Field(min_length=1)
    key_findings: list[str] = Field(min_length=1)
    insights: list[str] = Field(min_length=1)
    recommendations: list[str] = Field(min_length=1)
    data: AggregatedSnapshot
    forecast_metrics: ForecastMetrics | None = None
    revenue_scenarios: list[Scenario] = Field(default_factory=list)
    visitor_scenarios: list[Scenario] = Field(default_factory=list)
    forecast_insights: ForecastInsights | None = None
    trend_factors: list[TrendFactor] = Field(default_factory=list)
    metadata: ReportMetadata


class Report(TourismBaseModel):
    """A report record as exposed to callers."""

    id: UUID
    report_type: ReportKind
    title: str
    description: str | None = None
    date_range: str
    period: ForecastPeriod
    forecast_horizon: int
    attraction_id: int | None = Field(default=None, description="None = authority-wide")
    owner_id: str
    file_format: ReportFormat = ReportFormat.PDF
    status: ReportStatus
    provenance: Provenance | None = None
    payload: ReportPayload | None = None
    download_count: int = 0
    error_message: str | None = None
    created_at: datetime
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ReportStatus.COMPLETED, ReportStatus.FAILED)


class ReportStats(TourismBaseModel):
    """Aggregate figures over an owner's reports."""

    total_reports: int
    reports_this_month: int
    most_used_type: ReportKind | None = None
    total_downloads: int
    reports_by_type: dict[str, int] = Field(default_factory=dict)
    reports_by_status: dict[str, int] = Field(default_factory=dict)
    generated_at: datetime
