"""Analytics models: aggregated snapshots and forecasts.

Every numeric field carries its declared bound so that a value which
escaped validation upstream is rejected here rather than persisted.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import Field, field_validator, model_validator

from .base import TourismBaseModel

# Declared bounds shared by the validator, the fallback synthesizer and the prompt
SEASONAL_INDEX_BOUNDS = (0.5, 2.0)
ACCURACY_SCORE_BOUNDS = (85.0, 98.0)
SCENARIO_CONFIDENCE_BOUNDS = (70.0, 95.0)
TREND_CONFIDENCE_BOUNDS = (70.0, 95.0)


class TrendPoint(TourismBaseModel):
    """Visits and revenue recorded on one day."""

    day: date
    visits: int = Field(ge=0)
    revenue: float = Field(ge=0)


class TopAttraction(TourismBaseModel):
    """One entry of the ranked attraction list."""

    attraction_id: int
    name: str = "Unknown"
    category: str = "Unknown"
    visits: int = Field(ge=0)
    revenue: float = Field(ge=0)
    rating: float = Field(default=0.0, ge=0)


class DemographicBucket(TourismBaseModel):
    """Distinct visitor count for one demographic category."""

    category: str
    count: int = Field(ge=0)


class AggregatedSnapshot(TourismBaseModel):
    """Normalized aggregate statistics for one date window and scope."""

    start: datetime
    end: datetime
    attraction_id: int | None = None
    total_visits: int = Field(default=0, ge=0)
    total_revenue: float = Field(default=0.0, ge=0)
    unique_visitors: int = Field(default=0, ge=0)
    avg_rating: float = Field(default=0.0, ge=0)
    trend: list[TrendPoint] = Field(default_factory=list)
    top_attractions: list[TopAttraction] = Field(default_factory=list)
    demographics: list[DemographicBucket] = Field(default_factory=list)

    @field_validator("trend")
    @classmethod
    def trend_strictly_ascending(cls, v: list[TrendPoint]) -> list[TrendPoint]:
        """Trend days must be ascending with no duplicates."""
        for previous, current in zip(v, v[1:]):
            if current.day <= previous.day:
                raise ValueError(
                    f"trend dates must be strictly ascending ({previous.day} -> {current.day})"
                )
        return v


class ForecastMetrics(TourismBaseModel):
    """Headline forecast figures for the next period."""

    next_month_visitors: float = Field(ge=0)
    next_month_revenue: float = Field(ge=0)
    quarterly_revenue: float = Field(ge=0)
    seasonal_index: float = Field(ge=SEASONAL_INDEX_BOUNDS[0], le=SEASONAL_INDEX_BOUNDS[1])
    accuracy_score: float = Field(ge=ACCURACY_SCORE_BOUNDS[0], le=ACCURACY_SCORE_BOUNDS[1])
    growth_rate: float


class Scenario(TourismBaseModel):
    """Optimistic/realistic/pessimistic projection for one forecast month."""

    month: str = Field(pattern=r"^\d{4}-(0[1-9]|1[0-2])$", description="YYYY-MM")
    optimistic: float = Field(ge=0)
    realistic: float = Field(ge=0)
    pessimistic: float = Field(ge=0)
    confidence: float = Field(
        ge=SCENARIO_CONFIDENCE_BOUNDS[0], le=SCENARIO_CONFIDENCE_BOUNDS[1]
    )

    @model_validator(mode="after")
    def check_ordering(self) -> "Scenario":
        if not self.optimistic >= self.realistic >= self.pessimistic:
            raise ValueError("expected optimistic >= realistic >= pessimistic")
        return self


class FactorImpact(str, Enum):
    """Direction of a trend factor's influence."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class FactorCategory(str, Enum):
    """Kind of external influence."""

    WEATHER = "weather"
    EVENTS = "events"
    ECONOMIC = "economic"
    SEASONAL = "seasonal"
    MARKETING = "marketing"
    EXTERNAL = "external"


class TrendFactor(TourismBaseModel):
    """A named influence on visitor numbers with its estimated impact."""

    factor: str = Field(min_length=1)
    impact: FactorImpact
    description: str
    expected_change: float = Field(description="Expected percentage change")
    category: FactorCategory
    confidence: float = Field(ge=TREND_CONFIDENCE_BOUNDS[0], le=TREND_CONFIDENCE_BOUNDS[1])


class ForecastInsights(TourismBaseModel):
    """The three forecast insight categories."""

    key_predictions: list[str] = Field(min_length=1)
    risk_factors: list[str] = Field(min_length=1)
    opportunities: list[str] = Field(min_length=1)
