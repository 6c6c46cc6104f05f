"""Response validation and normalization.

The reasoning service returns free text. ``validate_response`` maps that text
onto a complete ReportPayload and never raises: every field that is missing,
wrong-typed or out of range is clamped or replaced by its default on its own,
so one bad field never discards the rest of the answer.
"""

from __future__ import annotations

import json
import math
import random
import re
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from shared.models import (
    ACCURACY_SCORE_BOUNDS,
    SCENARIO_CONFIDENCE_BOUNDS,
    SEASONAL_INDEX_BOUNDS,
    TREND_CONFIDENCE_BOUNDS,
    AggregatedSnapshot,
    FactorCategory,
    FactorImpact,
    ForecastInsights,
    ForecastMetrics,
    ForecastPeriod,
    Provenance,
    ReportKind,
    ReportMetadata,
    ReportPayload,
    Scenario,
    TrendFactor,
)
from shared.observability import get_logger

from . import catalogue, fallback
from .prompts import coerce_period, profile_for

logger = get_logger(__name__)

# Top-level sections of the response; provenance is decided over these
SECTIONS = (
    "summary",
    "keyFindings",
    "insights",
    "recommendations",
    "forecastMetrics",
    "revenueScenarios",
    "visitorScenarios",
    "trendFactors",
)

_MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
_INSIGHT_CATEGORIES = {
    "keyPredictions": "key_predictions",
    "riskFactors": "risk_factors",
    "opportunities": "opportunities",
}
_IMPACTS = tuple(member.value for member in FactorImpact)
_CATEGORIES = tuple(member.value for member in FactorCategory)
DEFAULT_TREND_CONFIDENCE = 80.0


class ValidationStatus(str, Enum):
    """Outcome of validating one response."""

    VALID = "valid"
    PARTIALLY_VALID = "partially_valid"


class ValidationResult(BaseModel):
    """A complete payload plus the fields that had to be defaulted."""

    status: ValidationStatus
    payload: ReportPayload
    defaulted_fields: list[str] = Field(default_factory=list)
    defaulted_sections: list[str] = Field(default_factory=list)

    @property
    def provenance(self) -> Provenance:
        return Provenance(self.payload.metadata.provenance)


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first balanced ``{...}`` substring of ``text`` that parses as an object.

    Braces inside JSON strings are ignored. Candidates that are balanced but
    do not parse, and braces that never close, are skipped; the search
    resumes after their opening brace.
    """
    if not text:
        return None

    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end is None:
            start = text.find("{", start + 1)
            continue
        try:
            candidate = json.loads(text[start : end + 1])
        except ValueError:
            candidate = None
        if isinstance(candidate, dict):
            return candidate
        start = text.find("{", start + 1)
    return None


def _balanced_end(text: str, start: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in (_text(entry) for entry in value) if item is not None]


class _Normalizer:
    """Per-response state: the defaults to draw from and what was defaulted."""

    def __init__(
        self,
        snapshot: AggregatedSnapshot,
        period: ForecastPeriod,
        horizon: int,
        report_type: ReportKind,
        date_range: str,
        now: datetime,
        rng: random.Random | None,
    ):
        self.snapshot = snapshot
        self.period = period
        self.profile = profile_for(period)
        self.horizon = horizon
        self.report_type = report_type
        self.date_range = date_range
        self.now = now
        self.rng = rng
        self.defaulted_fields: list[str] = []
        self.defaulted_sections: list[str] = []

    def default(self, field: str) -> None:
        self.defaulted_fields.append(field)

    def default_section(self, section: str) -> None:
        self.defaulted_sections.append(section)
        self.defaulted_fields.append(section)

    def summary(self, raw: Any) -> str:
        value = _text(raw)
        if value is None:
            self.default_section("summary")
            return fallback.default_summary(self.snapshot, self.report_type, self.date_range)
        return value

    def string_section(self, section: str, raw: Any, defaults: list[str]) -> list[str]:
        values = _string_list(raw)
        if not values:
            self.default_section(section)
            return list(defaults)
        if isinstance(raw, list) and len(values) < len(raw):
            self.default(f"{section}[]")
        return values

    def insights(self, raw: Any) -> tuple[list[str], ForecastInsights]:
        """Flat insight list plus the three categories.

        Accepts either the categorized object or a plain list of strings.
        """
        if isinstance(raw, list):
            values = _string_list(raw)
            for name in _INSIGHT_CATEGORIES:
                self.default(f"insights.{name}")
            if not values:
                self.default_section("insights")
                return list(catalogue.DEFAULT_INSIGHTS), fallback.default_forecast_insights()
            return values, fallback.default_forecast_insights()

        source = raw if isinstance(raw, dict) else {}
        defaults = fallback.default_forecast_insights()
        categories: dict[str, list[str]] = {}
        flat: list[str] = []
        for name, attribute in _INSIGHT_CATEGORIES.items():
            values = _string_list(source.get(name))
            if values:
                flat.extend(values)
                categories[attribute] = values
            else:
                self.default(f"insights.{name}")
                categories[attribute] = getattr(defaults, attribute)

        if not flat:
            self.default_section("insights")
            flat = list(catalogue.DEFAULT_INSIGHTS)
        return flat, ForecastInsights(**categories)

    def forecast_metrics(self, raw: Any) -> ForecastMetrics:
        defaults = fallback.default_forecast_metrics(self.snapshot, self.period, self.now)
        source = raw if isinstance(raw, dict) else {}
        bounds: dict[str, tuple[str, tuple[float, float]]] = {
            "nextMonthVisitors": ("next_month_visitors", self.profile.visitor_range),
            "nextMonthRevenue": ("next_month_revenue", (0.0, math.inf)),
            "quarterlyRevenue": ("quarterly_revenue", (0.0, math.inf)),
            "seasonalIndex": ("seasonal_index", SEASONAL_INDEX_BOUNDS),
            "accuracyScore": ("accuracy_score", ACCURACY_SCORE_BOUNDS),
            "growthRate": ("growth_rate", self.profile.growth_range),
        }

        values: dict[str, float] = {}
        missing = 0
        for key, (attribute, (low, high)) in bounds.items():
            number = _number(source.get(key))
            if number is None:
                missing += 1
                values[attribute] = getattr(defaults, attribute)
            else:
                values[attribute] = fallback.clamp(number, low, high)

        if missing == len(bounds):
            self.default_section("forecastMetrics")
        else:
            for key, (attribute, _) in bounds.items():
                if _number(source.get(key)) is None:
                    self.default(f"forecastMetrics.{key}")
        return ForecastMetrics(**values)

    def scenarios(self, section: str, raw: Any, base_value: float) -> list[Scenario]:
        """Exactly ``horizon`` scenarios; bad or missing entries are replaced in place."""
        replacements = fallback.build_scenarios(base_value, self.horizon, self.now, self.rng)
        entries = raw if isinstance(raw, list) else []
        result: list[Scenario] = []
        kept = 0
        for index in range(self.horizon):
            scenario = None
            if index < len(entries):
                scenario = self._scenario(entries[index], replacements[index].month)
            if scenario is None:
                self.default(f"{section}[{index}]")
                scenario = replacements[index]
            else:
                kept += 1
            result.append(scenario)

        if kept == 0:
            self.default_section(section)
            self.defaulted_fields = [
                field for field in self.defaulted_fields if not field.startswith(f"{section}[")
            ]
        return result

    @staticmethod
    def _scenario(raw: Any, expected_month: str) -> Scenario | None:
        if not isinstance(raw, dict):
            return None
        triple = [_number(raw.get(key)) for key in ("optimistic", "realistic", "pessimistic")]
        if any(value is None for value in triple):
            return None
        optimistic, realistic, pessimistic = sorted(
            (max(0.0, value) for value in triple), reverse=True
        )
        month = raw.get("month")
        if not (isinstance(month, str) and _MONTH_PATTERN.match(month)):
            month = expected_month
        confidence = _number(raw.get("confidence"))
        if confidence is None:
            confidence = catalogue.DEFAULT_SCENARIO_CONFIDENCE
        return Scenario(
            month=month,
            optimistic=optimistic,
            realistic=realistic,
            pessimistic=pessimistic,
            confidence=fallback.clamp(confidence, *SCENARIO_CONFIDENCE_BOUNDS),
        )

    def trend_factors(self, raw: Any) -> list[TrendFactor]:
        entries = raw if isinstance(raw, list) else []
        factors = [factor for factor in (self._trend_factor(entry) for entry in entries) if factor]
        if not factors:
            self.default_section("trendFactors")
            return [factor.model_copy() for factor in catalogue.DEFAULT_TREND_FACTORS]
        if len(factors) < len(entries):
            self.default("trendFactors[]")
        return factors

    @staticmethod
    def _trend_factor(raw: Any) -> TrendFactor | None:
        if not isinstance(raw, dict):
            return None
        name = _text(raw.get("factor"))
        impact = raw.get("impact")
        expected_change = _number(raw.get("expectedChange"))
        if name is None or expected_change is None:
            return None
        if impact not in _IMPACTS:
            return None
        category = raw.get("category")
        if category not in _CATEGORIES:
            category = FactorCategory.EXTERNAL
        confidence = _number(raw.get("confidence"))
        if confidence is None:
            confidence = DEFAULT_TREND_CONFIDENCE
        return TrendFactor(
            factor=name,
            impact=impact,
            description=_text(raw.get("description")) or "",
            expected_change=expected_change,
            category=category,
            confidence=fallback.clamp(confidence, *TREND_CONFIDENCE_BOUNDS),
        )


def validate_response(
    raw_text: str | None,
    snapshot: AggregatedSnapshot,
    period: ForecastPeriod | str,
    horizon: int,
    report_type: ReportKind | str = ReportKind.CUSTOM,
    date_range: str = "the selected period",
    now: datetime | None = None,
    ai_model: str | None = None,
    rng: random.Random | None = None,
) -> ValidationResult:
    """Map raw reasoning-service text onto a complete ReportPayload.

    Never raises. A payload whose majority of top-level sections had to be
    defaulted is labelled synthetic; otherwise it is labelled ai.
    """
    now = now or datetime.now(UTC)
    period = coerce_period(period)
    kind = ReportKind(report_type)
    normalizer = _Normalizer(snapshot, period, horizon, kind, date_range, now, rng)

    document = extract_json_object(raw_text or "")
    if document is None:
        logger.warning("No JSON object found in reasoning response", length=len(raw_text or ""))
        document = {}

    visitors_base, revenue_base = fallback.monthly_baselines(snapshot)
    insights, forecast_insights = normalizer.insights(document.get("insights"))

    payload_fields = {
        "summary": normalizer.summary(document.get("summary")),
        "key_findings": normalizer.string_section(
            "keyFindings", document.get("keyFindings"), fallback.default_key_findings(snapshot)
        ),
        "insights": insights,
        "recommendations": normalizer.string_section(
            "recommendations",
            document.get("recommendations"),
            fallback.default_recommendations(kind),
        ),
        "forecast_metrics": normalizer.forecast_metrics(document.get("forecastMetrics")),
        "revenue_scenarios": normalizer.scenarios(
            "revenueScenarios", document.get("revenueScenarios"), revenue_base
        ),
        "visitor_scenarios": normalizer.scenarios(
            "visitorScenarios", document.get("visitorScenarios"), visitors_base
        ),
        "forecast_insights": forecast_insights,
        "trend_factors": normalizer.trend_factors(document.get("trendFactors")),
    }

    synthetic = len(normalizer.defaulted_sections) * 2 > len(SECTIONS)
    payload = ReportPayload(
        **payload_fields,
        data=snapshot,
        metadata=ReportMetadata(
            generated_at=now,
            provenance=Provenance.SYNTHETIC if synthetic else Provenance.AI,
            report_type=kind,
            period=period,
            date_range=date_range,
            attraction_id=snapshot.attraction_id,
            forecast_horizon=horizon,
            ai_model=None if synthetic else ai_model,
            defaulted_fields=normalizer.defaulted_fields,
        ),
    )

    status = (
        ValidationStatus.PARTIALLY_VALID
        if normalizer.defaulted_fields
        else ValidationStatus.VALID
    )
    logger.info(
        "Reasoning response validated",
        status=status.value,
        provenance=payload.metadata.provenance,
        defaulted_sections=len(normalizer.defaulted_sections),
        defaulted_fields=len(normalizer.defaulted_fields),
    )
    return ValidationResult(
        status=status,
        payload=payload,
        defaulted_fields=normalizer.defaulted_fields,
        defaulted_sections=normalizer.defaulted_sections,
    )
