"""Response validator tests."""

import json
import random
from datetime import UTC, datetime

import pytest

from shared.models import Provenance

from app.services import catalogue, fallback
from app.services.validation import (
    SECTIONS,
    ValidationStatus,
    extract_json_object,
    validate_response,
)

NOW = datetime(2024, 4, 2, 12, 0, tzinfo=UTC)


def scenario(month: str, optimistic=1200, realistic=1000, pessimistic=800, confidence=85):
    return {
        "month": month,
        "optimistic": optimistic,
        "realistic": realistic,
        "pessimistic": pessimistic,
        "confidence": confidence,
    }


def full_response() -> dict:
    return {
        "summary": "March revenue reached $175.50 across 4 visits.",
        "keyFindings": ["Castle drew 3 of 4 visits", "Museum earned $50.50"],
        "insights": {
            "keyPredictions": ["April visits grow 10%"],
            "riskFactors": ["Rainy weekends"],
            "opportunities": ["Bundle Castle and Museum tickets"],
        },
        "recommendations": ["Introduce a combined ticket"],
        "forecastMetrics": {
            "nextMonthVisitors": 15000,
            "nextMonthRevenue": 280000,
            "quarterlyRevenue": 850000,
            "seasonalIndex": 1.15,
            "accuracyScore": 94.2,
            "growthRate": 8.5,
        },
        "revenueScenarios": [scenario("2024-05"), scenario("2024-06"), scenario("2024-07")],
        "visitorScenarios": [scenario("2024-05"), scenario("2024-06"), scenario("2024-07")],
        "trendFactors": [
            {
                "factor": "Easter holidays",
                "impact": "positive",
                "description": "School holidays lift family visits",
                "expectedChange": 12,
                "category": "events",
                "confidence": 82,
            }
        ],
    }


def run(snapshot, text, period="month", horizon=3):
    return validate_response(
        text,
        snapshot,
        period,
        horizon,
        report_type="revenue_report",
        date_range="last_30_days",
        now=NOW,
        ai_model="gemini-1.5-flash",
        rng=random.Random(3),
    )


class TestExtractJsonObject:
    """Test locating the structured payload in free text."""

    def test_object_wrapped_in_prose(self):
        text = 'Here is the analysis:\n```json\n{"summary": "ok", "n": {"x": 1}}\n```\nThanks!'
        assert extract_json_object(text) == {"summary": "ok", "n": {"x": 1}}

    def test_braces_inside_strings(self):
        text = 'x {"summary": "use {braces} and \\"quotes\\" }"} y'
        assert extract_json_object(text) == {"summary": 'use {braces} and "quotes" }'}

    def test_skips_unparseable_candidates(self):
        text = "{not json} then {\"summary\": \"second\"}"
        assert extract_json_object(text) == {"summary": "second"}

    def test_unclosed_brace_before_object(self):
        text = "Ranges are written like {low-high in the prompt. Result: " + '{"summary": "Real summary"}'
        assert extract_json_object(text) == {"summary": "Real summary"}

    @pytest.mark.parametrize("text", ["", "no braces at all", "{unterminated", "[1, 2, 3]"])
    def test_nothing_extractable(self, text):
        assert extract_json_object(text) is None


class TestValidateResponse:
    """Test per-field normalization."""

    def test_complete_response_is_valid(self, snapshot):
        result = run(snapshot, json.dumps(full_response()))

        assert result.status == ValidationStatus.VALID
        assert result.defaulted_fields == []
        assert result.provenance == Provenance.AI
        payload = result.payload
        assert payload.summary.startswith("March revenue")
        assert payload.insights == [
            "April visits grow 10%",
            "Rainy weekends",
            "Bundle Castle and Museum tickets",
        ]
        assert payload.forecast_insights.risk_factors == ["Rainy weekends"]
        assert payload.metadata.ai_model == "gemini-1.5-flash"
        assert payload.trend_factors[0].factor == "Easter holidays"

    def test_in_bounds_values_preserved(self, snapshot):
        metrics = run(snapshot, json.dumps(full_response())).payload.forecast_metrics

        assert metrics.next_month_visitors == 15000
        assert metrics.next_month_revenue == 280000
        assert metrics.quarterly_revenue == 850000
        assert metrics.seasonal_index == 1.15
        assert metrics.accuracy_score == 94.2
        assert metrics.growth_rate == 8.5

    def test_out_of_bounds_values_clamped(self, snapshot):
        response = full_response()
        response["forecastMetrics"].update(
            {
                "nextMonthVisitors": 1_000_000,
                "nextMonthRevenue": -50,
                "seasonalIndex": 3.7,
                "accuracyScore": 42,
                "growthRate": 99,
            }
        )
        metrics = run(snapshot, json.dumps(response)).payload.forecast_metrics

        assert metrics.next_month_visitors == 30000
        assert metrics.next_month_revenue == 0
        assert metrics.seasonal_index == 2.0
        assert metrics.accuracy_score == 85.0
        assert metrics.growth_rate == 15

    def test_clamping_is_idempotent(self, snapshot):
        response = full_response()
        response["forecastMetrics"]["seasonalIndex"] = 0.1
        first = run(snapshot, json.dumps(response)).payload.forecast_metrics

        response["forecastMetrics"]["seasonalIndex"] = first.seasonal_index
        second = run(snapshot, json.dumps(response)).payload.forecast_metrics
        assert second.seasonal_index == first.seasonal_index == 0.5

    def test_growth_bounds_follow_period(self, snapshot):
        response = full_response()
        response["forecastMetrics"]["growthRate"] = 35
        assert run(snapshot, json.dumps(response), period="year").payload.forecast_metrics.growth_rate == 35
        assert run(snapshot, json.dumps(response), period="week").payload.forecast_metrics.growth_rate == 8

    def test_only_forecast_metrics_present(self, snapshot):
        """Provided metrics survive while every missing section is defaulted."""
        metrics = full_response()["forecastMetrics"]
        text = f"Sure! Based on the data: {json.dumps({'forecastMetrics': metrics})} Hope this helps."
        result = run(snapshot, text)
        payload = result.payload

        assert payload.forecast_metrics.next_month_visitors == 15000
        assert payload.forecast_metrics.accuracy_score == 94.2
        assert payload.insights == catalogue.DEFAULT_INSIGHTS
        assert payload.forecast_insights.key_predictions == catalogue.DEFAULT_KEY_PREDICTIONS
        assert "insights" in result.defaulted_sections
        assert "forecastMetrics" not in result.defaulted_sections
        assert result.status == ValidationStatus.PARTIALLY_VALID
        # seven of eight sections defaulted
        assert result.provenance == Provenance.SYNTHETIC

    @pytest.mark.parametrize("text", ["", "The model is overloaded.", "{broken", None])
    def test_unparseable_text_yields_complete_synthetic_payload(self, snapshot, text):
        result = run(snapshot, text)
        payload = result.payload

        assert result.provenance == Provenance.SYNTHETIC
        assert sorted(result.defaulted_sections) == sorted(SECTIONS)
        assert payload.summary == fallback.default_summary(snapshot, "revenue_report", "last_30_days")
        assert payload.key_findings == fallback.default_key_findings(snapshot)
        assert payload.insights == catalogue.DEFAULT_INSIGHTS
        assert payload.recommendations
        assert payload.trend_factors
        assert len(payload.revenue_scenarios) == 3
        assert len(payload.visitor_scenarios) == 3

    def test_minority_of_defaults_stays_ai(self, snapshot):
        response = full_response()
        del response["trendFactors"]
        response["summary"] = 42
        result = run(snapshot, json.dumps(response))

        assert result.provenance == Provenance.AI
        assert result.defaulted_sections == ["summary", "trendFactors"]
        assert result.payload.trend_factors == catalogue.DEFAULT_TREND_FACTORS
        assert "Revenue report" in result.payload.summary

    def test_bad_list_elements_dropped(self, snapshot):
        response = full_response()
        response["keyFindings"] = ["Valid finding", 7, None, "  ", "Another finding"]
        result = run(snapshot, json.dumps(response))

        assert result.payload.key_findings == ["Valid finding", "Another finding"]
        assert "keyFindings[]" in result.defaulted_fields

    def test_empty_list_replaced_with_defaults(self, snapshot):
        response = full_response()
        response["recommendations"] = []
        result = run(snapshot, json.dumps(response))

        assert result.payload.recommendations
        assert "recommendations" in result.defaulted_sections

    def test_flat_insight_list_accepted(self, snapshot):
        response = full_response()
        response["insights"] = ["Weekend traffic dominates", "Revenue per visit is rising"]
        result = run(snapshot, json.dumps(response))

        assert result.payload.insights == ["Weekend traffic dominates", "Revenue per visit is rising"]
        assert result.payload.forecast_insights.opportunities == catalogue.DEFAULT_OPPORTUNITIES
        assert "insights" not in result.defaulted_sections

    def test_missing_insight_category_defaulted(self, snapshot):
        response = full_response()
        del response["insights"]["riskFactors"]
        result = run(snapshot, json.dumps(response))

        assert result.payload.forecast_insights.risk_factors == catalogue.DEFAULT_RISK_FACTORS
        assert "insights.riskFactors" in result.defaulted_fields
        assert "Rainy weekends" not in result.payload.insights

    def test_oversized_integers_are_defaulted(self, snapshot):
        huge = int("1" + "0" * 400)
        response = full_response()
        response["forecastMetrics"]["nextMonthRevenue"] = huge
        response["revenueScenarios"][1]["optimistic"] = huge

        result = run(snapshot, json.dumps(response))

        assert "forecastMetrics.nextMonthRevenue" in result.defaulted_fields
        assert "revenueScenarios[1]" in result.defaulted_fields
        assert result.provenance == Provenance.AI
        assert result.payload.forecast_metrics.quarterly_revenue == 850000


class TestScenarioNormalization:
    """Test scenario list handling."""

    def test_unordered_triple_is_sorted(self, snapshot):
        response = full_response()
        response["revenueScenarios"][0] = scenario("2024-05", optimistic=500, realistic=900, pessimistic=700)
        first = run(snapshot, json.dumps(response)).payload.revenue_scenarios[0]

        assert (first.optimistic, first.realistic, first.pessimistic) == (900, 700, 500)

    def test_extra_scenarios_truncated(self, snapshot):
        response = full_response()
        response["visitorScenarios"].append(scenario("2024-08"))
        payload = run(snapshot, json.dumps(response)).payload
        assert [s.month for s in payload.visitor_scenarios] == ["2024-05", "2024-06", "2024-07"]

    def test_short_list_padded(self, snapshot):
        response = full_response()
        response["revenueScenarios"] = response["revenueScenarios"][:1]
        result = run(snapshot, json.dumps(response), horizon=3)

        scenarios = result.payload.revenue_scenarios
        assert len(scenarios) == 3
        assert scenarios[0].realistic == 1000
        assert scenarios[1].month == "2024-06"
        assert "revenueScenarios[1]" in result.defaulted_fields
        assert "revenueScenarios[2]" in result.defaulted_fields

    def test_invalid_entry_replaced_in_place(self, snapshot):
        response = full_response()
        response["revenueScenarios"][1] = {"month": "2024-06", "optimistic": "lots"}
        scenarios = run(snapshot, json.dumps(response)).payload.revenue_scenarios

        assert scenarios[0].realistic == 1000
        assert scenarios[1].month == "2024-06"
        assert scenarios[1].optimistic >= scenarios[1].realistic >= scenarios[1].pessimistic
        assert scenarios[2].realistic == 1000

    def test_confidence_clamped_and_negative_values_floored(self, snapshot):
        response = full_response()
        response["visitorScenarios"][0] = scenario("2024-05", optimistic=10, realistic=-5, pessimistic=-20, confidence=140)
        first = run(snapshot, json.dumps(response)).payload.visitor_scenarios[0]

        assert first.confidence == 95
        assert (first.optimistic, first.realistic, first.pessimistic) == (10, 0, 0)

    def test_bad_month_replaced_with_expected(self, snapshot):
        response = full_response()
        response["visitorScenarios"][0]["month"] = "May 2024"
        first = run(snapshot, json.dumps(response)).payload.visitor_scenarios[0]
        assert first.month == "2024-05"


class TestTrendFactorNormalization:
    """Test trend factor handling."""

    def test_invalid_factors_dropped(self, snapshot):
        response = full_response()
        response["trendFactors"].extend(
            [
                {"factor": "Mystery", "impact": "huge", "expectedChange": 3},
                {"factor": "", "impact": "neutral", "expectedChange": 1},
                "not an object",
            ]
        )
        result = run(snapshot, json.dumps(response))
        assert [f.factor for f in result.payload.trend_factors] == ["Easter holidays"]
        assert "trendFactors[]" in result.defaulted_fields

    def test_unknown_category_and_bad_confidence_normalized(self, snapshot):
        response = full_response()
        response["trendFactors"] = [
            {
                "factor": "Airline strike",
                "impact": "negative",
                "expectedChange": -8,
                "category": "politics",
                "confidence": 20,
            }
        ]
        factor = run(snapshot, json.dumps(response)).payload.trend_factors[0]

        assert factor.category == "external"
        assert factor.confidence == 70
        assert factor.description == ""
        assert factor.expected_change == -8

    def test_non_string_impact_and_category_tolerated(self, snapshot):
        response = full_response()
        response["trendFactors"].extend(
            [
                {"factor": "Festival", "impact": ["positive"], "expectedChange": 5},
                {
                    "factor": "Road works",
                    "impact": "negative",
                    "expectedChange": -2,
                    "category": {"name": "infrastructure"},
                },
            ]
        )
        factors = run(snapshot, json.dumps(response)).payload.trend_factors

        assert [f.factor for f in factors] == ["Easter holidays", "Road works"]
        assert factors[1].category == "external"
