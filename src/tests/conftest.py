"""Pytest configuration and shared fixtures."""

import os
from datetime import UTC, date, datetime
from typing import Any

import pytest

# Set test environment before importing settings
os.environ["ENV"] = "development"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["LOG_FORMAT"] = "text"


@pytest.fixture
def sample_snapshot_data() -> dict[str, Any]:
    """Sample aggregated snapshot for testing."""
    return {
        "start": datetime(2024, 3, 1, tzinfo=UTC),
        "end": datetime(2024, 3, 31, tzinfo=UTC),
        "attraction_id": None,
        "total_visits": 4,
        "total_revenue": 175.5,
        "unique_visitors": 3,
        "avg_rating": 4.25,
        "trend": [
            {"day": date(2024, 3, 5), "visits": 2, "revenue": 150.5},
            {"day": date(2024, 3, 10), "visits": 1, "revenue": 0.0},
            {"day": date(2024, 3, 12), "visits": 1, "revenue": 25.0},
        ],
        "top_attractions": [
            {"attraction_id": 1, "name": "Castle", "category": "heritage", "visits": 3, "revenue": 125.0, "rating": 4.5},
            {"attraction_id": 2, "name": "Museum", "category": "culture", "visits": 1, "revenue": 50.5, "rating": 4.0},
        ],
        "demographics": [
            {"category": "female", "count": 1},
            {"category": "male", "count": 1},
            {"category": "unspecified", "count": 1},
        ],
    }


@pytest.fixture
def sample_request_data() -> dict[str, Any]:
    """Sample report request for testing."""
    return {
        "report_type": "revenue_report",
        "title": "March revenue",
        "description": "Monthly revenue review",
        "date_range": "2024-03-01 to 2024-03-31",
        "period": "month",
        "forecast_horizon": 3,
        "format": "pdf",
    }


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line(
        "markers", "integration: Integration tests (require external services)"
    )
    config.addinivalue_line("markers", "slow: Slow tests")
