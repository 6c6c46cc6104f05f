"""Test fixtures for Report Engine."""

import random
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from shared.config import LLMSettings, ReportEngineSettings
from shared.database import (
    AttractionModel,
    Base,
    TouristModel,
    VisitModel,
    create_engine,
    create_session_factory,
)
from shared.models import (
    AggregatedSnapshot,
    DemographicBucket,
    ForecastPeriod,
    ReportKind,
    TopAttraction,
    TrendPoint,
)

from app.llm import ReasoningClient
from app.main import build_generation_service, create_app
from app.services import fallback
from app.services.aggregation import AggregationService
from app.services.report_store import ReportStore

FIXED_NOW = datetime(2024, 4, 2, 12, 0, tzinfo=UTC)
MARCH_RANGE = "2024-03-01 to 2024-03-31"


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine; each concurrent query gets its own connection."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'reports.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(test_engine)


@pytest_asyncio.fixture
async def seeded_factory(session_factory) -> async_sessionmaker[AsyncSession]:
    """Two attractions, three tourists and four March visits (plus one in February)."""
    async with session_factory() as session:
        session.add_all(
            [
                AttractionModel(id=1, name="Castle", category="heritage", rating=4.5, owner_id=10),
                AttractionModel(id=2, name="Museum", category="culture", rating=4.0, owner_id=10),
                TouristModel(id=1, username="ana", gender="male"),
                TouristModel(id=2, username="bea", gender="female"),
                TouristModel(id=3, username="cal", gender=None),
            ]
        )
        await session.flush()
        session.add_all(
            [
                VisitModel(attraction_id=1, user_id=1, visit_date=date(2024, 3, 5), amount=Decimal("100.00")),
                VisitModel(attraction_id=2, user_id=2, visit_date=date(2024, 3, 5), amount=Decimal("50.50")),
                VisitModel(attraction_id=1, user_id=3, visit_date=date(2024, 3, 10), amount=None),
                VisitModel(attraction_id=1, user_id=1, visit_date=date(2024, 3, 12), amount=Decimal("25.00")),
                VisitModel(attraction_id=2, user_id=2, visit_date=date(2024, 2, 20), amount=Decimal("999.00")),
            ]
        )
        await session.commit()
    return session_factory


@pytest.fixture
def store(seeded_factory) -> ReportStore:
    return ReportStore(seeded_factory)


@pytest.fixture
def aggregation(seeded_factory) -> AggregationService:
    return AggregationService(seeded_factory, query_timeout=10.0)


@pytest.fixture
def unconfigured_client() -> ReasoningClient:
    return ReasoningClient(LLMSettings(api_key=None))


@pytest.fixture
def snapshot() -> AggregatedSnapshot:
    """Snapshot matching the seeded March data."""
    return AggregatedSnapshot(
        start=datetime(2024, 3, 1, tzinfo=UTC),
        end=datetime(2024, 3, 31, tzinfo=UTC),
        total_visits=4,
        total_revenue=175.5,
        unique_visitors=3,
        avg_rating=4.25,
        trend=[
            TrendPoint(day=date(2024, 3, 5), visits=2, revenue=150.5),
            TrendPoint(day=date(2024, 3, 10), visits=1, revenue=0.0),
            TrendPoint(day=date(2024, 3, 12), visits=1, revenue=25.0),
        ],
        top_attractions=[
            TopAttraction(attraction_id=1, name="Castle", category="heritage", visits=3, revenue=125.0, rating=4.5),
            TopAttraction(attraction_id=2, name="Museum", category="culture", visits=1, revenue=50.5, rating=4.0),
        ],
        demographics=[
            DemographicBucket(category="female", count=1),
            DemographicBucket(category="male", count=1),
            DemographicBucket(category="unspecified", count=1),
        ],
    )


@pytest.fixture
def payload(snapshot):
    """A deterministic synthetic payload."""
    return fallback.synthesize(
        snapshot,
        ForecastPeriod.MONTH,
        3,
        report_type=ReportKind.REVENUE_REPORT,
        date_range=MARCH_RANGE,
        now=FIXED_NOW,
        rng=random.Random(7),
    )


@pytest.fixture
def settings() -> ReportEngineSettings:
    return ReportEngineSettings(llm=LLMSettings(api_key=None))


@pytest_asyncio.fixture
async def client(settings, seeded_factory, unconfigured_client) -> AsyncGenerator[AsyncClient, None]:
    """API client over an app wired to the seeded SQLite database."""
    app = create_app(settings)
    app.state.session_factory = seeded_factory
    app.state.reasoning_client = unconfigured_client
    app.state.generation_service = build_generation_service(
        settings, seeded_factory, unconfigured_client
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
