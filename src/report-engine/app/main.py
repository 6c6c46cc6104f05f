"""Report Engine Service - Main Application.

Turns the visit history into validated analytical reports, optionally
enriched by an external reasoning service, and serves them as PDF, JSON
or Markdown downloads.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config import ReportEngineSettings
from shared.database import Base, create_engine, create_session_factory
from shared.observability import get_logger, setup_logging

from .api import health, reports
from .llm import ReasoningClient
from .services.aggregation import AggregationService
from .services.generation import ReportGenerationService
from .services.report_store import ReportStore

logger = get_logger(__name__)


def build_generation_service(
    settings: ReportEngineSettings,
    session_factory,
    reasoning_client: ReasoningClient,
) -> ReportGenerationService:
    """Wire the pipeline components together."""
    return ReportGenerationService(
        store=ReportStore(session_factory),
        aggregation=AggregationService(
            session_factory,
            query_timeout=settings.query_timeout_seconds,
            top_attractions_limit=settings.top_attractions_limit,
        ),
        reasoning=reasoning_client,
        default_forecast_horizon=settings.default_forecast_horizon,
        max_forecast_horizon=settings.max_forecast_horizon,
        render_column_width=settings.render_column_width,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: ReportEngineSettings = app.state.settings

    setup_logging(log_level=settings.log_level, log_format=settings.log_format)
    logger.info(
        "Starting Report Engine",
        environment=settings.environment.value,
        version=settings.app_version,
    )

    engine = create_engine(settings.database.async_url, echo=settings.debug)
    session_factory = create_session_factory(engine)
    app.state.db_engine = engine
    app.state.session_factory = session_factory

    if settings.is_development:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialized")

    reasoning_client = ReasoningClient(settings.llm)
    app.state.reasoning_client = reasoning_client
    app.state.generation_service = build_generation_service(
        settings, session_factory, reasoning_client
    )

    logger.info("Report Engine ready", reasoning_configured=reasoning_client.is_configured)

    yield

    logger.info("Shutting down Report Engine")
    await engine.dispose()


def create_app(settings: ReportEngineSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or ReportEngineSettings()

    app = FastAPI(
        title="Report Engine",
        description="Report generation and predictive analytics for TourEase",
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(reports.router)

    return app


app = create_app()
