"""Report generation pipeline.

aggregate -> {prompt -> reasoning call -> validate} or {fallback} -> store.
Reasoning and validation problems are recovered locally; only request and
storage failures reach the caller. A report is never left pending or
processing: any failure after creation, cancellation included, moves it to
failed before the error propagates.
"""

from __future__ import annotations

import asyncio
import random
import time
from datetime import UTC, datetime
from uuid import UUID

from shared.models import (
    AggregatedSnapshot,
    ForecastPeriod,
    PaginatedResponse,
    PaginationParams,
    Report,
    ReportFormat,
    ReportKind,
    ReportPayload,
    ReportRequest,
    ReportStats,
    ReportStatus,
)
from shared.observability import RequestContextManager, get_logger, log_pipeline_stage

from ..llm import ReasoningClient
from . import fallback
from .aggregation import AggregationService, StorageQueryError
from .date_ranges import period_for_range
from .prompts import build_prompt
from .rendering import DEFAULT_COLUMN_WIDTH, RenderedDocument, render
from .report_store import ReportStore
from .validation import validate_response

logger = get_logger(__name__)

CANCELLED_MESSAGE = "Report generation was cancelled"


class InvalidReportRequestError(Exception):
    """Raised when a generation request is rejected before any work starts."""

    pass


class ReportNotReadyError(Exception):
    """Raised when a download is requested for a report that has not completed."""

    pass


class ReportGenerationService:
    """Runs the generation pipeline and serves downloads."""

    def __init__(
        self,
        store: ReportStore,
        aggregation: AggregationService,
        reasoning: ReasoningClient,
        default_forecast_horizon: int = 6,
        max_forecast_horizon: int = 24,
        render_column_width: float = DEFAULT_COLUMN_WIDTH,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.aggregation = aggregation
        self.reasoning = reasoning
        self.default_forecast_horizon = default_forecast_horizon
        self.max_forecast_horizon = max_forecast_horizon
        self.render_column_width = render_column_width
        self.rng = rng

    def _check_request(self, owner_id: str, request: ReportRequest) -> int:
        if not owner_id or not owner_id.strip():
            raise InvalidReportRequestError("Owner identity is required")
        if not request.title.strip():
            raise InvalidReportRequestError("Title must not be empty")
        if not request.date_range.strip():
            raise InvalidReportRequestError("Date range must not be empty")

        horizon = request.forecast_horizon or self.default_forecast_horizon
        if horizon > self.max_forecast_horizon:
            raise InvalidReportRequestError(
                f"Forecast horizon {horizon} exceeds the maximum of {self.max_forecast_horizon} months"
            )
        return horizon

    async def generate_report(self, owner_id: str, request: ReportRequest) -> Report:
        """Generate, persist and return a completed report.

        Raises:
            InvalidReportRequestError: Request rejected; nothing was stored.
            StorageQueryError: Visit history unavailable; the report is marked failed.
        """
        horizon = self._check_request(owner_id, request)
        period = ForecastPeriod(request.period) if request.period else period_for_range(
            request.date_range
        )

        report = await self.store.create(owner_id, request, period, horizon)
        async with RequestContextManager(user_id=owner_id, report_id=str(report.id)):
            try:
                return await self._run(report, request, period, horizon)
            except asyncio.CancelledError:
                logger.warning("Report generation cancelled")
                await asyncio.shield(self.store.mark_failed(report.id, CANCELLED_MESSAGE))
                raise
            except StorageQueryError as e:
                logger.error("Report aggregation failed", error=str(e))
                await self.store.mark_failed(report.id, f"Data aggregation failed: {e}")
                raise
            except Exception as e:
                logger.exception("Report generation failed")
                await self.store.mark_failed(report.id, f"Report generation failed: {e}")
                raise

    async def _run(
        self,
        report: Report,
        request: ReportRequest,
        period: ForecastPeriod,
        horizon: int,
    ) -> Report:
        started = time.perf_counter()
        await self.store.mark_processing(report.id)

        stage_start = time.perf_counter()
        snapshot = await self.aggregation.aggregate(request.date_range, request.attraction_id)
        log_pipeline_stage(
            logger,
            "aggregate",
            (time.perf_counter() - stage_start) * 1000,
            total_visits=snapshot.total_visits,
        )

        payload = await self._analyse(snapshot, request, period, horizon)
        completed = await self.store.attach_payload(report.id, payload)

        logger.info(
            "Report generated",
            report_type=completed.report_type,
            provenance=completed.provenance,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return completed

    async def _analyse(
        self,
        snapshot: AggregatedSnapshot,
        request: ReportRequest,
        period: ForecastPeriod,
        horizon: int,
    ) -> ReportPayload:
        """Analytical payload from the reasoning service, or the fallback synthesizer."""
        now = datetime.now(UTC)
        kind = ReportKind(request.report_type)

        if self.reasoning.is_configured:
            prompt = build_prompt(
                snapshot, kind, period, horizon, request.date_range, today=now.date()
            )
            result = await self.reasoning.query(prompt)
            log_pipeline_stage(
                logger,
                "reasoning",
                result.duration_ms,
                success=result.ok,
                error=result.error.value if result.error else None,
            )
            if result.ok:
                stage_start = time.perf_counter()
                validation = validate_response(
                    result.text,
                    snapshot,
                    period,
                    horizon,
                    report_type=kind,
                    date_range=request.date_range,
                    now=now,
                    ai_model=result.model,
                    rng=self.rng,
                )
                log_pipeline_stage(
                    logger,
                    "validate",
                    (time.perf_counter() - stage_start) * 1000,
                    provenance=validation.payload.metadata.provenance,
                    defaulted_fields=len(validation.defaulted_fields),
                )
                return validation.payload
            logger.warning(
                "Reasoning service unavailable, using fallback",
                reason=result.error.value if result.error else None,
                detail=result.detail,
            )

        stage_start = time.perf_counter()
        payload = fallback.synthesize(
            snapshot,
            period,
            horizon,
            report_type=kind,
            date_range=request.date_range,
            now=now,
            rng=self.rng,
        )
        log_pipeline_stage(
            logger,
            "fallback",
            (time.perf_counter() - stage_start) * 1000,
            provenance=payload.metadata.provenance,
        )
        return payload

    async def get_report(self, report_id: UUID, owner_id: str) -> Report:
        return await self.store.get(report_id, owner_id)

    async def list_reports(
        self,
        owner_id: str,
        pagination: PaginationParams | None = None,
        report_type: ReportKind | None = None,
        attraction_id: int | None = None,
        status: ReportStatus | None = None,
    ) -> PaginatedResponse[Report]:
        return await self.store.list_reports(
            owner_id,
            pagination=pagination,
            report_type=report_type,
            attraction_id=attraction_id,
            status=status,
        )

    async def report_stats(self, owner_id: str) -> ReportStats:
        return await self.store.stats(owner_id)

    async def download_report(
        self,
        report_id: UUID,
        fmt: ReportFormat | str,
        owner_id: str,
    ) -> RenderedDocument:
        """Render a completed report and count the download.

        Raises:
            ReportNotFoundError: Unknown report or not owned by the caller.
            ReportNotReadyError: The report has not completed.
            RenderError: The document could not be produced.
        """
        report = await self.store.get(report_id, owner_id)
        if report.status != ReportStatus.COMPLETED or report.payload is None:
            raise ReportNotReadyError(
                f"Report {report_id} is {report.status}, only completed reports can be downloaded"
            )

        stage_start = time.perf_counter()
        document = render(report, fmt, self.render_column_width)
        log_pipeline_stage(
            logger,
            "render",
            (time.perf_counter() - stage_start) * 1000,
            report_id=str(report_id),
            format=ReportFormat(fmt).value,
            size_bytes=len(document.content),
        )

        await self.store.record_download(report_id)
        return document
