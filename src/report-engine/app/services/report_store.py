"""Report persistence.

Thin boundary over the ``reports`` table. Status only moves forward:
pending -> processing -> completed | failed. Each transition locks the
report row for the duration of its transaction.
"""

from __future__ import annotations

import math
import time
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.database.models import ReportModel
from shared.models import (
    ForecastPeriod,
    PaginatedResponse,
    PaginationParams,
    Report,
    ReportKind,
    ReportPayload,
    ReportRequest,
    ReportStats,
    ReportStatus,
)
from shared.observability import get_logger, log_database_query

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[ReportStatus, set[ReportStatus]] = {
    ReportStatus.PENDING: {ReportStatus.PROCESSING, ReportStatus.COMPLETED, ReportStatus.FAILED},
    ReportStatus.PROCESSING: {ReportStatus.COMPLETED, ReportStatus.FAILED},
    ReportStatus.COMPLETED: set(),
    ReportStatus.FAILED: set(),
}


class ReportNotFoundError(Exception):
    """Raised when a report does not exist or is outside the caller's scope."""

    pass


class InvalidStatusTransitionError(Exception):
    """Raised when a status change would move a report backwards."""

    pass


class ReportStore:
    """Persists report records and their payloads."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize the store.

        Args:
            session_factory: SQLAlchemy async session factory
        """
        self.session_factory = session_factory

    async def create(
        self,
        owner_id: str,
        request: ReportRequest,
        period: ForecastPeriod,
        forecast_horizon: int,
    ) -> Report:
        """Insert a new pending report for ``request``."""
        model = ReportModel(
            report_type=ReportKind(request.report_type).value,
            title=request.title,
            description=request.description,
            date_range=request.date_range,
            period=ForecastPeriod(period).value,
            forecast_horizon=forecast_horizon,
            attraction_id=request.attraction_id,
            owner_id=owner_id,
            file_format=request.format,
            status=ReportStatus.PENDING.value,
            download_count=0,
            created_at=datetime.now(UTC),
        )
        start = time.perf_counter()
        async with self.session_factory() as db:
            db.add(model)
            await db.commit()
        log_database_query(logger, "insert", "reports", (time.perf_counter() - start) * 1000, 1)

        logger.info("Report created", report_id=str(model.id), report_type=model.report_type)
        return self._to_report(model)

    async def mark_processing(self, report_id: UUID) -> Report:
        return await self._transition(report_id, ReportStatus.PROCESSING)

    async def attach_payload(self, report_id: UUID, payload: ReportPayload) -> Report:
        """Store the payload and complete the report."""
        return await self._transition(
            report_id,
            ReportStatus.COMPLETED,
            report_data=payload.model_dump(mode="json"),
            provenance=payload.metadata.provenance,
            completed_at=datetime.now(UTC),
        )

    async def mark_failed(self, report_id: UUID, error_message: str) -> Report:
        return await self._transition(
            report_id,
            ReportStatus.FAILED,
            error_message=error_message,
            completed_at=datetime.now(UTC),
        )

    async def _transition(self, report_id: UUID, target: ReportStatus, **values) -> Report:
        start = time.perf_counter()
        async with self.session_factory() as db:
            result = await db.execute(
                select(ReportModel).where(ReportModel.id == report_id).with_for_update()
            )
            model = result.scalar_one_or_none()
            if model is None:
                raise ReportNotFoundError(f"Report {report_id} not found")

            current = ReportStatus(model.status)
            if target not in ALLOWED_TRANSITIONS[current]:
                raise InvalidStatusTransitionError(
                    f"Report {report_id} cannot move from {current.value} to {target.value}"
                )

            model.status = target.value
            for key, value in values.items():
                setattr(model, key, value)
            await db.commit()
        log_database_query(logger, "update", "reports", (time.perf_counter() - start) * 1000, 1)

        logger.info(
            "Report status changed",
            report_id=str(report_id),
            from_status=current.value,
            to_status=target.value,
        )
        return self._to_report(model)

    async def get(self, report_id: UUID, owner_id: str | None = None) -> Report:
        """Fetch one report, optionally restricted to an owner.

        Raises:
            ReportNotFoundError: Unknown id, or owned by someone else.
        """
        async with self.session_factory() as db:
            model = await db.get(ReportModel, report_id)
        if model is None or (owner_id is not None and model.owner_id != owner_id):
            raise ReportNotFoundError(f"Report {report_id} not found")
        return self._to_report(model)

    async def list_reports(
        self,
        owner_id: str,
        pagination: PaginationParams | None = None,
        report_type: ReportKind | None = None,
        attraction_id: int | None = None,
        status: ReportStatus | None = None,
    ) -> PaginatedResponse[Report]:
        """List an owner's reports, newest first."""
        pagination = pagination or PaginationParams()
        conditions = [ReportModel.owner_id == owner_id]
        if report_type is not None:
            conditions.append(ReportModel.report_type == ReportKind(report_type).value)
        if attraction_id is not None:
            conditions.append(ReportModel.attraction_id == attraction_id)
        if status is not None:
            conditions.append(ReportModel.status == ReportStatus(status).value)

        start = time.perf_counter()
        async with self.session_factory() as db:
            total = await db.scalar(select(func.count(ReportModel.id)).where(*conditions)) or 0
            result = await db.execute(
                select(ReportModel)
                .where(*conditions)
                .order_by(ReportModel.created_at.desc(), ReportModel.id)
                .offset((pagination.page - 1) * pagination.page_size)
                .limit(pagination.page_size)
            )
            models = result.scalars().all()
        log_database_query(
            logger, "select", "reports", (time.perf_counter() - start) * 1000, len(models)
        )

        return PaginatedResponse[Report](
            items=[self._to_report(m) for m in models],
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
            total_pages=math.ceil(total / pagination.page_size) if total else 0,
        )

    async def stats(self, owner_id: str, now: datetime | None = None) -> ReportStats:
        """Totals, per-kind and per-status counts and downloads for one owner."""
        now = now or datetime.now(UTC)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        owned = ReportModel.owner_id == owner_id

        async with self.session_factory() as db:
            total = await db.scalar(select(func.count(ReportModel.id)).where(owned)) or 0
            this_month = (
                await db.scalar(
                    select(func.count(ReportModel.id)).where(
                        owned, ReportModel.created_at >= month_start
                    )
                )
                or 0
            )
            downloads = (
                await db.scalar(
                    select(func.coalesce(func.sum(ReportModel.download_count), 0)).where(owned)
                )
                or 0
            )
            by_type = dict(
                (
                    await db.execute(
                        select(ReportModel.report_type, func.count(ReportModel.id))
                        .where(owned)
                        .group_by(ReportModel.report_type)
                    )
                ).all()
            )
            by_status = dict(
                (
                    await db.execute(
                        select(ReportModel.status, func.count(ReportModel.id))
                        .where(owned)
                        .group_by(ReportModel.status)
                    )
                ).all()
            )

        most_used = None
        if by_type:
            # Ties resolve alphabetically so the answer is stable
            most_used = min(by_type, key=lambda kind: (-by_type[kind], kind))

        return ReportStats(
            total_reports=total,
            reports_this_month=this_month,
            most_used_type=most_used,
            total_downloads=int(downloads),
            reports_by_type=by_type,
            reports_by_status=by_status,
            generated_at=now,
        )

    async def record_download(self, report_id: UUID) -> int:
        """Increment the download counter without touching status.

        Returns:
            The new download count.
        """
        async with self.session_factory() as db:
            result = await db.execute(
                update(ReportModel)
                .where(ReportModel.id == report_id)
                .values(download_count=ReportModel.download_count + 1)
            )
            if result.rowcount == 0:
                raise ReportNotFoundError(f"Report {report_id} not found")
            await db.commit()
            count = await db.scalar(
                select(ReportModel.download_count).where(ReportModel.id == report_id)
            )
        logger.debug("Report download recorded", report_id=str(report_id), count=count)
        return int(count or 0)

    @staticmethod
    def _to_report(model: ReportModel) -> Report:
        return Report(
            id=model.id,
            report_type=model.report_type,
            title=model.title,
            description=model.description,
            date_range=model.date_range,
            period=model.period,
            forecast_horizon=model.forecast_horizon,
            attraction_id=model.attraction_id,
            owner_id=model.owner_id,
            file_format=model.file_format,
            status=model.status,
            provenance=model.provenance,
            payload=ReportPayload.model_validate(model.report_data) if model.report_data else None,
            download_count=model.download_count,
            error_message=model.error_message,
            created_at=model.created_at,
            completed_at=model.completed_at,
        )
