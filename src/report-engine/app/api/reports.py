"""Reports API endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response, status

from shared.models import (
    PaginatedResponse,
    PaginationParams,
    Report,
    ReportFormat,
    ReportKind,
    ReportRequest,
    ReportStats,
    ReportStatus,
)
from shared.observability import get_logger

from ..services.aggregation import StorageQueryError
from ..services.catalogue import REPORT_LABELS
from ..services.generation import (
    InvalidReportRequestError,
    ReportGenerationService,
    ReportNotReadyError,
)
from ..services.rendering import RenderError
from ..services.report_store import ReportNotFoundError

logger = get_logger(__name__)
router = APIRouter(prefix="/api/v1/reports", tags=["reports"])

REPORT_DESCRIPTIONS: dict[ReportKind, str] = {
    ReportKind.VISITOR_ANALYSIS: "Visitor volumes, daily patterns and traffic distribution",
    ReportKind.REVENUE_REPORT: "Revenue totals, per-attraction contribution and pricing",
    ReportKind.ATTRACTION_PERFORMANCE: "Attractions benchmarked on visits, revenue and rating",
    ReportKind.DEMOGRAPHIC_INSIGHTS: "Visitor demographic mix and under-represented segments",
    ReportKind.CUSTOM: "General analysis across all available metrics",
}


def get_generation_service(request: Request) -> ReportGenerationService:
    """Dependency to get the ReportGenerationService."""
    return request.app.state.generation_service


def get_owner_id(x_user_id: str | None = Header(default=None, alias="X-User-ID")) -> str:
    """Caller identity, supplied by the authenticating gateway."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "MISSING_OWNER", "message": "X-User-ID header is required"},
        )
    return x_user_id.strip()


@router.post("/generate", response_model=Report, status_code=status.HTTP_201_CREATED)
async def generate_report(
    body: ReportRequest,
    owner_id: str = Depends(get_owner_id),
    service: ReportGenerationService = Depends(get_generation_service),
) -> Report:
    """Generate a report and return it once it is completed."""
    try:
        return await service.generate_report(owner_id, body)
    except InvalidReportRequestError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "INVALID_REQUEST", "message": str(e)},
        )
    except StorageQueryError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "STORAGE_QUERY_FAILED", "message": str(e)},
        )


@router.get("", response_model=PaginatedResponse[Report])
async def list_reports(
    report_type: ReportKind | None = Query(None, description="Filter by report type"),
    attraction_id: int | None = Query(None, description="Filter by attraction"),
    report_status: ReportStatus | None = Query(None, alias="status", description="Filter by status"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    owner_id: str = Depends(get_owner_id),
    service: ReportGenerationService = Depends(get_generation_service),
) -> PaginatedResponse[Report]:
    """List the caller's reports, newest first."""
    return await service.list_reports(
        owner_id,
        pagination=PaginationParams(page=page, page_size=page_size),
        report_type=report_type,
        attraction_id=attraction_id,
        status=report_status,
    )


@router.get("/stats", response_model=ReportStats)
async def report_stats(
    owner_id: str = Depends(get_owner_id),
    service: ReportGenerationService = Depends(get_generation_service),
) -> ReportStats:
    """Report counts and downloads for the caller."""
    return await service.report_stats(owner_id)


@router.get("/types")
async def list_report_types() -> dict:
    """List available report types and download formats."""
    return {
        "types": [
            {
                "id": kind.value,
                "name": REPORT_LABELS[kind],
                "description": REPORT_DESCRIPTIONS[kind],
            }
            for kind in ReportKind
        ],
        "formats": [fmt.value for fmt in ReportFormat],
    }


@router.get("/{report_id}", response_model=Report)
async def get_report(
    report_id: UUID,
    owner_id: str = Depends(get_owner_id),
    service: ReportGenerationService = Depends(get_generation_service),
) -> Report:
    """Get one report with its payload."""
    try:
        return await service.get_report(report_id, owner_id)
    except ReportNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "REPORT_NOT_FOUND", "message": str(e)},
        )


@router.get("/{report_id}/download")
async def download_report(
    report_id: UUID,
    fmt: ReportFormat = Query(ReportFormat.PDF, alias="format", description="Download format"),
    owner_id: str = Depends(get_owner_id),
    service: ReportGenerationService = Depends(get_generation_service),
) -> Response:
    """Download a completed report as PDF, JSON or Markdown."""
    try:
        document = await service.download_report(report_id, fmt, owner_id)
    except ReportNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "REPORT_NOT_FOUND", "message": str(e)},
        )
    except ReportNotReadyError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "REPORT_NOT_READY", "message": str(e)},
        )
    except RenderError as e:
        logger.error("Report rendering failed", report_id=str(report_id), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "RENDER_FAILED", "message": str(e)},
        )

    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )
