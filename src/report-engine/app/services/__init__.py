"""Report Engine services."""

from .aggregation import AggregationService, StorageQueryError, normalize_numeric
from .date_ranges import period_for_range, resolve_date_range
from .fallback import synthesize
from .generation import InvalidReportRequestError, ReportGenerationService, ReportNotReadyError
from .prompts import build_prompt
from .rendering import RenderError, RenderedDocument, render, wrap_text
from .report_store import InvalidStatusTransitionError, ReportNotFoundError, ReportStore
from .validation import ValidationResult, ValidationStatus, validate_response

__all__ = [
    "AggregationService",
    "StorageQueryError",
    "normalize_numeric",
    "resolve_date_range",
    "period_for_range",
    "build_prompt",
    "validate_response",
    "ValidationResult",
    "ValidationStatus",
    "synthesize",
    "render",
    "wrap_text",
    "RenderedDocument",
    "RenderError",
    "ReportStore",
    "ReportNotFoundError",
    "InvalidStatusTransitionError",
    "ReportGenerationService",
    "InvalidReportRequestError",
    "ReportNotReadyError",
]
