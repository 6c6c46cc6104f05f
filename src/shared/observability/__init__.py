"""Observability module for structured logging."""

from .logging import (
    RequestContextManager,
    get_logger,
    log_database_query,
    log_external_call_end,
    log_external_call_start,
    log_pipeline_stage,
    report_id_var,
    request_id_var,
    setup_logging,
    user_id_var,
)

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Context
    "RequestContextManager",
    "request_id_var",
    "user_id_var",
    "report_id_var",
    # Logging helpers
    "log_pipeline_stage",
    "log_external_call_start",
    "log_external_call_end",
    "log_database_query",
]
