"""Structured logging configuration.

Every event carries the service name and environment, plus whichever of
request id, owner id and report id are bound for the current task, so the
stages of one report generation can be followed across modules.
"""

import logging
import sys
from contextvars import ContextVar, Token
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from shared.config import LogFormat, LogLevel, get_settings

# Context variables for request tracking
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
report_id_var: ContextVar[str | None] = ContextVar("report_id", default=None)

_CONTEXT_FIELDS: tuple[tuple[str, ContextVar[str | None]], ...] = (
    ("request_id", request_id_var),
    ("user_id", user_id_var),
    ("report_id", report_id_var),
)

NOISY_LOGGERS = ("httpx", "httpcore", "openai", "aiosqlite", "uvicorn.access")


class ServiceContext:
    """Processor stamping service name and environment, resolved once at setup."""

    def __init__(self, service: str, environment: str):
        self.service = service
        self.environment = environment

    def __call__(self, logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["service"] = self.service
        event_dict["environment"] = self.environment
        return event_dict


def add_request_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Copy bound context variables into the event; explicit fields win."""
    for field, var in _CONTEXT_FIELDS:
        value = var.get()
        if value:
            event_dict.setdefault(field, value)
    return event_dict


def setup_logging(
    log_level: LogLevel | str | None = None,
    log_format: LogFormat | str | None = None,
) -> None:
    """Configure structlog over stdlib logging.

    Args:
        log_level: Override log level (defaults to settings.log_level)
        log_format: Override log format (defaults to settings.log_format)
    """
    settings = get_settings()
    level = LogLevel((log_level or settings.log_level).upper())
    fmt = LogFormat((log_format or settings.log_format).lower())

    logging.basicConfig(
        level=getattr(logging, level.value),
        stream=sys.stdout,
        format="%(message)s",
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        ServiceContext(settings.app_name, settings.environment.value),
        add_request_context,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if fmt == LogFormat.JSON:
        renderer: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderer = [
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=shared_processors + renderer,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (defaults to module name)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


class RequestContextManager:
    """Binds request, owner and report ids for the enclosed block.

    Usage:
        async with RequestContextManager(user_id="42", report_id=str(report.id)):
            logger.info("Aggregating visits")  # carries user_id and report_id
    """

    def __init__(
        self,
        request_id: str | None = None,
        user_id: str | None = None,
        report_id: str | None = None,
    ):
        self.values = {"request_id": request_id, "user_id": user_id, "report_id": report_id}
        self._tokens: list[tuple[ContextVar[str | None], Token]] = []

    def __enter__(self) -> "RequestContextManager":
        for field, var in _CONTEXT_FIELDS:
            if self.values[field]:
                self._tokens.append((var, var.set(self.values[field])))
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)

    async def __aenter__(self) -> "RequestContextManager":
        return self.__enter__()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def log_pipeline_stage(
    logger: structlog.stdlib.BoundLogger,
    stage: str,
    duration_ms: float,
    **fields: Any,
) -> None:
    """One event per report generation stage (aggregate, reasoning, validate, ...)."""
    logger.info("Pipeline stage completed", stage=stage, duration_ms=round(duration_ms, 2), **fields)


def log_external_call_start(
    logger: structlog.stdlib.BoundLogger,
    service: str,
    operation: str,
) -> None:
    logger.debug("External call started", external_service=service, external_operation=operation)


def log_external_call_end(
    logger: structlog.stdlib.BoundLogger,
    service: str,
    operation: str,
    success: bool,
    duration_ms: float,
    error: str | None = None,
) -> None:
    """Log the outcome of an outbound call; failures at warning level."""
    fields: dict[str, Any] = {
        "external_service": service,
        "external_operation": operation,
        "success": success,
        "duration_ms": round(duration_ms, 2),
    }
    if error:
        fields["error"] = error

    if success:
        logger.debug("External call completed", **fields)
    else:
        logger.warning("External call failed", **fields)


def log_database_query(
    logger: structlog.stdlib.BoundLogger,
    operation: str,
    table: str,
    duration_ms: float,
    rows_affected: int | None = None,
) -> None:
    fields: dict[str, Any] = {
        "db_operation": operation,
        "db_table": table,
        "duration_ms": round(duration_ms, 2),
    }
    if rows_affected is not None:
        fields["rows_affected"] = rows_affected
    logger.debug("Database query executed", **fields)
