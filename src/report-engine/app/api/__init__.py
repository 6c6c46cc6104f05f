"""Report Engine API routers."""

from . import health, reports

__all__ = ["health", "reports"]
