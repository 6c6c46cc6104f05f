"""Database configuration and models."""

from .base import Base, JSONType, create_engine, create_session_factory
from .models import (
    AttractionModel,
    ReportModel,
    TouristModel,
    VisitModel,
)

__all__ = [
    # Base
    "Base",
    "JSONType",
    "create_engine",
    "create_session_factory",
    # Visit history
    "AttractionModel",
    "TouristModel",
    "VisitModel",
    # Reports
    "ReportModel",
]
