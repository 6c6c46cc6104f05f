"""SQLAlchemy ORM models.

The visit history tables (attractions, tourists, visits) are owned by the
platform's CRUD services; the report engine only reads them. The reports
table is written exclusively by the report generation pipeline.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .base import Base, JSONType

# =============================================================================
# Visit history (read-only for the report engine)
# =============================================================================


class AttractionModel(Base):
    """Tourist attraction."""

    __tablename__ = "attractions"
    __table_args__ = (
        Index("idx_attractions_owner_id", "owner_id"),
        Index("idx_attractions_category", "category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100))
    rating: Mapped[float | None] = mapped_column(Float)
    owner_id: Mapped[int | None] = mapped_column(Integer)

    visits: Mapped[list["VisitModel"]] = relationship(back_populates="attraction")


class TouristModel(Base):
    """Registered visitor."""

    __tablename__ = "tourists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(150), nullable=False)
    gender: Mapped[str | None] = mapped_column(String(20))

    visits: Mapped[list["VisitModel"]] = relationship(back_populates="tourist")


class VisitModel(Base):
    """One recorded attraction visit."""

    __tablename__ = "visits"
    __table_args__ = (
        Index("idx_visits_visit_date", "visit_date"),
        Index("idx_visits_attraction_date", "attraction_id", "visit_date"),
        Index("idx_visits_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    attraction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("attractions.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tourists.id", ondelete="CASCADE"), nullable=False
    )
    visit_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    rating: Mapped[float | None] = mapped_column(Float)

    attraction: Mapped["AttractionModel"] = relationship(back_populates="visits")
    tourist: Mapped["TouristModel"] = relationship(back_populates="visits")


# =============================================================================
# Reports (written by the generation pipeline)
# =============================================================================


class ReportModel(Base):
    """Generated report with its full payload."""

    __tablename__ = "reports"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'processing', 'completed', 'failed')",
            name="valid_report_status",
        ),
        CheckConstraint(
            "report_type IN ('visitor_analysis', 'revenue_report', "
            "'attraction_performance', 'demographic_insights', 'custom')",
            name="valid_report_type",
        ),
        Index("idx_reports_owner_id", "owner_id"),
        Index("idx_reports_report_type", "report_type"),
        Index("idx_reports_status", "status"),
        Index("idx_reports_created_at", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    report_type: Mapped[str] = mapped_column(String(40), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    date_range: Mapped[str] = mapped_column(String(100), nullable=False)
    period: Mapped[str] = mapped_column(String(10), nullable=False, default="month")
    forecast_horizon: Mapped[int] = mapped_column(Integer, nullable=False, default=6)
    attraction_id: Mapped[int | None] = mapped_column(Integer)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False)
    file_format: Mapped[str] = mapped_column(String(20), nullable=False, default="pdf")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    provenance: Mapped[str | None] = mapped_column(String(20))
    report_data: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    download_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
