"""Initial schema creation.

Revision ID: 0001
Revises:
Create Date: 2024-12-24

Visit history tables (attractions, tourists, visits) and the reports table
written by the report generation pipeline.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # =========================================================================
    # Visit history
    # =========================================================================

    op.create_table(
        "attractions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("rating", sa.Float, nullable=True),
        sa.Column("owner_id", sa.Integer, nullable=True),
    )
    op.create_index("idx_attractions_owner_id", "attractions", ["owner_id"])
    op.create_index("idx_attractions_category", "attractions", ["category"])

    op.create_table(
        "tourists",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("username", sa.String(150), nullable=False),
        sa.Column("gender", sa.String(20), nullable=True),
    )

    op.create_table(
        "visits",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "attraction_id",
            sa.Integer,
            sa.ForeignKey("attractions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer,
            sa.ForeignKey("tourists.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("visit_date", sa.Date, nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("rating", sa.Float, nullable=True),
    )
    op.create_index("idx_visits_visit_date", "visits", ["visit_date"])
    op.create_index("idx_visits_attraction_date", "visits", ["attraction_id", "visit_date"])
    op.create_index("idx_visits_user_id", "visits", ["user_id"])

    # =========================================================================
    # Reports
    # =========================================================================

    op.create_table(
        "reports",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("report_type", sa.String(40), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("date_range", sa.String(100), nullable=False),
        sa.Column("period", sa.String(10), nullable=False, server_default="month"),
        sa.Column("forecast_horizon", sa.Integer, nullable=False, server_default="6"),
        sa.Column("attraction_id", sa.Integer, nullable=True),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("file_format", sa.String(20), nullable=False, server_default="pdf"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("provenance", sa.String(20), nullable=True),
        sa.Column("report_data", postgresql.JSONB, nullable=True),
        sa.Column("download_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'processing', 'completed', 'failed')",
            name="valid_report_status",
        ),
        sa.CheckConstraint(
            "report_type IN ('visitor_analysis', 'revenue_report', "
            "'attraction_performance', 'demographic_insights', 'custom')",
            name="valid_report_type",
        ),
    )
    op.create_index("idx_reports_owner_id", "reports", ["owner_id"])
    op.create_index("idx_reports_report_type", "reports", ["report_type"])
    op.create_index("idx_reports_status", "reports", ["status"])
    op.create_index("idx_reports_created_at", "reports", ["created_at"])


def downgrade() -> None:
    op.drop_table("reports")
    op.drop_table("visits")
    op.drop_table("tourists")
    op.drop_table("attractions")
