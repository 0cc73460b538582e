"""create oflc_prevailing_wages table

Revision ID: 20261012_0002
Revises: 20261012_0001
Create Date: 2026-10-12 09:45:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261012_0002"
down_revision = "20261012_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "oflc_prevailing_wages",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("wage_year", sa.String(length=16), nullable=False, comment="e.g. 2024-2025"),
        sa.Column("area_code", sa.String(length=16), nullable=False),
        sa.Column("soc_code", sa.String(length=16), nullable=False),
        sa.Column("area_name", sa.String(length=255), nullable=True),
        sa.Column("soc_title", sa.String(length=255), nullable=True),
        sa.Column("level_1_hourly", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("level_1_annual", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("level_2_hourly", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("level_2_annual", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("level_3_hourly", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("level_3_annual", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("level_4_hourly", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("level_4_annual", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("mean_hourly", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("mean_annual", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_oflc_prevailing_wages"),
    )
    op.create_index(
        "ix_oflc_prevailing_wages_year_area_soc",
        "oflc_prevailing_wages",
        ["wage_year", "area_code", "soc_code"],
        unique=False,
    )
    op.create_index(
        "ix_oflc_prevailing_wages_area_code",
        "oflc_prevailing_wages",
        ["area_code"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_oflc_prevailing_wages_area_code", table_name="oflc_prevailing_wages")
    op.drop_index("ix_oflc_prevailing_wages_year_area_soc", table_name="oflc_prevailing_wages")
    op.drop_table("oflc_prevailing_wages")
