"""create lca_disclosure table

Revision ID: 20261012_0001
Revises:
Create Date: 2026-10-12 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261012_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "lca_disclosure",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("case_number", sa.String(length=64), nullable=False),
        sa.Column("case_status", sa.String(length=64), nullable=False),
        sa.Column("visa_class", sa.String(length=32), nullable=False),
        sa.Column("employer_name", sa.String(length=255), nullable=False),
        sa.Column("fiscal_year", sa.String(length=16), nullable=True),
        sa.Column("received_date", sa.Date(), nullable=True),
        sa.Column("decision_date", sa.Date(), nullable=True),
        sa.Column("employer_dba", sa.String(length=255), nullable=True),
        sa.Column("employer_address1", sa.String(length=255), nullable=True),
        sa.Column("employer_address2", sa.String(length=255), nullable=True),
        sa.Column("employer_city", sa.String(length=120), nullable=True),
        sa.Column("employer_state", sa.String(length=64), nullable=True),
        sa.Column("employer_postal_code", sa.String(length=32), nullable=True),
        sa.Column("employer_country", sa.String(length=120), nullable=True),
        sa.Column("employer_phone", sa.String(length=64), nullable=True),
        sa.Column("naics_code", sa.String(length=16), nullable=True),
        sa.Column("job_title", sa.String(length=255), nullable=True),
        sa.Column("soc_code", sa.String(length=16), nullable=True),
        sa.Column("soc_title", sa.String(length=255), nullable=True),
        sa.Column("full_time_position", sa.Boolean(), nullable=True),
        sa.Column("begin_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("total_workers", sa.Integer(), nullable=True),
        sa.Column("wage_rate_from", sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column("wage_rate_to", sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column("wage_unit", sa.String(length=32), nullable=True),
        sa.Column("prevailing_wage", sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column("pw_unit", sa.String(length=32), nullable=True),
        sa.Column("pw_wage_level", sa.String(length=32), nullable=True),
        sa.Column("pw_source", sa.String(length=120), nullable=True),
        sa.Column("h1b_dependent", sa.Boolean(), nullable=True),
        sa.Column("willful_violator", sa.Boolean(), nullable=True),
        sa.Column("worksite_city", sa.String(length=120), nullable=True),
        sa.Column("worksite_county", sa.String(length=120), nullable=True),
        sa.Column("worksite_state", sa.String(length=64), nullable=True),
        sa.Column("worksite_postal_code", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_lca_disclosure"),
        sa.UniqueConstraint("case_number", name="uq_lca_disclosure_case_number"),
    )
    op.create_index("ix_lca_disclosure_employer_name", "lca_disclosure", ["employer_name"], unique=False)
    op.create_index("ix_lca_disclosure_soc_code", "lca_disclosure", ["soc_code"], unique=False)
    op.create_index("ix_lca_disclosure_fiscal_year", "lca_disclosure", ["fiscal_year"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_lca_disclosure_fiscal_year", table_name="lca_disclosure")
    op.drop_index("ix_lca_disclosure_soc_code", table_name="lca_disclosure")
    op.drop_index("ix_lca_disclosure_employer_name", table_name="lca_disclosure")
    op.drop_table("lca_disclosure")
