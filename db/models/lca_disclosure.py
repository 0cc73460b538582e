"""
db/models/lca_disclosure.py

LCA disclosure filings keyed by case number.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, Index, Integer, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class LcaDisclosure(Base, TimestampMixin):
    __tablename__ = "lca_disclosure"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    case_number: Mapped[str] = mapped_column(String(64), nullable=False)
    case_status: Mapped[str] = mapped_column(String(64), nullable=False)
    visa_class: Mapped[str] = mapped_column(String(32), nullable=False)
    employer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    fiscal_year: Mapped[str | None] = mapped_column(String(16), nullable=True)
    received_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    decision_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    employer_dba: Mapped[str | None] = mapped_column(String(255), nullable=True)
    employer_address1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    employer_address2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    employer_city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    employer_state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    employer_postal_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    employer_country: Mapped[str | None] = mapped_column(String(120), nullable=True)
    employer_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    naics_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    job_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    soc_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    soc_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    full_time_position: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    begin_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    total_workers: Mapped[int | None] = mapped_column(Integer, nullable=True)
    wage_rate_from: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    wage_rate_to: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    wage_unit: Mapped[str | None] = mapped_column(String(32), nullable=True)
    prevailing_wage: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    pw_unit: Mapped[str | None] = mapped_column(String(32), nullable=True)
    pw_wage_level: Mapped[str | None] = mapped_column(String(32), nullable=True)
    pw_source: Mapped[str | None] = mapped_column(String(120), nullable=True)
    h1b_dependent: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    willful_violator: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    worksite_city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    worksite_county: Mapped[str | None] = mapped_column(String(120), nullable=True)
    worksite_state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    worksite_postal_code: Mapped[str | None] = mapped_column(String(32), nullable=True)

    __table_args__ = (
        UniqueConstraint("case_number", name="uq_lca_disclosure_case_number"),
        Index("ix_lca_disclosure_employer_name", "employer_name"),
        Index("ix_lca_disclosure_soc_code", "soc_code"),
        Index("ix_lca_disclosure_fiscal_year", "fiscal_year"),
    )
