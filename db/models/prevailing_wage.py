"""
db/models/prevailing_wage.py

OFLC prevailing wage levels by wage year, area and occupation.

The (wage_year, area_code, soc_code) triple is indexed but deliberately not
unique: a wage year is replaced wholesale by delete-then-append.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class PrevailingWage(Base, TimestampMixin):
    __tablename__ = "oflc_prevailing_wages"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    wage_year: Mapped[str] = mapped_column(String(16), nullable=False, comment="e.g. 2024-2025")
    area_code: Mapped[str] = mapped_column(String(16), nullable=False)
    soc_code: Mapped[str] = mapped_column(String(16), nullable=False)
    area_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    soc_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    level_1_hourly: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    level_1_annual: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    level_2_hourly: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    level_2_annual: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    level_3_hourly: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    level_3_annual: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    level_4_hourly: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    level_4_annual: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    mean_hourly: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    mean_annual: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    __table_args__ = (
        Index("ix_oflc_prevailing_wages_year_area_soc", "wage_year", "area_code", "soc_code"),
        Index("ix_oflc_prevailing_wages_area_code", "area_code"),
    )
