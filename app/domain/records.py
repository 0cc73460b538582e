"""
app/domain/records.py

Typed canonical records prepared for persistence.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any

DISCLOSURE_REQUIRED_FIELDS: tuple[str, ...] = (
    "case_number",
    "case_status",
    "visa_class",
    "employer_name",
)

WAGE_REQUIRED_FIELDS: tuple[str, ...] = (
    "area_code",
    "soc_code",
)


@dataclass(frozen=True)
class DisclosureRecord:
    """
    One LCA disclosure filing keyed by case number.
    """

    case_number: str
    case_status: str
    visa_class: str
    employer_name: str
    fiscal_year: str | None = None
    received_date: date | None = None
    decision_date: date | None = None
    employer_dba: str | None = None
    employer_address1: str | None = None
    employer_address2: str | None = None
    employer_city: str | None = None
    employer_state: str | None = None
    employer_postal_code: str | None = None
    employer_country: str | None = None
    employer_phone: str | None = None
    naics_code: str | None = None
    job_title: str | None = None
    soc_code: str | None = None
    soc_title: str | None = None
    full_time_position: bool | None = None
    begin_date: date | None = None
    end_date: date | None = None
    total_workers: int | None = None
    wage_rate_from: float | None = None
    wage_rate_to: float | None = None
    wage_unit: str | None = None
    prevailing_wage: float | None = None
    pw_unit: str | None = None
    pw_wage_level: str | None = None
    pw_source: str | None = None
    h1b_dependent: bool | None = None
    willful_violator: bool | None = None
    worksite_city: str | None = None
    worksite_county: str | None = None
    worksite_state: str | None = None
    worksite_postal_code: str | None = None

    @property
    def natural_key(self) -> tuple[str, ...]:
        return (self.case_number,)

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class WageRecord:
    """
    One prevailing-wage row for an area and occupation in a wage year.
    """

    wage_year: str
    area_code: str
    soc_code: str
    area_name: str | None = None
    soc_title: str | None = None
    level_1_hourly: float | None = None
    level_1_annual: float | None = None
    level_2_hourly: float | None = None
    level_2_annual: float | None = None
    level_3_hourly: float | None = None
    level_3_annual: float | None = None
    level_4_hourly: float | None = None
    level_4_annual: float | None = None
    mean_hourly: float | None = None
    mean_annual: float | None = None

    @property
    def natural_key(self) -> tuple[str, ...]:
        return (self.wage_year, self.area_code, self.soc_code)

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)
