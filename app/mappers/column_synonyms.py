"""
app/mappers/column_synonyms.py

Versioned header synonym tables.

Each table maps a normalized raw header spelling to its canonical field.
A newly observed spelling is added here as data; bump the table version
whenever entries change so cached mappings can be told apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from app.domain.ingestion import DatasetKind


@dataclass(frozen=True)
class SynonymTable:
    """
    Known raw header variants for one dataset.
    """

    dataset: str
    version: str
    variants: Mapping[str, str]
    required_columns: tuple[str, ...] = ()

    @property
    def canonical_fields(self) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for canonical in self.variants.values():
            seen.setdefault(canonical, None)
        return tuple(seen)


DISCLOSURE_SYNONYMS = SynonymTable(
    dataset=DatasetKind.DISCLOSURE,
    version="2026.02",
    variants={
        # FY2020+ disclosure layout
        "case_number": "case_number",
        "case_status": "case_status",
        "received_date": "received_date",
        "decision_date": "decision_date",
        "visa_class": "visa_class",
        "employer_name": "employer_name",
        "trade_name_dba": "employer_dba",
        "employer_business_dba": "employer_dba",
        "employer_address1": "employer_address1",
        "employer_address_1": "employer_address1",
        "employer_address2": "employer_address2",
        "employer_address_2": "employer_address2",
        "employer_city": "employer_city",
        "employer_state": "employer_state",
        "employer_postal_code": "employer_postal_code",
        "employer_country": "employer_country",
        "employer_phone": "employer_phone",
        "naics_code": "naics_code",
        "job_title": "job_title",
        "soc_code": "soc_code",
        "soc_title": "soc_title",
        "full_time_position": "full_time_position",
        "begin_date": "begin_date",
        "end_date": "end_date",
        "total_workers": "total_workers",
        "total_worker_positions": "total_workers",
        "wage_rate_of_pay_from": "wage_rate_from",
        "wage_rate_of_pay_from_1": "wage_rate_from",
        "wage_rate_of_pay_to": "wage_rate_to",
        "wage_rate_of_pay_to_1": "wage_rate_to",
        "wage_unit_of_pay": "wage_unit",
        "wage_unit_of_pay_1": "wage_unit",
        "prevailing_wage": "prevailing_wage",
        "prevailing_wage_1": "prevailing_wage",
        "pw_unit_of_pay": "pw_unit",
        "pw_unit_of_pay_1": "pw_unit",
        "pw_wage_level": "pw_wage_level",
        "pw_wage_level_1": "pw_wage_level",
        "pw_source": "pw_source",
        "pw_source_1": "pw_source",
        "h-1b_dependent": "h1b_dependent",
        "willful_violator": "willful_violator",
        "worksite_city": "worksite_city",
        "worksite_city_1": "worksite_city",
        "worksite_county": "worksite_county",
        "worksite_county_1": "worksite_county",
        "worksite_state": "worksite_state",
        "worksite_state_1": "worksite_state",
        "worksite_postal_code": "worksite_postal_code",
        "worksite_postal_code_1": "worksite_postal_code",
        # FY2015-FY2019 layout
        "case_submitted": "received_date",
        "soc_name": "soc_title",
        "employment_start_date": "begin_date",
        "employment_end_date": "end_date",
        "h1b_dependent": "h1b_dependent",
        "pw_source_other": "pw_source",
        # FY2014 and earlier
        "lca_case_number": "case_number",
        "status": "case_status",
        "lca_case_submit": "received_date",
        "lca_case_employer_name": "employer_name",
        "lca_case_employer_city": "employer_city",
        "lca_case_employer_state": "employer_state",
        "lca_case_employer_postal_code": "employer_postal_code",
        "lca_case_job_title": "job_title",
        "lca_case_soc_code": "soc_code",
        "lca_case_soc_name": "soc_title",
        "lca_case_naics_code": "naics_code",
        "lca_case_wage_rate_from": "wage_rate_from",
        "lca_case_wage_rate_to": "wage_rate_to",
        "lca_case_wage_rate_unit": "wage_unit",
        "lca_case_employment_start_date": "begin_date",
        "lca_case_employment_end_date": "end_date",
        "total_workers_approved": "total_workers",
    },
)

WAGE_SYNONYMS = SynonymTable(
    dataset=DatasetKind.WAGE,
    version="2026.02",
    variants={
        "area": "area_code",
        "area_code": "area_code",
        "areacode": "area_code",
        "soccode": "soc_code",
        "soc_code": "soc_code",
        "occ_code": "soc_code",
        "soctitle": "soc_title",
        "soc_title": "soc_title",
        "occ_title": "soc_title",
        "geolvl": "geo_level",
        "geo_level": "geo_level",
        "level1": "level_1",
        "lev_1": "level_1",
        "level_1": "level_1",
        "level2": "level_2",
        "lev_2": "level_2",
        "level_2": "level_2",
        "level3": "level_3",
        "lev_3": "level_3",
        "level_3": "level_3",
        "level4": "level_4",
        "lev_4": "level_4",
        "level_4": "level_4",
        "average": "mean",
        "mean": "mean",
        "avg": "mean",
        "label": "label",
        "area_name": "label",
        "areaname": "label",
    },
    required_columns=("area_code", "soc_code"),
)

GEOGRAPHY_SYNONYMS = SynonymTable(
    dataset=DatasetKind.GEOGRAPHY,
    version="2026.02",
    variants={
        "area": "area_code",
        "area_code": "area_code",
        "areacode": "area_code",
        "areaname": "area_name",
        "area_name": "area_name",
        "area_title": "area_name",
        "label": "area_name",
    },
    required_columns=("area_code", "area_name"),
)
