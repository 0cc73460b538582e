"""
app/validators/record_validator.py

Row-level validation and type coercion for mapped CSV rows.

A row either becomes a typed record or a categorical skip diagnostic; row
problems are never raised.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from app.domain.ingestion import ColumnMapping, SkippedRecordDiagnostic, SkipReason
from app.domain.records import (
    DISCLOSURE_REQUIRED_FIELDS,
    WAGE_REQUIRED_FIELDS,
    DisclosureRecord,
    WageRecord,
)
from app.parsing.coercers import (
    annualize_hourly,
    parse_boolean,
    parse_date,
    parse_integer,
    parse_number,
    parse_string,
)

DISCLOSURE_MIN_CELLS = 2
WAGE_MIN_CELLS = 3


class RecordValidator:
    """
    Builds canonical records from raw cells using a resolved column mapping.
    """

    def is_blank_row(self, row: Sequence[str]) -> bool:
        return all(not cell.strip() for cell in row)

    def build_disclosure(
        self,
        *,
        row: Sequence[str],
        mapping: ColumnMapping,
        line_number: int,
        fiscal_year: str | None = None,
    ) -> tuple[DisclosureRecord | None, SkippedRecordDiagnostic | None]:
        """
        Coerce one disclosure row; rows missing a required field are skipped.
        """

        if len(row) < DISCLOSURE_MIN_CELLS:
            return None, self._unparseable(line_number)

        def text(field: str) -> str | None:
            return parse_string(mapping.cell(row, field))

        required = {field: text(field) for field in DISCLOSURE_REQUIRED_FIELDS}
        missing = tuple(field for field, value in required.items() if value is None)
        if missing:
            return None, SkippedRecordDiagnostic(
                line_number=line_number,
                reason=SkipReason.MISSING_REQUIRED_FIELD,
                natural_key_fragments=self._fragments({"case_number": required["case_number"]}),
                missing_fields=missing,
            )

        record = DisclosureRecord(
            case_number=required["case_number"],
            case_status=required["case_status"],
            visa_class=required["visa_class"],
            employer_name=required["employer_name"],
            fiscal_year=parse_string(fiscal_year),
            received_date=parse_date(mapping.cell(row, "received_date")),
            decision_date=parse_date(mapping.cell(row, "decision_date")),
            employer_dba=text("employer_dba"),
            employer_address1=text("employer_address1"),
            employer_address2=text("employer_address2"),
            employer_city=text("employer_city"),
            employer_state=text("employer_state"),
            employer_postal_code=text("employer_postal_code"),
            employer_country=text("employer_country"),
            employer_phone=text("employer_phone"),
            naics_code=text("naics_code"),
            job_title=text("job_title"),
            soc_code=text("soc_code"),
            soc_title=text("soc_title"),
            full_time_position=parse_boolean(mapping.cell(row, "full_time_position")),
            begin_date=parse_date(mapping.cell(row, "begin_date")),
            end_date=parse_date(mapping.cell(row, "end_date")),
            total_workers=parse_integer(mapping.cell(row, "total_workers")),
            wage_rate_from=parse_number(mapping.cell(row, "wage_rate_from")),
            wage_rate_to=parse_number(mapping.cell(row, "wage_rate_to")),
            wage_unit=text("wage_unit"),
            prevailing_wage=parse_number(mapping.cell(row, "prevailing_wage")),
            pw_unit=text("pw_unit"),
            pw_wage_level=text("pw_wage_level"),
            pw_source=text("pw_source"),
            h1b_dependent=parse_boolean(mapping.cell(row, "h1b_dependent")),
            willful_violator=parse_boolean(mapping.cell(row, "willful_violator")),
            worksite_city=text("worksite_city"),
            worksite_county=text("worksite_county"),
            worksite_state=text("worksite_state"),
            worksite_postal_code=text("worksite_postal_code"),
        )
        return record, None

    def build_wage(
        self,
        *,
        row: Sequence[str],
        mapping: ColumnMapping,
        line_number: int,
        wage_year: str,
        area_names: Mapping[str, str] | None = None,
    ) -> tuple[WageRecord | None, SkippedRecordDiagnostic | None]:
        """
        Coerce one prevailing-wage row.

        The area name comes from the geography lookup when it knows the area
        code, otherwise from the row's own label column.
        """

        if len(row) < WAGE_MIN_CELLS:
            return None, self._unparseable(line_number)

        area_code = parse_string(mapping.cell(row, "area_code"))
        soc_code = parse_string(mapping.cell(row, "soc_code"))
        keys = {"area_code": area_code, "soc_code": soc_code}
        missing = tuple(field for field in WAGE_REQUIRED_FIELDS if keys[field] is None)
        if missing:
            return None, SkippedRecordDiagnostic(
                line_number=line_number,
                reason=SkipReason.MISSING_REQUIRED_FIELD,
                natural_key_fragments=self._fragments(keys),
                missing_fields=missing,
            )

        area_name = (area_names or {}).get(area_code) or parse_string(mapping.cell(row, "label"))
        levels = [parse_number(mapping.cell(row, f"level_{level}")) for level in range(1, 5)]
        mean_hourly = parse_number(mapping.cell(row, "mean"))

        record = WageRecord(
            wage_year=wage_year,
            area_code=area_code,
            soc_code=soc_code,
            area_name=area_name,
            soc_title=parse_string(mapping.cell(row, "soc_title")),
            level_1_hourly=levels[0],
            level_1_annual=annualize_hourly(levels[0]),
            level_2_hourly=levels[1],
            level_2_annual=annualize_hourly(levels[1]),
            level_3_hourly=levels[2],
            level_3_annual=annualize_hourly(levels[2]),
            level_4_hourly=levels[3],
            level_4_annual=annualize_hourly(levels[3]),
            mean_hourly=mean_hourly,
            mean_annual=annualize_hourly(mean_hourly),
        )
        return record, None

    def build_area_names(
        self,
        *,
        rows: Sequence[Sequence[str]],
        mapping: ColumnMapping,
    ) -> dict[str, str]:
        """
        Build an area code -> area name lookup from geography rows.
        """

        names: dict[str, str] = {}
        for row in rows:
            code = parse_string(mapping.cell(row, "area_code"))
            name = parse_string(mapping.cell(row, "area_name"))
            if code and name:
                names[code] = name
        return names

    def _unparseable(self, line_number: int) -> SkippedRecordDiagnostic:
        return SkippedRecordDiagnostic(line_number=line_number, reason=SkipReason.UNPARSEABLE_ROW)

    def _fragments(self, values: Mapping[str, str | None]) -> dict[str, str]:
        return {key: value for key, value in values.items() if value}
