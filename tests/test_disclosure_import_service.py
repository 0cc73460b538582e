"""
tests/test_disclosure_import_service.py

End-to-end disclosure imports: stored CSV -> chunk windows -> lca_disclosure.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.config import IngestionSettings
from app.domain.ingestion import IngestReport, SkipReason
from app.errors import ConfigurationError
from app.services.disclosure_import_service import DisclosureImportService
from app.services.progress_reporter import ProgressReporter
from db.models.lca_disclosure import LcaDisclosure

SCENARIO_CSV = (
    "case_number,case_status,visa_class,employer_name,wage_rate_of_pay_from\n"
    "A1,Certified,H-1B,Acme Inc,85000\n"
    ",Certified,H-1B,Acme Inc,85000\n"
    'A2,Certified,H-1B,Acme Inc,"$92,000"\n'
)


def _run_to_completion(service: DisclosureImportService, source_ref: str, **kwargs) -> IngestReport:
    reporter = ProgressReporter()
    report = IngestReport()
    cursor = None
    while True:
        result = service.import_chunk(source_ref=source_ref, cursor=cursor, **kwargs)
        report = reporter.accumulate(report, result)
        if not result.has_more:
            return report
        cursor = result.next_cursor


@pytest.fixture()
def source_ref(storage) -> str:
    return storage.save(file_name="LCA_Disclosure_FY2024.csv", content=SCENARIO_CSV.encode("utf-8")).storage_path


def test_three_row_scenario(session_factory, storage, source_ref) -> None:
    with session_factory() as session:
        service = DisclosureImportService(session=session, storage=storage, settings=IngestionSettings())
        result = service.import_chunk(source_ref=source_ref, dataset_year="2024")

    assert result.parsed == 3
    assert result.inserted == 2
    assert result.skipped == 1
    assert result.has_more is False
    assert result.skipped_reason_counts == {SkipReason.MISSING_REQUIRED_FIELD: 1}
    sample = result.skipped_samples[0]
    assert sample.line_number == 3
    assert sample.missing_fields == ("case_number",)

    with session_factory() as session:
        stored = session.scalars(select(LcaDisclosure).order_by(LcaDisclosure.case_number)).all()
        assert [row.case_number for row in stored] == ["A1", "A2"]
        assert stored[1].wage_rate_from == Decimal("92000")
        assert stored[1].fiscal_year == "2024"


def test_reimport_keeps_one_row_per_case_number(session_factory, storage, source_ref) -> None:
    for _ in range(2):
        with session_factory() as session:
            service = DisclosureImportService(session=session, storage=storage, settings=IngestionSettings())
            result = service.import_chunk(source_ref=source_ref)

    assert result.inserted == 2
    assert result.updated == 2

    with session_factory() as session:
        assert session.scalar(select(func.count()).select_from(LcaDisclosure)) == 2


def test_small_windows_import_every_row(session_factory, storage) -> None:
    lines = ["CASE_NUMBER,CASE_STATUS,VISA_CLASS,EMPLOYER_NAME,EMPLOYER_NAME_DUPLICATE"]
    lines.extend(f'I-{index:03d},Certified,H-1B,"Employer {index}, LLC",x' for index in range(40))
    ref = storage.save(file_name="big.csv", content=("\n".join(lines) + "\n").encode("utf-8")).storage_path
    settings = IngestionSettings(chunk_bytes=128, max_row_bytes=1024, batch_size=7)

    with session_factory() as session:
        report = _run_to_completion(
            DisclosureImportService(session=session, storage=storage, settings=settings),
            ref,
        )

    assert report.done is True
    assert report.chunks > 1
    assert report.parsed == 40
    assert report.inserted == 40
    assert report.skipped == 0

    with session_factory() as session:
        names = session.scalars(select(LcaDisclosure.employer_name).where(LcaDisclosure.case_number == "I-017")).all()
        assert names == ["Employer 17, LLC"]
        assert session.scalar(select(func.count()).select_from(LcaDisclosure)) == 40


def test_missing_source_is_a_configuration_error(session_factory, storage) -> None:
    with session_factory() as session:
        service = DisclosureImportService(session=session, storage=storage, settings=IngestionSettings())
        with pytest.raises(ConfigurationError):
            service.import_chunk(source_ref="test-imports/missing/none.csv")


def test_unmappable_header_is_a_configuration_error(session_factory, storage) -> None:
    ref = storage.save(file_name="bad.csv", content=b"\n\n").storage_path

    with session_factory() as session:
        service = DisclosureImportService(session=session, storage=storage, settings=IngestionSettings())
        with pytest.raises(ConfigurationError):
            service.import_chunk(source_ref=ref)
