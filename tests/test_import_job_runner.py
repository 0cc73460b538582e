"""
tests/test_import_job_runner.py

The checkpointed control loop: run, pause, resume, fail and cancel.
"""

from __future__ import annotations

import pytest

from app.archive.extractor import ArchiveExtractionError
from app.config import IngestionSettings
from app.domain.ingestion import DatasetKind
from app.errors import ConfigurationError
from app.services.disclosure_import_service import DisclosureImportService
from app.services.import_job_runner import ImportJobRunner
from db.models.ingestion_job import IngestionJob, IngestionJobStatus

DISCLOSURE_CSV = "case_number,case_status,visa_class,employer_name\n" + "".join(
    f"R-{index:03d},Certified,H-1B,Employer {index}\n" for index in range(30)
)


@pytest.fixture()
def runner(session_factory, storage) -> ImportJobRunner:
    return ImportJobRunner(
        session_factory=session_factory,
        storage=storage,
        settings=IngestionSettings(chunk_bytes=200, max_row_bytes=2048, batch_size=10),
    )


@pytest.fixture()
def source_ref(storage) -> str:
    return storage.save(file_name="LCA_FY2024.csv", content=DISCLOSURE_CSV.encode("utf-8")).storage_path


def _job(session_factory, job_id) -> IngestionJob:
    with session_factory() as session:
        return session.get(IngestionJob, job_id)


def test_run_to_completion_deletes_the_source(runner, session_factory, storage, source_ref) -> None:
    job_id = runner.create_job(dataset=DatasetKind.DISCLOSURE, source_ref=source_ref, dataset_year="2024")
    seen: list[int] = []

    report = runner.run(job_id, on_chunk=lambda result, cumulative: seen.append(cumulative.chunks))

    assert report.done is True
    assert report.parsed == 30
    assert report.inserted == 30
    assert seen == list(range(1, len(seen) + 1))
    job = _job(session_factory, job_id)
    assert job.status == IngestionJobStatus.COMPLETED
    assert job.cursor is None
    assert job.report["inserted"] == 30
    assert job.completed_at is not None
    assert not (storage.root_dir / source_ref).exists()


def test_paused_job_resumes_from_its_checkpoint(runner, session_factory, source_ref) -> None:
    job_id = runner.create_job(dataset=DatasetKind.DISCLOSURE, source_ref=source_ref)

    partial = runner.run(job_id, max_chunks=1)
    paused = _job(session_factory, job_id)

    assert partial.done is False
    assert paused.status == IngestionJobStatus.RUNNING
    assert paused.cursor["byte_offset"] > 0
    assert paused.chunks_processed == 1

    final = runner.run(job_id, delete_source_on_success=False)

    assert final.done is True
    assert final.parsed == 30
    assert final.chunks > 1


def test_failed_chunk_marks_the_job_failed(runner, session_factory) -> None:
    job_id = runner.create_job(dataset=DatasetKind.DISCLOSURE, source_ref="test-imports/missing/none.csv")

    with pytest.raises(ConfigurationError):
        runner.run(job_id)

    job = _job(session_factory, job_id)
    assert job.status == IngestionJobStatus.FAILED
    assert "not found" in job.error_message


def test_completed_job_cannot_run_again(runner, source_ref) -> None:
    job_id = runner.create_job(dataset=DatasetKind.DISCLOSURE, source_ref=source_ref)
    runner.run(job_id, delete_source_on_success=False)

    with pytest.raises(ConfigurationError):
        runner.run(job_id)


def test_cancel_marks_job_and_removes_source(runner, session_factory, storage, source_ref) -> None:
    job_id = runner.create_job(dataset=DatasetKind.DISCLOSURE, source_ref=source_ref)

    runner.cancel(job_id)

    assert _job(session_factory, job_id).status == IngestionJobStatus.CANCELLED
    assert not (storage.root_dir / source_ref).exists()


def test_unknown_dataset_is_rejected(runner, source_ref) -> None:
    with pytest.raises(ConfigurationError):
        runner.create_job(dataset="h2b", source_ref=source_ref)


def test_wage_job_runs_from_an_archive(runner, session_factory, storage, make_zip) -> None:
    content = make_zip(
        {
            "ALC_Export.csv": "Area,SocCode,Level1\n10180,15-1252,40\n10420,15-1252,41\n",
            "Geography.csv": "Area,AreaName\n10180,Abilene TX\n",
        }
    )
    ref = storage.save(file_name="OFLC_Wages_2024-25.zip", content=content).storage_path
    job_id = runner.create_job(dataset=DatasetKind.WAGE, source_ref=ref)

    report = runner.run(job_id)

    assert report.inserted == 2
    assert _job(session_factory, job_id).status == IngestionJobStatus.COMPLETED


def test_corrupt_archive_marks_the_wage_job_failed(runner, session_factory, storage, make_zip) -> None:
    content = bytearray(make_zip({"ALC_Export.csv": "Area,SocCode,Level1\n" + "10180,15-1252,40\n" * 100}))
    data_start = 30 + int.from_bytes(content[26:28], "little") + int.from_bytes(content[28:30], "little")
    content[data_start : data_start + 4] = b"\xff\xff\xff\xff"
    ref = storage.save(file_name="OFLC_Wages_2024-25.zip", content=bytes(content)).storage_path
    job_id = runner.create_job(dataset=DatasetKind.WAGE, source_ref=ref)

    with pytest.raises(ArchiveExtractionError):
        runner.run(job_id)

    job = _job(session_factory, job_id)
    assert job.status == IngestionJobStatus.FAILED
    assert "ALC_Export.csv" in job.error_message


def test_unexpected_error_still_marks_the_job_failed(runner, session_factory, source_ref, monkeypatch) -> None:
    def _explode(self, **kwargs):
        raise RuntimeError("disk vanished")

    monkeypatch.setattr(DisclosureImportService, "import_chunk", _explode)
    job_id = runner.create_job(dataset=DatasetKind.DISCLOSURE, source_ref=source_ref)

    with pytest.raises(RuntimeError):
        runner.run(job_id)

    job = _job(session_factory, job_id)
    assert job.status == IngestionJobStatus.FAILED
    assert job.error_message == "Unexpected RuntimeError: disk vanished"
