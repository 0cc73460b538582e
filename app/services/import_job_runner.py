"""
app/services/import_job_runner.py

Caller-side control loop for import jobs.

The loop invokes one chunk at a time, accumulates the report and checkpoints
the cursor into ``ingestion_jobs`` after every committed window, so a crashed
loop resumes from the last checkpoint instead of the start of the file.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable

from sqlalchemy.orm import Session

from app.config import IngestionSettings
from app.domain.ingestion import ChunkResult, DatasetKind, IngestCursor, IngestReport
from app.errors import ConfigurationError, IngestionError
from app.logging_utils import log_event
from app.services.archive_cache import ArchiveCache
from app.services.disclosure_import_service import DisclosureImportService
from app.services.progress_reporter import ProgressReporter
from app.services.wage_import_service import WageImportService
from db.models.ingestion_job import IngestionJob, IngestionJobStatus
from db.repositories.ingestion_job_repository import IngestionJobRepository
from db.repositories.storage import SourceStorageBackend

logger = logging.getLogger(__name__)

SUPPORTED_DATASETS = {DatasetKind.DISCLOSURE, DatasetKind.WAGE}


class ImportJobRunner:
    """
    Drives a stored source through the chunk pipeline to completion.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], Session],
        storage: SourceStorageBackend,
        settings: IngestionSettings,
        cache: ArchiveCache | None = None,
        reporter: ProgressReporter | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._storage = storage
        self._settings = settings
        self._cache = cache or ArchiveCache()
        self._reporter = reporter or ProgressReporter(max_samples=settings.max_skipped_samples)

    def create_job(
        self,
        *,
        dataset: str,
        source_ref: str,
        dataset_year: str | None = None,
        replace_existing: bool = True,
        job_id: uuid.UUID | None = None,
    ) -> uuid.UUID:
        if dataset not in SUPPORTED_DATASETS:
            raise ConfigurationError(f"Unsupported dataset: {dataset}")
        session = self._session_factory()
        try:
            job = IngestionJobRepository(session).create_job(
                dataset=dataset,
                source_ref=source_ref,
                dataset_year=dataset_year,
                options={"replace_existing": replace_existing},
                job_id=job_id,
            )
            session.commit()
            return job.id
        finally:
            session.close()

    def run(
        self,
        job_id: uuid.UUID,
        *,
        max_chunks: int | None = None,
        delete_source_on_success: bool = True,
        on_chunk: Callable[[ChunkResult, IngestReport], None] | None = None,
    ) -> IngestReport:
        """
        Process chunks until the source is exhausted or ``max_chunks`` ran.
        """

        session = self._session_factory()
        repository = IngestionJobRepository(session)
        try:
            job = repository.require_job(job_id)
            if job.status in {IngestionJobStatus.COMPLETED, IngestionJobStatus.CANCELLED}:
                raise ConfigurationError(
                    f"Job {job_id} is already {job.status}.",
                    context={"job_id": str(job_id)},
                )

            cursor = IngestCursor.from_dict(job.cursor)
            report = IngestReport.from_dict(job.report)
            repository.mark_running(job_id=job_id)
            session.commit()

            invoke = self._chunk_invoker(job, session)
            processed = 0
            while max_chunks is None or processed < max_chunks:
                try:
                    result = invoke(cursor)
                except IngestionError as exc:
                    self._fail(session, repository, job_id, exc.message)
                    logger.error("Import job failed job_id=%s error=%s", job_id, exc.message)
                    raise
                except Exception as exc:
                    self._fail(session, repository, job_id, f"Unexpected {type(exc).__name__}: {exc}")
                    logger.exception("Import job crashed job_id=%s", job_id)
                    raise

                processed += 1
                report = self._reporter.accumulate(report, result)
                if on_chunk is not None:
                    on_chunk(result, report)

                if result.next_cursor is None:
                    repository.mark_completed(job_id=job_id, report=report.to_dict())
                    session.commit()
                    if delete_source_on_success:
                        self._storage.delete(storage_path=job.source_ref)
                    break

                cursor = result.next_cursor
                repository.save_checkpoint(job_id=job_id, cursor=cursor.to_dict(), report=report.to_dict())
                session.commit()

            log_event(
                logger,
                logging.INFO,
                "job_progress",
                job_id=str(job_id),
                dataset=job.dataset,
                chunks=report.chunks,
                parsed=report.parsed,
                inserted=report.inserted,
                updated=report.updated,
                skipped=report.skipped,
                errored=report.errored,
                done=report.done,
            )
            return report
        finally:
            session.close()

    def cancel(self, job_id: uuid.UUID, *, delete_source: bool = True) -> None:
        session = self._session_factory()
        try:
            repository = IngestionJobRepository(session)
            job = repository.mark_cancelled(job_id=job_id)
            session.commit()
            self._cache.invalidate(job.source_ref)
            if delete_source:
                self._storage.delete(storage_path=job.source_ref)
        finally:
            session.close()

    @staticmethod
    def _fail(session: Session, repository: IngestionJobRepository, job_id: uuid.UUID, message: str) -> None:
        session.rollback()
        repository.mark_failed(job_id=job_id, error_message=message)
        session.commit()

    def _chunk_invoker(self, job: IngestionJob, session: Session) -> Callable[[IngestCursor], ChunkResult]:
        options: dict[str, Any] = job.options or {}
        if job.dataset == DatasetKind.DISCLOSURE:
            disclosure = DisclosureImportService(session=session, storage=self._storage, settings=self._settings)
            return lambda cursor: disclosure.import_chunk(
                source_ref=job.source_ref,
                dataset_year=job.dataset_year,
                cursor=cursor,
            )
        if job.dataset == DatasetKind.WAGE:
            wage = WageImportService(
                session=session,
                storage=self._storage,
                cache=self._cache,
                settings=self._settings,
            )
            replace_existing = bool(options.get("replace_existing", True))
            return lambda cursor: wage.import_chunk(
                source_ref=job.source_ref,
                wage_year=job.dataset_year,
                cursor=cursor,
                replace_existing=replace_existing,
            )
        raise ConfigurationError(f"Unsupported dataset: {job.dataset}")
