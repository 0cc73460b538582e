"""
Repository for import job checkpoints.

Methods only mutate the job row; callers own the transaction.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from db.models.ingestion_job import IngestionJob, IngestionJobStatus
from db.repositories.errors import IngestionJobNotFoundError


def _now() -> datetime:
    return datetime.now(timezone.utc)


class IngestionJobRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_job(
        self,
        *,
        dataset: str,
        source_ref: str,
        dataset_year: str | None = None,
        options: dict[str, Any] | None = None,
        job_id: uuid.UUID | None = None,
    ) -> IngestionJob:
        job = IngestionJob(
            id=job_id or uuid.uuid4(),
            dataset=dataset,
            source_ref=source_ref,
            dataset_year=dataset_year,
            options=options,
            status=IngestionJobStatus.PENDING,
            chunks_processed=0,
        )
        self._session.add(job)
        self._session.flush()
        return job

    def require_job(self, job_id: uuid.UUID) -> IngestionJob:
        job = self._session.get(IngestionJob, job_id)
        if job is None:
            raise IngestionJobNotFoundError(f"Ingestion job not found: {job_id}")
        return job

    def _transition(self, job_id: uuid.UUID, status: str, **changes: Any) -> IngestionJob:
        job = self.require_job(job_id)
        job.status = status
        for name, value in changes.items():
            setattr(job, name, value)
        return job

    def mark_running(self, *, job_id: uuid.UUID) -> IngestionJob:
        job = self._transition(job_id, IngestionJobStatus.RUNNING, completed_at=None, error_message=None)
        if job.started_at is None:
            job.started_at = _now()
        return job

    def save_checkpoint(
        self,
        *,
        job_id: uuid.UUID,
        cursor: dict[str, Any] | None,
        report: dict[str, Any],
    ) -> IngestionJob:
        """
        Persist the cursor and cumulative report after a committed chunk.
        """

        job = self.require_job(job_id)
        job.cursor = cursor
        job.report = report
        job.chunks_processed = int(report.get("chunks") or 0)
        return job

    def mark_completed(self, *, job_id: uuid.UUID, report: dict[str, Any] | None = None) -> IngestionJob:
        job = self._transition(
            job_id,
            IngestionJobStatus.COMPLETED,
            completed_at=_now(),
            cursor=None,
            error_message=None,
        )
        if report is not None:
            job.report = report
        return job

    def mark_failed(self, *, job_id: uuid.UUID, error_message: str) -> IngestionJob:
        # The cursor is kept so a fixed source can resume from the last checkpoint.
        return self._transition(job_id, IngestionJobStatus.FAILED, error_message=error_message)

    def mark_cancelled(self, *, job_id: uuid.UUID) -> IngestionJob:
        return self._transition(job_id, IngestionJobStatus.CANCELLED, completed_at=_now())
