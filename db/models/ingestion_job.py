"""
db/models/ingestion_job.py

Checkpointed state for import jobs driven by the CLI control loop.

``cursor`` holds everything needed to resume, including the resolved column
mapping. It is cleared once the job completes.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

JSONType = JSON().with_variant(JSONB(), "postgresql")


class IngestionJobStatus:
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class IngestionJob(Base, TimestampMixin):
    __tablename__ = "ingestion_jobs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    dataset: Mapped[str] = mapped_column(String(32), nullable=False, comment="disclosure, wage")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=IngestionJobStatus.PENDING)
    source_ref: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        comment="Storage path of the uploaded source file",
    )
    dataset_year: Mapped[str | None] = mapped_column(String(16), nullable=True)
    options: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="Job parameters such as replace_existing",
    )
    cursor: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="Serialized resume cursor including the column mapping",
    )
    report: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True, comment="Cumulative ingest report")
    chunks_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_ingestion_jobs_dataset", "dataset"),
        Index("ix_ingestion_jobs_status", "status"),
        Index("ix_ingestion_jobs_created_at", "created_at"),
    )
