"""
app/schemas/imports.py

Request and response schemas for the import endpoints.
"""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, Field

from app.domain.ingestion import ChunkResult, IngestCursor
from db.repositories.types import StoredFileMetadata


class ColumnMappingPayload(BaseModel):
    """
    Cached header mapping carried inside the cursor.
    """

    dataset: str
    version: str
    indices: dict[str, int] = Field(default_factory=dict)
    headers: list[str] = Field(default_factory=list)


class IngestCursorPayload(BaseModel):
    """
    Opaque resume point returned by one chunk and sent back with the next.
    """

    byte_offset: int = Field(default=0, ge=0)
    row_offset: int = Field(default=0, ge=0)
    mapping: ColumnMappingPayload | None = None

    def to_cursor(self) -> IngestCursor:
        return IngestCursor.from_dict(self.model_dump())

    @classmethod
    def from_cursor(cls, cursor: IngestCursor | None) -> "IngestCursorPayload | None":
        if cursor is None:
            return None
        return cls.model_validate(cursor.to_dict())


class StoredSourceResponse(BaseModel):
    source_ref: str
    file_name: str
    size_bytes: int = Field(..., ge=0)
    content_type: str | None = None
    checksum: str
    stored_at: datetime

    @classmethod
    def from_metadata(cls, metadata: StoredFileMetadata) -> "StoredSourceResponse":
        return cls(
            source_ref=metadata.storage_path,
            file_name=metadata.file_name,
            size_bytes=metadata.file_size_bytes,
            content_type=metadata.mime_type,
            checksum=metadata.checksum,
            stored_at=metadata.stored_at,
        )


class DisclosureChunkRequest(BaseModel):
    source_ref: str = Field(..., min_length=1)
    dataset_year: str | None = Field(default=None, description="Fiscal year stamped on every row")
    cursor: IngestCursorPayload | None = None


class WageChunkRequest(BaseModel):
    source_ref: str = Field(..., min_length=1)
    dataset_year: str | None = Field(
        default=None,
        description="Wage year such as 2024-2025; inferred from the file name when omitted",
    )
    replace_existing: bool = Field(
        default=True,
        description="Delete the wage year's rows when the first chunk runs",
    )
    cursor: IngestCursorPayload | None = None


class SkippedRecordResponse(BaseModel):
    line_number: int = Field(..., ge=1)
    reason: str
    natural_key_fragments: dict[str, str] = Field(default_factory=dict)
    missing_fields: list[str] = Field(default_factory=list)


class ChunkResponse(BaseModel):
    """
    Per-window delta; callers accumulate these into a running report.
    """

    state: str
    parsed_count: int = Field(..., ge=0)
    inserted_count: int = Field(..., ge=0)
    updated_count: int = Field(..., ge=0)
    skipped_count: int = Field(..., ge=0)
    error_count: int = Field(..., ge=0)
    has_more: bool
    next_cursor: IngestCursorPayload | None = None
    skipped_reason_counts: dict[str, int] = Field(default_factory=dict)
    skipped_samples: list[SkippedRecordResponse] = Field(default_factory=list)
    total_bytes: int | None = None
    total_rows: int | None = None
    progress_percent: int = Field(..., ge=0, le=100)

    @classmethod
    def from_result(cls, result: ChunkResult) -> "ChunkResponse":
        return cls(
            state=result.state,
            parsed_count=result.parsed,
            inserted_count=result.inserted,
            updated_count=result.updated,
            skipped_count=result.skipped,
            error_count=result.errored,
            has_more=result.has_more,
            next_cursor=IngestCursorPayload.from_cursor(result.next_cursor),
            skipped_reason_counts=dict(result.skipped_reason_counts),
            skipped_samples=[
                SkippedRecordResponse.model_validate(sample.to_dict()) for sample in result.skipped_samples
            ],
            total_bytes=result.total_bytes,
            total_rows=result.total_rows,
            progress_percent=result.progress_percent,
        )


class WageFetchRequest(BaseModel):
    archive_url: str = Field(..., min_length=1)


class WageFetchResponse(BaseModel):
    source: StoredSourceResponse
    wage_year: str | None = None


class AreaNamePatchRequest(BaseModel):
    archive_url: str = Field(..., min_length=1)
    dataset_year: str | None = None


class AreaNamePatchResponse(BaseModel):
    wage_year: str
    updated_count: int = Field(..., ge=0)
    area_codes_seen: int = Field(..., ge=0)
