"""
app/schemas package marker.
"""

from app.schemas.imports import (
    AreaNamePatchRequest,
    AreaNamePatchResponse,
    ChunkResponse,
    ColumnMappingPayload,
    DisclosureChunkRequest,
    IngestCursorPayload,
    SkippedRecordResponse,
    StoredSourceResponse,
    WageChunkRequest,
    WageFetchRequest,
    WageFetchResponse,
)

__all__ = [
    "AreaNamePatchRequest",
    "AreaNamePatchResponse",
    "ChunkResponse",
    "ColumnMappingPayload",
    "DisclosureChunkRequest",
    "IngestCursorPayload",
    "SkippedRecordResponse",
    "StoredSourceResponse",
    "WageChunkRequest",
    "WageFetchRequest",
    "WageFetchResponse",
]
