"""
app/domain package marker.
"""

from app.domain.ingestion import (
    ChunkResult,
    ColumnMapping,
    DatasetKind,
    IngestCursor,
    IngestReport,
    IngestState,
    SkippedRecordDiagnostic,
    SkipReason,
    WriteOutcome,
    WritePolicy,
)
from app.domain.records import DisclosureRecord, WageRecord

__all__ = [
    "ChunkResult",
    "ColumnMapping",
    "DatasetKind",
    "DisclosureRecord",
    "IngestCursor",
    "IngestReport",
    "IngestState",
    "SkippedRecordDiagnostic",
    "SkipReason",
    "WageRecord",
    "WriteOutcome",
    "WritePolicy",
]
