"""
app/domain/ingestion.py

Domain models shared by the chunked ingestion flow: resumption cursor,
column mapping, per-window results and the cumulative report.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Sequence


class DatasetKind:
    DISCLOSURE = "disclosure"
    WAGE = "wage"
    GEOGRAPHY = "geography"


class WritePolicy:
    """
    Conflict policy applied when a batch is committed.

    UPSERT inserts or updates in place on the dataset's natural key.
    APPEND always inserts; callers clear previous rows up front.
    """

    UPSERT = "upsert"
    APPEND = "append"


class IngestState:
    NOT_STARTED = "not_started"
    HEADER_PARSED = "header_parsed"
    STREAMING = "streaming"
    DONE = "done"


class SkipReason:
    MISSING_REQUIRED_FIELD = "missing_required_field"
    UNPARSEABLE_ROW = "unparseable_row"


@dataclass(frozen=True)
class ColumnMapping:
    """
    Canonical field -> column index, resolved once from the header row.
    """

    dataset: str
    version: str
    indices: dict[str, int]
    headers: tuple[str, ...] = ()

    def index_of(self, canonical_field: str) -> int | None:
        return self.indices.get(canonical_field)

    def cell(self, row: Sequence[str], canonical_field: str) -> str | None:
        """
        Return the raw cell for a canonical field, or None when unmapped or
        the row is too short.
        """

        index = self.indices.get(canonical_field)
        if index is None or index >= len(row):
            return None
        return row[index]

    def to_dict(self) -> dict[str, Any]:
        return {
            "dataset": self.dataset,
            "version": self.version,
            "indices": dict(self.indices),
            "headers": list(self.headers),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ColumnMapping":
        indices = payload.get("indices") or {}
        if not isinstance(indices, Mapping):
            raise ValueError("Column mapping indices must be an object.")
        parsed: dict[str, int] = {}
        for key, value in indices.items():
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValueError(f"Invalid column index for {key!r}: {value!r}")
            parsed[str(key)] = value
        return cls(
            dataset=str(payload.get("dataset") or ""),
            version=str(payload.get("version") or ""),
            indices=parsed,
            headers=tuple(str(item) for item in payload.get("headers") or ()),
        )


@dataclass(frozen=True)
class IngestCursor:
    """
    Resumption state for one job, held by the caller between invocations.

    ``byte_offset`` always points at the start of a line. ``row_offset``
    counts data rows already consumed; it is the resume point for
    row-windowed sources and the line-number base for byte-windowed ones.
    """

    byte_offset: int = 0
    row_offset: int = 0
    mapping: ColumnMapping | None = None

    def __post_init__(self) -> None:
        if self.byte_offset < 0 or self.row_offset < 0:
            raise ValueError("Cursor offsets must be non-negative.")

    @property
    def state(self) -> str:
        if self.mapping is None:
            return IngestState.NOT_STARTED
        if self.byte_offset == 0 and self.row_offset == 0:
            return IngestState.HEADER_PARSED
        return IngestState.STREAMING

    def advance(
        self,
        *,
        byte_offset: int | None = None,
        row_offset: int | None = None,
        mapping: ColumnMapping | None = None,
    ) -> "IngestCursor":
        """
        Return a new cursor moved forward; offsets never move backwards.
        """

        next_bytes = self.byte_offset if byte_offset is None else byte_offset
        next_rows = self.row_offset if row_offset is None else row_offset
        if next_bytes < self.byte_offset or next_rows < self.row_offset:
            raise ValueError("Cursor offsets must be monotonically non-decreasing.")
        return replace(
            self,
            byte_offset=next_bytes,
            row_offset=next_rows,
            mapping=mapping if mapping is not None else self.mapping,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "byte_offset": self.byte_offset,
            "row_offset": self.row_offset,
            "mapping": self.mapping.to_dict() if self.mapping is not None else None,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> "IngestCursor":
        if not payload:
            return cls()
        mapping_payload = payload.get("mapping")
        return cls(
            byte_offset=int(payload.get("byte_offset") or 0),
            row_offset=int(payload.get("row_offset") or 0),
            mapping=ColumnMapping.from_dict(mapping_payload) if mapping_payload else None,
        )


@dataclass(frozen=True)
class SkippedRecordDiagnostic:
    """
    One sampled skipped row with a categorical reason.
    """

    line_number: int
    reason: str
    natural_key_fragments: dict[str, str] = field(default_factory=dict)
    missing_fields: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "line_number": self.line_number,
            "reason": self.reason,
            "natural_key_fragments": dict(self.natural_key_fragments),
            "missing_fields": list(self.missing_fields),
        }


@dataclass(frozen=True)
class WriteOutcome:
    """
    Result of committing one or more batches.
    """

    written: int = 0
    updated: int = 0
    errored: int = 0
    failed_batches: int = 0

    def __add__(self, other: "WriteOutcome") -> "WriteOutcome":
        return WriteOutcome(
            written=self.written + other.written,
            updated=self.updated + other.updated,
            errored=self.errored + other.errored,
            failed_batches=self.failed_batches + other.failed_batches,
        )


@dataclass(frozen=True)
class ChunkResult:
    """
    Counts for one processed window, plus the signal to continue.

    ``inserted`` counts rows committed with insert-or-update semantics;
    ``updated`` is the portion of those that replaced an existing key.
    """

    state: str
    parsed: int
    inserted: int
    updated: int
    skipped: int
    errored: int
    has_more: bool
    next_cursor: IngestCursor | None
    skipped_reason_counts: dict[str, int] = field(default_factory=dict)
    skipped_samples: tuple[SkippedRecordDiagnostic, ...] = ()
    processed_bytes: int = 0
    total_bytes: int | None = None
    total_rows: int | None = None

    @property
    def progress_percent(self) -> int:
        if self.next_cursor is None:
            return 100
        if self.total_bytes:
            return min(100, round(self.next_cursor.byte_offset * 100 / self.total_bytes))
        if self.total_rows:
            return min(100, round(self.next_cursor.row_offset * 100 / self.total_rows))
        return 0


@dataclass(frozen=True)
class IngestReport:
    """
    Cumulative counters across chunks, accumulated by the caller.
    """

    parsed: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errored: int = 0
    chunks: int = 0
    done: bool = False
    skipped_reason_counts: dict[str, int] = field(default_factory=dict)
    skipped_samples: tuple[SkippedRecordDiagnostic, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "parsed": self.parsed,
            "inserted": self.inserted,
            "updated": self.updated,
            "skipped": self.skipped,
            "errored": self.errored,
            "chunks": self.chunks,
            "done": self.done,
            "skipped_reason_counts": dict(self.skipped_reason_counts),
            "skipped_samples": [sample.to_dict() for sample in self.skipped_samples],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> "IngestReport":
        if not payload:
            return cls()
        return cls(
            parsed=int(payload.get("parsed") or 0),
            inserted=int(payload.get("inserted") or 0),
            updated=int(payload.get("updated") or 0),
            skipped=int(payload.get("skipped") or 0),
            errored=int(payload.get("errored") or 0),
            chunks=int(payload.get("chunks") or 0),
            done=bool(payload.get("done")),
            skipped_reason_counts={
                str(key): int(value)
                for key, value in (payload.get("skipped_reason_counts") or {}).items()
            },
            skipped_samples=tuple(
                SkippedRecordDiagnostic(
                    line_number=int(item.get("line_number") or 0),
                    reason=str(item.get("reason") or ""),
                    natural_key_fragments=dict(item.get("natural_key_fragments") or {}),
                    missing_fields=tuple(item.get("missing_fields") or ()),
                )
                for item in payload.get("skipped_samples") or ()
            ),
        )
