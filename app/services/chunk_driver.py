"""
app/services/chunk_driver.py

Bounded, resumable passes over a large delimited source.

Each invocation handles exactly one window and returns the cursor for the
next one; the caller holds that cursor between invocations, so no process
has to stay alive for the whole job. Two window strategies exist:

* byte windows over a stored file, read with ranged reads and snapped back
  to the last newline so a row never straddles two windows;
* row windows over text that was already materialized (archive entries).

On the first invocation the header line is read and reconciled into a
column mapping, which then travels inside the cursor. The header is never
processed as data.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence

from app.config import IngestionSettings
from app.domain.ingestion import (
    ChunkResult,
    ColumnMapping,
    IngestCursor,
    IngestState,
    SkippedRecordDiagnostic,
)
from app.errors import SourceError
from app.logging_utils import log_event
from app.mappers.schema_mapper import SchemaReconciler
from app.parsing.tokenizer import parse_csv_line
from app.repositories.batch_writer import BatchWriter
from app.services.progress_reporter import SkipTally

logger = logging.getLogger(__name__)

NEWLINE = b"\n"
HEADER_LINE_NUMBER = 1

RecordBuilder = Callable[..., tuple[Any, SkippedRecordDiagnostic | None]]


class RangedSource(Protocol):
    def size(self, *, storage_path: str) -> int:
        ...

    def read_range(self, *, storage_path: str, start: int, length: int) -> bytes:
        ...


@dataclass(frozen=True)
class _ByteWindow:
    text: str
    start: int
    end: int


class ChunkDriver:
    """
    Runs one window of the tokenize -> reconcile -> coerce -> write pipeline.
    """

    def __init__(
        self,
        *,
        reconciler: SchemaReconciler,
        writer: BatchWriter,
        settings: IngestionSettings,
    ) -> None:
        self._reconciler = reconciler
        self._writer = writer
        self._settings = settings

    def process_byte_window(
        self,
        *,
        source: RangedSource,
        storage_path: str,
        cursor: IngestCursor | None,
        build_record: RecordBuilder,
    ) -> ChunkResult:
        """
        Process the byte window starting at ``cursor.byte_offset``.
        """

        started = time.monotonic()
        cursor = cursor or IngestCursor()
        total_bytes = source.size(storage_path=storage_path)
        if total_bytes == 0:
            raise SourceError("Source file is empty.", context={"storage_path": storage_path})

        mapping = self._usable_mapping(cursor.mapping)
        offset = cursor.byte_offset
        row_offset = cursor.row_offset

        if offset == 0 or mapping is None:
            header = self._read_line_window(
                source,
                storage_path=storage_path,
                start=0,
                total_bytes=total_bytes,
                single_line=True,
            )
            if mapping is None:
                mapping = self._reconciler.resolve_line(header.text.rstrip("\r\n"))
                logger.info(
                    "Header reconciled storage_path=%s dataset=%s mapped_fields=%s",
                    storage_path,
                    mapping.dataset,
                    len(mapping.indices),
                )
            if offset == 0:
                offset = header.end

        if offset >= total_bytes:
            return self._finish(
                started=started,
                cursor=cursor,
                mapping=mapping,
                parsed=0,
                tally=SkipTally(max_samples=self._settings.max_skipped_samples),
                records=[],
                next_offsets=None,
                processed_bytes=0,
                total_bytes=total_bytes,
                total_rows=None,
            )

        window = self._read_line_window(
            source,
            storage_path=storage_path,
            start=offset,
            total_bytes=total_bytes,
            single_line=False,
        )
        physical_lines = window.text.split("\n")
        if window.text.endswith("\n"):
            physical_lines.pop()

        first_line_number = HEADER_LINE_NUMBER + row_offset + 1
        numbered = [
            (first_line_number + index, line[:-1] if line.endswith("\r") else line)
            for index, line in enumerate(physical_lines)
        ]
        records, parsed, tally = self._build_records(numbered, mapping, build_record)

        has_more = window.end < total_bytes
        return self._finish(
            started=started,
            cursor=cursor,
            mapping=mapping,
            parsed=parsed,
            tally=tally,
            records=records,
            next_offsets=(window.end, row_offset + len(physical_lines)) if has_more else None,
            processed_bytes=window.end - window.start,
            total_bytes=total_bytes,
            total_rows=None,
        )

    def process_row_window(
        self,
        *,
        lines: Sequence[tuple[int, str]],
        cursor: IngestCursor | None,
        build_record: RecordBuilder,
    ) -> ChunkResult:
        """
        Process up to ``chunk_rows`` data lines starting at ``cursor.row_offset``.

        ``lines`` are numbered non-blank lines with the header first.
        """

        started = time.monotonic()
        cursor = cursor or IngestCursor()
        if not lines:
            raise SourceError("Source contains no lines.")

        mapping = self._usable_mapping(cursor.mapping)
        if mapping is None:
            mapping = self._reconciler.resolve_line(lines[0][1])

        total_rows = len(lines) - 1
        start = min(cursor.row_offset, total_rows)
        end = min(start + self._settings.chunk_rows, total_rows)
        window = lines[1 + start : 1 + end]
        records, parsed, tally = self._build_records(window, mapping, build_record)

        has_more = end < total_rows
        return self._finish(
            started=started,
            cursor=cursor,
            mapping=mapping,
            parsed=parsed,
            tally=tally,
            records=records,
            next_offsets=(cursor.byte_offset, end) if has_more else None,
            processed_bytes=0,
            total_bytes=None,
            total_rows=total_rows,
        )

    def _usable_mapping(self, mapping: ColumnMapping | None) -> ColumnMapping | None:
        if mapping is None:
            return None
        if not self._reconciler.is_compatible(mapping):
            logger.warning(
                "Cached column mapping discarded dataset=%s version=%s expected_version=%s",
                mapping.dataset,
                mapping.version,
                self._reconciler.synonyms.version,
            )
            return None
        return mapping

    def _read_line_window(
        self,
        source: RangedSource,
        *,
        storage_path: str,
        start: int,
        total_bytes: int,
        single_line: bool,
    ) -> _ByteWindow:
        """
        Read from ``start`` up to a line boundary.

        ``single_line`` stops after the first newline (header); otherwise the
        window ends after the last newline within ``chunk_bytes``. A window
        without any newline is widened until ``max_row_bytes``.
        """

        length = self._settings.chunk_bytes
        while True:
            data = source.read_range(storage_path=storage_path, start=start, length=length)
            at_eof = start + len(data) >= total_bytes
            if at_eof and not single_line:
                usable = data
                break
            cut = data.find(NEWLINE) if single_line else data.rfind(NEWLINE)
            if cut != -1:
                usable = data[: cut + 1]
                break
            if at_eof:
                usable = data
                break
            if length >= self._settings.max_row_bytes:
                raise SourceError(
                    "A single row exceeds the maximum window size.",
                    context={
                        "storage_path": storage_path,
                        "byte_offset": start,
                        "max_row_bytes": self._settings.max_row_bytes,
                    },
                )
            length = min(length * 2, self._settings.max_row_bytes)

        encoding = "utf-8-sig" if start == 0 else "utf-8"
        return _ByteWindow(
            text=usable.decode(encoding, errors="replace"),
            start=start,
            end=start + len(usable),
        )

    def _build_records(
        self,
        numbered_lines: Sequence[tuple[int, str]],
        mapping: ColumnMapping,
        build_record: RecordBuilder,
    ) -> tuple[list[Any], int, SkipTally]:
        tally = SkipTally(
            max_samples=self._settings.max_skipped_samples,
            log_rows=self._settings.log_skipped_rows,
        )
        records: list[Any] = []
        parsed = 0
        for line_number, line in numbered_lines:
            if not line.strip():
                continue
            parsed += 1
            record, diagnostic = build_record(
                row=parse_csv_line(line),
                mapping=mapping,
                line_number=line_number,
            )
            if diagnostic is not None:
                tally.add(diagnostic)
            elif record is not None:
                records.append(record)
        return records, parsed, tally

    def _finish(
        self,
        *,
        started: float,
        cursor: IngestCursor,
        mapping: ColumnMapping,
        parsed: int,
        tally: SkipTally,
        records: list[Any],
        next_offsets: tuple[int, int] | None,
        processed_bytes: int,
        total_bytes: int | None,
        total_rows: int | None,
    ) -> ChunkResult:
        outcome = self._writer.write(records)

        next_cursor: IngestCursor | None = None
        if next_offsets is not None:
            next_cursor = cursor.advance(
                byte_offset=next_offsets[0],
                row_offset=next_offsets[1],
                mapping=mapping,
            )

        result = ChunkResult(
            state=IngestState.STREAMING if next_cursor is not None else IngestState.DONE,
            parsed=parsed,
            inserted=outcome.written,
            updated=outcome.updated,
            skipped=tally.count,
            errored=outcome.errored,
            has_more=next_cursor is not None,
            next_cursor=next_cursor,
            skipped_reason_counts=dict(tally.reason_counts),
            skipped_samples=tally.samples,
            processed_bytes=processed_bytes,
            total_bytes=total_bytes,
            total_rows=total_rows,
        )
        log_event(
            logger,
            logging.INFO,
            "chunk_processed",
            dataset=mapping.dataset,
            policy=self._writer.policy,
            previous_state=cursor.state,
            state=result.state,
            parsed=result.parsed,
            inserted=result.inserted,
            updated=result.updated,
            skipped=result.skipped,
            errored=result.errored,
            failed_batches=outcome.failed_batches,
            has_more=result.has_more,
            progress_percent=result.progress_percent,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )
        return result
