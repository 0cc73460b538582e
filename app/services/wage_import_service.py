"""
app/services/wage_import_service.py

One ingest invocation over an uploaded prevailing-wage source.

Wage tables arrive as ZIP archives bundling the wage CSV with a geography
lookup. The archive is extracted once per job into the archive cache; each
invocation then processes one row window of the decoded wage CSV. Wage rows
have no unique key: a year is replaced by deleting it on the first window
and appending every window after that.
"""

from __future__ import annotations

import logging
from functools import partial
from pathlib import PurePosixPath

from sqlalchemy.orm import Session

from app.archive.extractor import ArchiveExtractor, decode_entry
from app.archive.fetcher import infer_wage_year
from app.config import IngestionSettings
from app.domain.ingestion import ChunkResult, IngestCursor, WritePolicy
from app.errors import ConfigurationError, SourceError
from app.mappers.column_synonyms import GEOGRAPHY_SYNONYMS, WAGE_SYNONYMS
from app.mappers.schema_mapper import SchemaReconciler
from app.parsing.tokenizer import iter_rows, number_lines
from app.repositories.batch_writer import BatchWriter
from app.services.archive_cache import ArchiveCache, MaterializedSource
from app.services.chunk_driver import ChunkDriver
from app.validators.mapping_validator import SchemaMappingError
from app.validators.record_validator import RecordValidator
from db.models.prevailing_wage import PrevailingWage
from db.repositories.errors import FileStorageError, SourceNotFoundError
from db.repositories.storage import SourceStorageBackend

logger = logging.getLogger(__name__)


def load_area_names(
    text: str,
    *,
    reconciler: SchemaReconciler | None = None,
    validator: RecordValidator | None = None,
) -> dict[str, str]:
    """
    Build an area code -> name lookup from a geography CSV.

    An unrecognized geography header yields an empty lookup; callers fall
    back to the wage file's own label column.
    """

    rows = iter_rows(text)
    header = next(rows, None)
    if header is None:
        return {}
    reconciler = reconciler or SchemaReconciler(GEOGRAPHY_SYNONYMS)
    try:
        mapping = reconciler.resolve(header[1])
    except SchemaMappingError as exc:
        logger.warning("Geography header not recognized headers=%s error=%s", header[1], exc.message)
        return {}
    return (validator or RecordValidator()).build_area_names(
        rows=[cells for _, cells in rows],
        mapping=mapping,
    )


class WageImportService:
    """
    Appends one row window of a wage table for a wage year.
    """

    def __init__(
        self,
        *,
        session: Session,
        storage: SourceStorageBackend,
        cache: ArchiveCache,
        settings: IngestionSettings,
        extractor: ArchiveExtractor | None = None,
        reconciler: SchemaReconciler | None = None,
        validator: RecordValidator | None = None,
    ) -> None:
        self._session = session
        self._storage = storage
        self._cache = cache
        self._settings = settings
        self._extractor = extractor or ArchiveExtractor()
        self._reconciler = reconciler or SchemaReconciler(WAGE_SYNONYMS)
        self._validator = validator or RecordValidator()

    def import_chunk(
        self,
        *,
        source_ref: str,
        wage_year: str | None = None,
        cursor: IngestCursor | None = None,
        replace_existing: bool = True,
    ) -> ChunkResult:
        if not source_ref or not source_ref.strip():
            raise ConfigurationError("source_ref is required.")
        resolved_year = (wage_year or "").strip() or infer_wage_year(PurePosixPath(source_ref).name)
        if not resolved_year:
            raise ConfigurationError(
                "wage_year is required and could not be inferred from the source name.",
                context={"source_ref": source_ref},
            )

        cursor = cursor or IngestCursor()
        source = self._cache.get_or_load(source_ref, partial(self._materialize, source_ref))
        if not source.lines:
            self._cache.invalidate(source_ref)
            raise SourceError("Wage source contains no lines.", context={"source_ref": source_ref})
        if cursor.mapping is None or not self._reconciler.is_compatible(cursor.mapping):
            # Header problems must surface before the year is cleared.
            cursor = cursor.advance(mapping=self._reconciler.resolve_line(source.lines[0][1]))

        writer = BatchWriter(
            self._session,
            PrevailingWage,
            policy=WritePolicy.APPEND,
            natural_key=(),
            batch_size=self._settings.batch_size,
        )
        if replace_existing and cursor.row_offset == 0:
            deleted = writer.delete_matching(wage_year=resolved_year)
            logger.info("Wage year cleared wage_year=%s deleted=%s", resolved_year, deleted)

        driver = ChunkDriver(reconciler=self._reconciler, writer=writer, settings=self._settings)
        result = driver.process_row_window(
            lines=source.lines,
            cursor=cursor,
            build_record=partial(
                self._validator.build_wage,
                wage_year=resolved_year,
                area_names=source.area_names,
            ),
        )

        if self._session.in_transaction():
            self._session.commit()
        if not result.has_more:
            self._cache.invalidate(source_ref)

        logger.info(
            "Wage chunk imported source_ref=%s wage_year=%s parsed=%s inserted=%s skipped=%s errored=%s has_more=%s",
            source_ref,
            resolved_year,
            result.parsed,
            result.inserted,
            result.skipped,
            result.errored,
            result.has_more,
        )
        return result

    def _materialize(self, source_ref: str) -> MaterializedSource:
        try:
            content = self._storage.read_bytes(storage_path=source_ref)
        except SourceNotFoundError as exc:
            raise ConfigurationError(str(exc), context={"source_ref": source_ref}) from exc
        except FileStorageError as exc:
            raise SourceError(str(exc), context={"source_ref": source_ref}) from exc

        if not source_ref.lower().endswith(".zip"):
            return MaterializedSource(
                source_ref=source_ref,
                lines=tuple(number_lines(decode_entry(content))),
                data_entry=PurePosixPath(source_ref).name,
            )

        archive = self._extractor.extract(content)
        area_names: dict[str, str] = {}
        if archive.geography is not None:
            area_names = load_area_names(archive.geography.text, validator=self._validator)
        return MaterializedSource(
            source_ref=source_ref,
            lines=tuple(number_lines(archive.data.text)),
            area_names=area_names,
            data_entry=archive.data.name,
            geography_entry=archive.geography.name if archive.geography is not None else None,
        )
