"""
app/services/disclosure_import_service.py

One ingest invocation over an uploaded LCA disclosure CSV.
"""

from __future__ import annotations

import logging
from functools import partial

from sqlalchemy.orm import Session

from app.config import IngestionSettings
from app.domain.ingestion import ChunkResult, IngestCursor, WritePolicy
from app.errors import ConfigurationError, SourceError
from app.mappers.column_synonyms import DISCLOSURE_SYNONYMS
from app.mappers.schema_mapper import SchemaReconciler
from app.repositories.batch_writer import BatchWriter
from app.services.chunk_driver import ChunkDriver
from app.validators.record_validator import RecordValidator
from db.models.lca_disclosure import LcaDisclosure
from db.repositories.errors import FileStorageError, SourceNotFoundError
from db.repositories.storage import SourceStorageBackend

logger = logging.getLogger(__name__)

DISCLOSURE_NATURAL_KEY = ("case_number",)


class DisclosureImportService:
    """
    Upserts one byte window of a disclosure file keyed by case number.
    """

    def __init__(
        self,
        *,
        session: Session,
        storage: SourceStorageBackend,
        settings: IngestionSettings,
        reconciler: SchemaReconciler | None = None,
        validator: RecordValidator | None = None,
    ) -> None:
        self._session = session
        self._storage = storage
        self._settings = settings
        self._reconciler = reconciler or SchemaReconciler(DISCLOSURE_SYNONYMS)
        self._validator = validator or RecordValidator()

    def import_chunk(
        self,
        *,
        source_ref: str,
        dataset_year: str | None = None,
        cursor: IngestCursor | None = None,
    ) -> ChunkResult:
        if not source_ref or not source_ref.strip():
            raise ConfigurationError("source_ref is required.")

        writer = BatchWriter(
            self._session,
            LcaDisclosure,
            policy=WritePolicy.UPSERT,
            natural_key=DISCLOSURE_NATURAL_KEY,
            batch_size=self._settings.batch_size,
        )
        driver = ChunkDriver(reconciler=self._reconciler, writer=writer, settings=self._settings)

        try:
            result = driver.process_byte_window(
                source=self._storage,
                storage_path=source_ref,
                cursor=cursor,
                build_record=partial(self._validator.build_disclosure, fiscal_year=dataset_year),
            )
        except SourceNotFoundError as exc:
            raise ConfigurationError(str(exc), context={"source_ref": source_ref}) from exc
        except FileStorageError as exc:
            raise SourceError(str(exc), context={"source_ref": source_ref}) from exc

        if self._session.in_transaction():
            self._session.commit()

        logger.info(
            "Disclosure chunk imported source_ref=%s dataset_year=%s parsed=%s inserted=%s skipped=%s errored=%s has_more=%s",
            source_ref,
            dataset_year,
            result.parsed,
            result.inserted,
            result.skipped,
            result.errored,
            result.has_more,
        )
        return result
