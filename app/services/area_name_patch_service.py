"""
app/services/area_name_patch_service.py

Backfills area names on already imported wage rows from a published archive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.archive.extractor import ArchiveExtractor
from app.archive.fetcher import ArchiveFetcher
from app.errors import ConfigurationError, SourceError
from app.mappers.column_synonyms import WAGE_SYNONYMS
from app.mappers.schema_mapper import SchemaReconciler
from app.parsing.coercers import parse_string
from app.parsing.tokenizer import iter_rows
from app.services.wage_import_service import load_area_names
from app.validators.mapping_validator import SchemaMappingError
from db.models.prevailing_wage import PrevailingWage

logger = logging.getLogger(__name__)

LABEL_SAMPLE_ROWS = 10_000
UPDATE_BATCH_SIZE = 100


@dataclass(frozen=True)
class AreaNamePatchResult:
    wage_year: str
    updated_count: int
    area_codes_seen: int


def load_label_names(text: str, *, limit: int = LABEL_SAMPLE_ROWS) -> dict[str, str]:
    """
    Collect area names from the wage file's label column.

    Area codes repeat on every occupation row, so the first ``limit`` rows
    are enough to see them all.
    """

    rows = iter_rows(text)
    header = next(rows, None)
    if header is None:
        return {}
    try:
        mapping = SchemaReconciler(WAGE_SYNONYMS).resolve(header[1])
    except SchemaMappingError as exc:
        logger.warning("Wage header not recognized for labels error=%s", exc.message)
        return {}
    if mapping.index_of("label") is None:
        return {}

    names: dict[str, str] = {}
    for count, (_, cells) in enumerate(rows):
        if count >= limit:
            break
        code = parse_string(mapping.cell(cells, "area_code"))
        name = parse_string(mapping.cell(cells, "label"))
        if code and name:
            names[code] = name
    return names


class AreaNamePatchService:
    """
    Updates ``area_name`` per area code for one wage year.

    Names from the geography entry take precedence over the wage file's
    label column.
    """

    def __init__(
        self,
        *,
        session: Session,
        fetcher: ArchiveFetcher,
        extractor: ArchiveExtractor | None = None,
    ) -> None:
        self._session = session
        self._fetcher = fetcher
        self._extractor = extractor or ArchiveExtractor()

    def patch(self, *, archive_url: str, dataset_year: str | None = None) -> AreaNamePatchResult:
        if not archive_url or not archive_url.strip():
            raise ConfigurationError("archive_url is required.")

        fetched = self._fetcher.fetch(archive_url)
        wage_year = (dataset_year or "").strip() or fetched.wage_year
        if not wage_year:
            raise ConfigurationError(
                "dataset_year is required and could not be inferred from the archive URL.",
                context={"archive_url": archive_url},
            )

        archive = self._extractor.extract(fetched.content)
        names = load_label_names(archive.data.text)
        if archive.geography is not None:
            names.update(load_area_names(archive.geography.text))
        if not names:
            raise SourceError(
                "Could not load any area name mappings from the archive.",
                context={"archive_url": archive_url, "entries": list(archive.entry_names)},
            )

        updated = self._apply(wage_year=wage_year, names=names)
        logger.info(
            "Area names patched wage_year=%s area_codes=%s updated_rows=%s",
            wage_year,
            len(names),
            updated,
        )
        return AreaNamePatchResult(wage_year=wage_year, updated_count=updated, area_codes_seen=len(names))

    def _apply(self, *, wage_year: str, names: dict[str, str]) -> int:
        updated = 0
        items = sorted(names.items())
        for start in range(0, len(items), UPDATE_BATCH_SIZE):
            batch = items[start : start + UPDATE_BATCH_SIZE]
            batch_updated = 0
            try:
                with self._transaction_context():
                    for area_code, area_name in batch:
                        result = self._session.execute(
                            update(PrevailingWage)
                            .where(PrevailingWage.wage_year == wage_year)
                            .where(PrevailingWage.area_code == area_code)
                            .values(area_name=area_name)
                        )
                        batch_updated += result.rowcount or 0
            except SQLAlchemyError as exc:
                logger.warning(
                    "Area name batch failed wage_year=%s batch_start=%s error=%s",
                    wage_year,
                    start,
                    exc,
                )
                continue
            updated += batch_updated
        if self._session.in_transaction():
            self._session.commit()
        return updated

    def _transaction_context(self):
        if self._session.in_transaction():
            return self._session.begin_nested()
        return self._session.begin()
