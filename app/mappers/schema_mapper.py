"""
app/mappers/schema_mapper.py

Header reconciliation: maps an arbitrary export header row onto a fixed
canonical column set using a versioned synonym table.
"""

from __future__ import annotations

import re
from typing import Sequence

from app.domain.ingestion import ColumnMapping
from app.mappers.column_synonyms import SynonymTable
from app.parsing.tokenizer import parse_csv_line
from app.validators.mapping_validator import MappingErrorDetail, MappingValidator, SchemaMappingError

_WHITESPACE = re.compile(r"\s+")


def normalize_header(header: str) -> str:
    """
    Lower-case a header and collapse whitespace runs to underscores.
    """

    return _WHITESPACE.sub("_", header.strip().lower())


class SchemaReconciler:
    """
    Resolves raw header rows into column mappings for one dataset.
    """

    def __init__(
        self,
        synonyms: SynonymTable,
        *,
        validator: MappingValidator | None = None,
    ) -> None:
        self._synonyms = synonyms
        self._validator = validator or MappingValidator(
            required_fields=synonyms.required_columns,
            canonical_fields=synonyms.canonical_fields,
        )

    @property
    def synonyms(self) -> SynonymTable:
        return self._synonyms

    def resolve(self, headers: Sequence[str]) -> ColumnMapping:
        """
        Map each canonical field to the first header matching one of its
        variants. Unmatched fields are left out of the mapping.
        """

        normalized = tuple(normalize_header(header) for header in headers)
        if not any(normalized):
            raise SchemaMappingError(
                message="CSV headers are empty; cannot resolve schema mapping.",
                errors=[
                    MappingErrorDetail(
                        code="empty_headers",
                        message="No CSV headers were provided.",
                    )
                ],
            )

        indices: dict[str, int] = {}
        for index, header in enumerate(normalized):
            canonical = self._synonyms.variants.get(header)
            if canonical is not None and canonical not in indices:
                indices[canonical] = index

        self._validator.validate(indices=indices, source_headers=normalized)

        return ColumnMapping(
            dataset=self._synonyms.dataset,
            version=self._synonyms.version,
            indices=indices,
            headers=normalized,
        )

    def resolve_line(self, header_line: str) -> ColumnMapping:
        return self.resolve(parse_csv_line(header_line))

    def is_compatible(self, mapping: ColumnMapping) -> bool:
        """
        True when a cached mapping was built from this synonym table.
        """

        return mapping.dataset == self._synonyms.dataset and mapping.version == self._synonyms.version
