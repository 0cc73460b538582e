"""
app/validators/mapping_validator.py

Checks a resolved header mapping before any row is read.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Sequence

from app.errors import ConfigurationError

INVALID_CANONICAL_FIELD = "invalid_canonical_field"
UNKNOWN_SOURCE_COLUMN = "unknown_source_column"
REQUIRED_FIELD_UNMAPPED = "required_field_unmapped"


@dataclass(frozen=True)
class MappingErrorDetail:
    code: str
    message: str
    canonical_field: str | None = None
    source_column: str | None = None
    context: dict[str, Any] | None = None


class SchemaMappingError(ConfigurationError):
    """
    A header row that cannot drive an import; carries every problem found.
    """

    def __init__(self, *, message: str, errors: Sequence[MappingErrorDetail]) -> None:
        super().__init__(message)
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "errors": [asdict(error) for error in self.errors]}


class MappingValidator:
    """
    Validates ``canonical field -> column index`` mappings for one dataset.
    """

    def __init__(
        self,
        *,
        required_fields: Sequence[str],
        canonical_fields: Sequence[str],
    ) -> None:
        self._required = tuple(required_fields)
        self._known = frozenset(canonical_fields)

    def validate(
        self,
        *,
        indices: Mapping[str, int],
        source_headers: Sequence[str],
        pre_errors: Sequence[MappingErrorDetail] | None = None,
    ) -> None:
        problems = list(pre_errors or [])
        problems.extend(self._index_problems(indices, len(source_headers)))

        unmapped = [name for name in self._required if name not in indices]
        problems.extend(
            MappingErrorDetail(
                code=REQUIRED_FIELD_UNMAPPED,
                message=f"No header matches required column {name}.",
                canonical_field=name,
                context={"source_headers": list(source_headers)},
            )
            for name in unmapped
        )

        if problems:
            summary = ", ".join(unmapped) or "none"
            raise SchemaMappingError(
                message=f"Header row cannot be mapped. Missing required columns: {summary}.",
                errors=problems,
            )

    def _index_problems(self, indices: Mapping[str, int], header_count: int) -> list[MappingErrorDetail]:
        problems: list[MappingErrorDetail] = []
        for name, index in indices.items():
            if name not in self._known:
                problems.append(
                    MappingErrorDetail(
                        code=INVALID_CANONICAL_FIELD,
                        message=f"{name} is not a column of this dataset.",
                        canonical_field=name,
                    )
                )
            if not 0 <= index < header_count:
                problems.append(
                    MappingErrorDetail(
                        code=UNKNOWN_SOURCE_COLUMN,
                        message=f"Column index {index} is outside the header row.",
                        canonical_field=name,
                        context={"index": index, "header_count": header_count},
                    )
                )
        return problems
