"""
app/mappers package marker.
"""

from app.mappers.column_synonyms import (
    DISCLOSURE_SYNONYMS,
    GEOGRAPHY_SYNONYMS,
    WAGE_SYNONYMS,
    SynonymTable,
)
from app.mappers.schema_mapper import SchemaReconciler, normalize_header

__all__ = [
    "DISCLOSURE_SYNONYMS",
    "GEOGRAPHY_SYNONYMS",
    "SchemaReconciler",
    "SynonymTable",
    "WAGE_SYNONYMS",
    "normalize_header",
]
