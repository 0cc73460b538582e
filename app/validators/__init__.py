"""
app/validators package marker.
"""

from app.validators.mapping_validator import MappingErrorDetail, MappingValidator, SchemaMappingError
from app.validators.record_validator import RecordValidator

__all__ = [
    "MappingErrorDetail",
    "MappingValidator",
    "RecordValidator",
    "SchemaMappingError",
]
