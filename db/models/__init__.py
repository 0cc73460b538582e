"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.ingestion_job import IngestionJob, IngestionJobStatus
from db.models.lca_disclosure import LcaDisclosure
from db.models.prevailing_wage import PrevailingWage

__all__ = [
    "IngestionJob",
    "IngestionJobStatus",
    "LcaDisclosure",
    "PrevailingWage",
]
