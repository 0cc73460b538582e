"""
Repository layer exports.
"""

from db.repositories.errors import (
    FileStorageError,
    ImportRepositoryError,
    IngestionJobNotFoundError,
    SourceNotFoundError,
)
from db.repositories.ingestion_job_repository import IngestionJobRepository
from db.repositories.storage import LocalFileStorage, SourceStorageBackend, copy_local_file
from db.repositories.types import StoredFileMetadata

__all__ = [
    "FileStorageError",
    "ImportRepositoryError",
    "IngestionJobNotFoundError",
    "IngestionJobRepository",
    "LocalFileStorage",
    "SourceNotFoundError",
    "SourceStorageBackend",
    "StoredFileMetadata",
    "copy_local_file",
]
