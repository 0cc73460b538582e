"""
Repository-layer exceptions for import source storage and job state.
"""

from __future__ import annotations


class ImportRepositoryError(Exception):
    """Base exception for import repository failures."""


class FileStorageError(ImportRepositoryError):
    """Raised when storing, reading or deleting source files fails."""


class SourceNotFoundError(FileStorageError):
    """Raised when a referenced source file does not exist in storage."""


class IngestionJobNotFoundError(ImportRepositoryError):
    """Raised when a referenced ingestion job does not exist."""
