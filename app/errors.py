"""
app/errors.py

Exception taxonomy for the ingestion pipeline.

Row-level problems are never raised; they are counted and sampled as skipped
rows. Batch write failures are caught by the writer and counted as errored.
Only the two families below escape a chunk invocation.
"""

from __future__ import annotations

from typing import Any


class IngestionError(Exception):
    """Base exception for ingestion failures surfaced to the caller."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "context": self.context}


class SourceError(IngestionError):
    """Raised when a source file cannot be downloaded, read or decompressed."""


class ConfigurationError(IngestionError):
    """Raised when a job is requested with missing or disallowed parameters."""


class DisallowedHostError(ConfigurationError):
    """Raised when an archive URL does not resolve to an allow-listed host."""
