"""
app/config.py

Settings for chunked ingestion, source storage and archive downloads.

Every getter is cached; call ``cache_clear()`` on it after changing the
environment in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from db.config import env_value, load_env_files, parse_bool, parse_csv

DEFAULT_ARCHIVE_ALLOWED_HOSTS: tuple[str, ...] = (
    "flag.dol.gov",
    "www.dol.gov",
    "www.flcdatacenter.com",
    "flcdatacenter.com",
)


@dataclass(frozen=True)
class IngestionSettings:
    """
    Runtime settings for chunked ingestion.

    ``chunk_bytes`` and ``chunk_rows`` bound one window of work;
    ``max_row_bytes`` caps how far a window may widen to finish one row.
    """

    batch_size: int = 500
    chunk_bytes: int = 2 * 1024 * 1024
    chunk_rows: int = 5000
    max_row_bytes: int = 8 * 1024 * 1024
    max_skipped_samples: int = 100
    log_skipped_rows: bool = False


@dataclass(frozen=True)
class StorageSettings:
    root_dir: str = "data/imports"
    namespace: str = "lca-imports"


@dataclass(frozen=True)
class ArchiveSettings:
    """
    Outbound archive download settings. Only ``allowed_hosts`` may be fetched.
    """

    allowed_hosts: tuple[str, ...] = DEFAULT_ARCHIVE_ALLOWED_HOSTS
    timeout_seconds: float = 60.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    max_archive_bytes: int = 512 * 1024 * 1024


@lru_cache(maxsize=1)
def get_ingestion_settings() -> IngestionSettings:
    load_env_files()
    defaults = IngestionSettings()
    chunk_bytes = max(1024, env_value("INGEST_CHUNK_BYTES", int, defaults.chunk_bytes))
    return IngestionSettings(
        batch_size=max(1, env_value("INGEST_BATCH_SIZE", int, defaults.batch_size)),
        chunk_bytes=chunk_bytes,
        chunk_rows=max(1, env_value("INGEST_CHUNK_ROWS", int, defaults.chunk_rows)),
        max_row_bytes=max(chunk_bytes, env_value("INGEST_MAX_ROW_BYTES", int, defaults.max_row_bytes)),
        max_skipped_samples=max(0, env_value("INGEST_MAX_SKIPPED_SAMPLES", int, defaults.max_skipped_samples)),
        log_skipped_rows=env_value("INGEST_LOG_SKIPPED_ROWS", parse_bool, defaults.log_skipped_rows),
    )


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    load_env_files()
    defaults = StorageSettings()
    return StorageSettings(
        root_dir=env_value("IMPORT_STORAGE_ROOT", str, defaults.root_dir),
        namespace=env_value("IMPORT_STORAGE_NAMESPACE", str, defaults.namespace),
    )


@lru_cache(maxsize=1)
def get_archive_settings() -> ArchiveSettings:
    load_env_files()
    defaults = ArchiveSettings()
    return ArchiveSettings(
        allowed_hosts=env_value("ARCHIVE_ALLOWED_HOSTS", parse_csv, defaults.allowed_hosts),
        timeout_seconds=max(1.0, env_value("ARCHIVE_HTTP_TIMEOUT_SECONDS", float, defaults.timeout_seconds)),
        max_retries=max(0, env_value("ARCHIVE_HTTP_MAX_RETRIES", int, defaults.max_retries)),
        backoff_initial_seconds=max(
            0.1, env_value("ARCHIVE_HTTP_BACKOFF_INITIAL_SECONDS", float, defaults.backoff_initial_seconds)
        ),
        backoff_multiplier=max(1.0, env_value("ARCHIVE_HTTP_BACKOFF_MULTIPLIER", float, defaults.backoff_multiplier)),
        max_archive_bytes=max(1, env_value("ARCHIVE_MAX_BYTES", int, defaults.max_archive_bytes)),
    )
