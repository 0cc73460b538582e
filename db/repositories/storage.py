"""
Storage backend for uploaded import source files.

Each upload is one opaque blob under ``<namespace>/<job-uuid>/<file name>``.
Blobs are read back in byte ranges so a large source never has to be held in
memory by a single chunk invocation.
"""

from __future__ import annotations

import hashlib
import io
import uuid
from datetime import datetime, timezone
from mimetypes import guess_type
from pathlib import Path
from typing import BinaryIO, Protocol

from db.repositories.errors import FileStorageError, SourceNotFoundError
from db.repositories.types import StoredFileMetadata

COPY_BUFFER_BYTES = 1024 * 1024


class SourceStorageBackend(Protocol):
    """
    Abstract storage backend used by the import flows.
    """

    def save(
        self,
        *,
        file_name: str,
        content: bytes,
        content_type: str | None = None,
        job_id: uuid.UUID | None = None,
    ) -> StoredFileMetadata:
        ...

    def size(self, *, storage_path: str) -> int:
        ...

    def read_range(self, *, storage_path: str, start: int, length: int) -> bytes:
        ...

    def read_bytes(self, *, storage_path: str) -> bytes:
        ...

    def delete(self, *, storage_path: str) -> None:
        ...


def _sanitize_file_name(file_name: str) -> str:
    safe_name = Path(file_name).name.strip()
    if not safe_name:
        raise FileStorageError("Invalid file name.")
    return safe_name


class LocalFileStorage:
    """
    Filesystem storage rooted at ``root_dir``. Writes go through a ``.tmp``
    sibling and are renamed into place, so a partial upload is never visible.
    """

    def __init__(self, root_dir: str | Path = "data/imports", *, namespace: str = "lca-imports") -> None:
        self._root_dir = Path(root_dir)
        self._namespace = namespace.strip("/") or "lca-imports"

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def save(
        self,
        *,
        file_name: str,
        content: bytes,
        content_type: str | None = None,
        job_id: uuid.UUID | None = None,
    ) -> StoredFileMetadata:
        return self.save_stream(
            file_name=file_name,
            source=io.BytesIO(content),
            content_type=content_type,
            job_id=job_id,
        )

    def save_stream(
        self,
        *,
        file_name: str,
        source: BinaryIO,
        content_type: str | None = None,
        job_id: uuid.UUID | None = None,
    ) -> StoredFileMetadata:
        """
        Copy a file-like object into storage without loading it whole.
        """

        safe_file_name = _sanitize_file_name(file_name)
        relative_path, absolute_path = self._allocate(safe_file_name, job_id)

        digest = hashlib.sha256()
        size = 0
        tmp_path = absolute_path.with_suffix(f"{absolute_path.suffix}.tmp")
        try:
            with tmp_path.open("wb") as handle:
                while True:
                    block = source.read(COPY_BUFFER_BYTES)
                    if not block:
                        break
                    digest.update(block)
                    size += len(block)
                    handle.write(block)
            tmp_path.replace(absolute_path)
        except OSError as exc:
            raise FileStorageError("Failed to write uploaded file to storage.") from exc
        finally:
            self._discard(tmp_path)

        return self._metadata(
            file_name=safe_file_name,
            relative_path=relative_path,
            size=size,
            checksum=digest.hexdigest(),
            content_type=content_type,
        )

    def size(self, *, storage_path: str) -> int:
        target = self._resolve(storage_path)
        try:
            return target.stat().st_size
        except FileNotFoundError as exc:
            raise SourceNotFoundError(f"Stored source not found: {storage_path}") from exc
        except OSError as exc:
            raise FileStorageError("Failed to stat stored source.") from exc

    def read_range(self, *, storage_path: str, start: int, length: int) -> bytes:
        """
        Read up to ``length`` bytes starting at ``start``.
        """

        if start < 0 or length < 0:
            raise FileStorageError("Byte range must be non-negative.")
        target = self._resolve(storage_path)
        try:
            with target.open("rb") as handle:
                handle.seek(start)
                return handle.read(length)
        except FileNotFoundError as exc:
            raise SourceNotFoundError(f"Stored source not found: {storage_path}") from exc
        except OSError as exc:
            raise FileStorageError("Failed to read stored source.") from exc

    def read_bytes(self, *, storage_path: str) -> bytes:
        target = self._resolve(storage_path)
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise SourceNotFoundError(f"Stored source not found: {storage_path}") from exc
        except OSError as exc:
            raise FileStorageError("Failed to read stored source.") from exc

    def delete(self, *, storage_path: str) -> None:
        target = self._resolve(storage_path)
        if not target.exists():
            return
        try:
            target.unlink()
            parent = target.parent
            if parent != self._root_dir and not any(parent.iterdir()):
                parent.rmdir()
        except OSError as exc:
            raise FileStorageError("Failed to delete uploaded file from storage.") from exc

    def _allocate(self, safe_file_name: str, job_id: uuid.UUID | None) -> tuple[Path, Path]:
        relative_path = Path(self._namespace) / str(job_id or uuid.uuid4()) / safe_file_name
        absolute_path = self._root_dir / relative_path
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FileStorageError("Failed to prepare storage directory.") from exc
        return relative_path, absolute_path

    def _resolve(self, storage_path: str) -> Path:
        root = self._root_dir.resolve()
        target = (self._root_dir / Path(storage_path)).resolve()
        if root not in target.parents:
            raise FileStorageError("Storage path escapes the storage root.")
        return target

    def _metadata(
        self,
        *,
        file_name: str,
        relative_path: Path,
        size: int,
        checksum: str,
        content_type: str | None,
    ) -> StoredFileMetadata:
        return StoredFileMetadata(
            file_name=file_name,
            storage_path=relative_path.as_posix(),
            mime_type=content_type or guess_type(file_name)[0],
            file_size_bytes=size,
            checksum=checksum,
            stored_at=datetime.now(timezone.utc),
        )

    @staticmethod
    def _discard(path: Path) -> None:
        if path.exists():
            try:
                path.unlink()
            except OSError:
                pass


def copy_local_file(storage: LocalFileStorage, *, path: str | Path, job_id: uuid.UUID | None = None) -> StoredFileMetadata:
    """
    Store a file already on local disk, e.g. for the CLI import loop.
    """

    source_path = Path(path)
    try:
        with source_path.open("rb") as handle:
            return storage.save_stream(file_name=source_path.name, source=handle, job_id=job_id)
    except FileNotFoundError as exc:
        raise SourceNotFoundError(f"Local source not found: {source_path}") from exc
