"""
Typed DTOs used by repository storage flows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class StoredFileMetadata:
    """
    Metadata produced by the storage backend after saving a source file.
    """

    file_name: str
    storage_path: str
    mime_type: str | None
    file_size_bytes: int
    checksum: str
    stored_at: datetime

    @property
    def is_archive(self) -> bool:
        return self.file_name.lower().endswith(".zip")

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "storage_path": self.storage_path,
            "mime_type": self.mime_type,
            "file_size_bytes": self.file_size_bytes,
            "checksum": self.checksum,
            "stored_at": self.stored_at.isoformat(),
        }
