"""
app/archive/extractor.py

ZIP archive inspection for published wage tables.

Archives usually bundle the wage table with a geography lookup and a few
documentation files; entries are picked by file-name heuristics.
"""

from __future__ import annotations

import io
import logging
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Sequence

from app.errors import SourceError

logger = logging.getLogger(__name__)

CSV_SUFFIX = ".csv"
GEOGRAPHY_KEYWORD = "geography"
DATA_KEYWORDS: tuple[str, ...] = ("wage", "oews", "alc")


class ArchiveExtractionError(SourceError):
    """
    Raised when an archive cannot be opened or holds no usable CSV entry.
    """


@dataclass(frozen=True)
class ExtractedEntry:
    name: str
    text: str
    compressed_size: int
    uncompressed_size: int


@dataclass(frozen=True)
class ExtractedArchive:
    """
    Fully decoded entries selected from one archive.
    """

    data: ExtractedEntry
    geography: ExtractedEntry | None
    entry_names: tuple[str, ...]


def entry_base_name(info: zipfile.ZipInfo) -> str:
    """
    Lower-cased file name of an entry without its folder.

    Published archives nest every file under a folder such as
    ``OFLC_Wages_2024-25/``, so keywords must not be matched on the path.
    """

    return PurePosixPath(info.filename).name.lower()


def decode_entry(payload: bytes) -> str:
    """
    Decode entry bytes as UTF-8 (BOM tolerated), falling back to latin-1.
    """

    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError:
        return payload.decode("latin-1")


class ArchiveExtractor:
    """
    Selects and decodes the data and geography entries of a ZIP blob.
    """

    def __init__(self, *, data_keywords: Sequence[str] = DATA_KEYWORDS) -> None:
        self._data_keywords = tuple(keyword.lower() for keyword in data_keywords)

    def extract(self, content: bytes) -> ExtractedArchive:
        try:
            archive = zipfile.ZipFile(io.BytesIO(content))
        except (zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
            raise ArchiveExtractionError(
                "Source is not a readable ZIP archive.",
                context={"size_bytes": len(content)},
            ) from exc

        with archive:
            infos = [info for info in archive.infolist() if not info.is_dir()]
            names = tuple(info.filename for info in infos)

            data_info = self.select_data_entry(infos)
            if data_info is None:
                raise ArchiveExtractionError(
                    f"No CSV entry found in archive. Entries present: {', '.join(names) or 'none'}.",
                    context={"entries": list(names), "size_bytes": len(content)},
                )
            geography_info = self.select_geography_entry(infos)

            data = self._read(archive, data_info)
            geography = self._read(archive, geography_info) if geography_info is not None else None

        logger.info(
            "Archive extracted data_entry=%s geography_entry=%s entries=%s data_bytes=%s",
            data.name,
            geography.name if geography is not None else None,
            len(names),
            data.uncompressed_size,
        )
        return ExtractedArchive(data=data, geography=geography, entry_names=names)

    def select_data_entry(self, infos: Sequence[zipfile.ZipInfo]) -> zipfile.ZipInfo | None:
        """
        Prefer a CSV whose name carries a data keyword; else the first CSV.
        """

        all_csv = [info for info in infos if entry_base_name(info).endswith(CSV_SUFFIX)]
        csv_infos = [info for info in all_csv if GEOGRAPHY_KEYWORD not in entry_base_name(info)]
        for info in csv_infos:
            if any(keyword in entry_base_name(info) for keyword in self._data_keywords):
                return info
        if csv_infos:
            return csv_infos[0]

        # An archive holding only a geography CSV still has a CSV to read.
        return all_csv[0] if all_csv else None

    def select_geography_entry(self, infos: Sequence[zipfile.ZipInfo]) -> zipfile.ZipInfo | None:
        for info in infos:
            if GEOGRAPHY_KEYWORD in entry_base_name(info):
                return info
        return None

    def _read(self, archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> ExtractedEntry:
        try:
            payload = archive.read(info)
        except (zipfile.BadZipFile, zlib.error, EOFError, OSError, RuntimeError) as exc:
            raise ArchiveExtractionError(
                f"Failed to decompress archive entry {info.filename}.",
                context={
                    "entry": info.filename,
                    "compressed_size": info.compress_size,
                    "uncompressed_size": info.file_size,
                },
            ) from exc
        return ExtractedEntry(
            name=info.filename,
            text=decode_entry(payload),
            compressed_size=info.compress_size,
            uncompressed_size=info.file_size,
        )
