"""
app/archive package marker.
"""

from app.archive.extractor import ArchiveExtractionError, ArchiveExtractor, ExtractedArchive, ExtractedEntry
from app.archive.fetcher import ArchiveFetcher, FetchedArchive, infer_wage_year

__all__ = [
    "ArchiveExtractionError",
    "ArchiveExtractor",
    "ArchiveFetcher",
    "ExtractedArchive",
    "ExtractedEntry",
    "FetchedArchive",
    "infer_wage_year",
]
