"""
app/services package marker.
"""

from app.services.archive_cache import ArchiveCache, MaterializedSource
from app.services.area_name_patch_service import AreaNamePatchResult, AreaNamePatchService
from app.services.chunk_driver import ChunkDriver
from app.services.disclosure_import_service import DisclosureImportService
from app.services.import_job_runner import ImportJobRunner
from app.services.progress_reporter import ProgressReporter, SkipTally
from app.services.wage_import_service import WageImportService

__all__ = [
    "ArchiveCache",
    "AreaNamePatchResult",
    "AreaNamePatchService",
    "ChunkDriver",
    "DisclosureImportService",
    "ImportJobRunner",
    "MaterializedSource",
    "ProgressReporter",
    "SkipTally",
    "WageImportService",
]
