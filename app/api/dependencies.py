"""
app/api/dependencies.py

Shared FastAPI dependencies for import endpoints.
"""

from __future__ import annotations

from fastapi import Depends, File, HTTPException, Request, UploadFile, status
from sqlalchemy.orm import Session

from app.archive.fetcher import ArchiveFetcher
from app.config import get_archive_settings, get_ingestion_settings, get_storage_settings
from app.services.archive_cache import ArchiveCache
from app.services.area_name_patch_service import AreaNamePatchService
from app.services.disclosure_import_service import DisclosureImportService
from app.services.wage_import_service import WageImportService
from db.repositories.storage import LocalFileStorage
from db.session import get_db

SOURCE_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
    "application/zip",
    "application/x-zip-compressed",
}
SOURCE_SUFFIXES = (".csv", ".zip")


def get_source_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV or ZIP by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    if not filename.endswith(SOURCE_SUFFIXES) and content_type not in SOURCE_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV or ZIP files are allowed.",
        )

    return file


def get_storage() -> LocalFileStorage:
    settings = get_storage_settings()
    return LocalFileStorage(settings.root_dir, namespace=settings.namespace)


def get_archive_cache(request: Request) -> ArchiveCache:
    """
    Return the application's archive cache, created with the app.
    """

    cache = getattr(request.app.state, "archive_cache", None)
    if cache is None:
        cache = ArchiveCache()
        request.app.state.archive_cache = cache
    return cache


def get_archive_fetcher() -> ArchiveFetcher:
    return ArchiveFetcher(settings=get_archive_settings())


def get_disclosure_import_service(
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
) -> DisclosureImportService:
    return DisclosureImportService(session=db, storage=storage, settings=get_ingestion_settings())


def get_wage_import_service(
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
    cache: ArchiveCache = Depends(get_archive_cache),
) -> WageImportService:
    return WageImportService(
        session=db,
        storage=storage,
        cache=cache,
        settings=get_ingestion_settings(),
    )


def get_area_name_patch_service(
    db: Session = Depends(get_db),
    fetcher: ArchiveFetcher = Depends(get_archive_fetcher),
) -> AreaNamePatchService:
    return AreaNamePatchService(session=db, fetcher=fetcher)
