"""
app/api/routers/imports.py

Chunked import HTTP endpoints.

Every chunk endpoint is stateless: the response carries ``next_cursor`` and
the caller sends it back with the next request until ``has_more`` is false.
"""

from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Response, UploadFile, status

from app.api.dependencies import (
    get_archive_cache,
    get_archive_fetcher,
    get_area_name_patch_service,
    get_disclosure_import_service,
    get_source_upload,
    get_storage,
    get_wage_import_service,
)
from app.archive.extractor import ArchiveExtractionError
from app.archive.fetcher import ArchiveFetcher
from app.errors import ConfigurationError, IngestionError, SourceError
from app.schemas.imports import (
    AreaNamePatchRequest,
    AreaNamePatchResponse,
    ChunkResponse,
    DisclosureChunkRequest,
    StoredSourceResponse,
    WageChunkRequest,
    WageFetchRequest,
    WageFetchResponse,
)
from app.services.archive_cache import ArchiveCache
from app.services.area_name_patch_service import AreaNamePatchService
from app.services.disclosure_import_service import DisclosureImportService
from app.services.wage_import_service import WageImportService
from db.repositories.errors import FileStorageError
from db.repositories.storage import LocalFileStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imports", tags=["imports"])


def _raise_http(exc: IngestionError) -> NoReturn:
    if isinstance(exc, ConfigurationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, ArchiveExtractionError):
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(exc, SourceError):
        status_code = status.HTTP_502_BAD_GATEWAY
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    raise HTTPException(status_code=status_code, detail=exc.to_dict()) from exc


@router.post("/uploads", response_model=StoredSourceResponse, status_code=status.HTTP_201_CREATED)
def upload_source(
    file: UploadFile = Depends(get_source_upload),
    storage: LocalFileStorage = Depends(get_storage),
) -> StoredSourceResponse:
    """
    Store one source file; its ``source_ref`` drives the chunk endpoints.
    """

    try:
        metadata = storage.save_stream(
            file_name=file.filename or "upload.csv",
            source=file.file,
            content_type=file.content_type,
        )
    except FileStorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to store uploaded file.",
        ) from exc
    finally:
        file.file.close()

    logger.info(
        "Source uploaded source_ref=%s size_bytes=%s",
        metadata.storage_path,
        metadata.file_size_bytes,
    )
    return StoredSourceResponse.from_metadata(metadata)


@router.delete("/uploads/{source_ref:path}", status_code=status.HTTP_204_NO_CONTENT)
def delete_source(
    source_ref: str,
    storage: LocalFileStorage = Depends(get_storage),
    cache: ArchiveCache = Depends(get_archive_cache),
) -> Response:
    """
    Cancel a job's source: drop any cached decode and delete the blob.
    """

    cache.invalidate(source_ref)
    try:
        storage.delete(storage_path=source_ref)
    except FileStorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/disclosures/chunks", response_model=ChunkResponse)
def import_disclosure_chunk(
    payload: DisclosureChunkRequest,
    service: DisclosureImportService = Depends(get_disclosure_import_service),
) -> ChunkResponse:
    try:
        result = service.import_chunk(
            source_ref=payload.source_ref,
            dataset_year=payload.dataset_year,
            cursor=payload.cursor.to_cursor() if payload.cursor is not None else None,
        )
    except IngestionError as exc:
        _raise_http(exc)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ChunkResponse.from_result(result)


@router.post("/wages/chunks", response_model=ChunkResponse)
def import_wage_chunk(
    payload: WageChunkRequest,
    service: WageImportService = Depends(get_wage_import_service),
) -> ChunkResponse:
    try:
        result = service.import_chunk(
            source_ref=payload.source_ref,
            wage_year=payload.dataset_year,
            cursor=payload.cursor.to_cursor() if payload.cursor is not None else None,
            replace_existing=payload.replace_existing,
        )
    except IngestionError as exc:
        _raise_http(exc)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ChunkResponse.from_result(result)


@router.post("/wages/fetch", response_model=WageFetchResponse, status_code=status.HTTP_201_CREATED)
def fetch_wage_archive(
    payload: WageFetchRequest,
    fetcher: ArchiveFetcher = Depends(get_archive_fetcher),
    storage: LocalFileStorage = Depends(get_storage),
) -> WageFetchResponse:
    """
    Download an allow-listed archive into storage for the wage chunk endpoint.
    """

    try:
        fetched = fetcher.fetch(payload.archive_url)
        metadata = storage.save(
            file_name=fetched.file_name,
            content=fetched.content,
            content_type=fetched.content_type,
        )
    except IngestionError as exc:
        _raise_http(exc)
    except FileStorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to store downloaded archive.",
        ) from exc

    return WageFetchResponse(
        source=StoredSourceResponse.from_metadata(metadata),
        wage_year=fetched.wage_year,
    )


@router.post("/wages/area-names", response_model=AreaNamePatchResponse)
def patch_wage_area_names(
    payload: AreaNamePatchRequest,
    service: AreaNamePatchService = Depends(get_area_name_patch_service),
) -> AreaNamePatchResponse:
    try:
        result = service.patch(archive_url=payload.archive_url, dataset_year=payload.dataset_year)
    except IngestionError as exc:
        _raise_http(exc)
    return AreaNamePatchResponse(
        wage_year=result.wage_year,
        updated_count=result.updated_count,
        area_codes_seen=result.area_codes_seen,
    )
