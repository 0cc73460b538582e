"""
tests/test_imports_router.py

HTTP contract of the import endpoints, with storage, database and archive
downloads swapped for local fixtures.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.dependencies import (
    get_archive_fetcher,
    get_disclosure_import_service,
    get_storage,
    get_wage_import_service,
)
from app.api.routers import imports_router
from app.archive.fetcher import ArchiveFetcher, FetchedArchive
from app.config import ArchiveSettings, IngestionSettings
from app.services.archive_cache import ArchiveCache
from app.services.disclosure_import_service import DisclosureImportService
from app.services.wage_import_service import WageImportService

DISCLOSURE_CSV = (
    "case_number,case_status,visa_class,employer_name,wage_rate_of_pay_from\n"
    "A1,Certified,H-1B,Acme Inc,85000\n"
    ",Certified,H-1B,Acme Inc,85000\n"
    'A2,Certified,H-1B,Acme Inc,"$92,000"\n'
)


class _StubFetcher:
    def __init__(self, content: bytes) -> None:
        self._content = content

    def fetch(self, url: str) -> FetchedArchive:
        return FetchedArchive(
            url=url,
            file_name="OFLC_Wages_2024-25.zip",
            content=self._content,
            content_type="application/zip",
            wage_year="2024-2025",
        )


@pytest.fixture()
def app(session_factory, storage) -> FastAPI:
    application = FastAPI()
    application.include_router(imports_router)
    cache = ArchiveCache()
    application.state.archive_cache = cache
    settings = IngestionSettings(chunk_bytes=64, max_row_bytes=1024)

    def _disclosure_service():
        with session_factory() as session:
            yield DisclosureImportService(session=session, storage=storage, settings=settings)

    def _wage_service():
        with session_factory() as session:
            yield WageImportService(session=session, storage=storage, cache=cache, settings=settings)

    application.dependency_overrides[get_storage] = lambda: storage
    application.dependency_overrides[get_disclosure_import_service] = _disclosure_service
    application.dependency_overrides[get_wage_import_service] = _wage_service
    return application


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def _upload(client: TestClient, name: str, content: bytes, content_type: str) -> dict:
    response = client.post("/imports/uploads", files={"file": (name, content, content_type)})
    assert response.status_code == 201, response.text
    return response.json()


def test_upload_then_chunk_until_done(client) -> None:
    stored = _upload(client, "LCA_FY2024.csv", DISCLOSURE_CSV.encode("utf-8"), "text/csv")
    assert stored["size_bytes"] == len(DISCLOSURE_CSV.encode("utf-8"))

    totals = {"parsed": 0, "inserted": 0, "skipped": 0}
    cursor = None
    for _ in range(20):
        response = client.post(
            "/imports/disclosures/chunks",
            json={"source_ref": stored["source_ref"], "dataset_year": "2024", "cursor": cursor},
        )
        assert response.status_code == 200, response.text
        body = response.json()
        totals["parsed"] += body["parsed_count"]
        totals["inserted"] += body["inserted_count"]
        totals["skipped"] += body["skipped_count"]
        if not body["has_more"]:
            assert body["next_cursor"] is None
            assert body["progress_percent"] == 100
            break
        cursor = body["next_cursor"]
        assert cursor["mapping"]["indices"]["employer_name"] == 3

    assert totals == {"parsed": 3, "inserted": 2, "skipped": 1}


def test_rejects_non_csv_upload(client) -> None:
    response = client.post("/imports/uploads", files={"file": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 400


def test_unknown_source_ref_is_a_bad_request(client) -> None:
    response = client.post("/imports/disclosures/chunks", json={"source_ref": "test-imports/x/missing.csv"})

    assert response.status_code == 400
    assert "not found" in response.json()["detail"]["message"]


def test_header_without_required_columns_is_a_bad_request(client) -> None:
    stored = _upload(client, "wages.csv", b"Area,Level1\n10180,40\n", "text/csv")

    response = client.post(
        "/imports/wages/chunks",
        json={"source_ref": stored["source_ref"], "dataset_year": "2024-2025"},
    )

    assert response.status_code == 400
    codes = {error["code"] for error in response.json()["detail"]["errors"]}
    assert "required_field_unmapped" in codes


def test_wage_archive_upload_and_chunk(client, make_zip) -> None:
    content = make_zip({"ALC_Export.csv": "Area,SocCode,Level1\n10180,15-1252,40\n"})
    stored = _upload(client, "OFLC_Wages_2024-25.zip", content, "application/zip")

    response = client.post("/imports/wages/chunks", json={"source_ref": stored["source_ref"]})

    assert response.status_code == 200, response.text
    assert response.json()["inserted_count"] == 1
    assert response.json()["total_rows"] == 1


def test_corrupt_archive_is_unprocessable(client) -> None:
    stored = _upload(client, "OFLC_Wages_2024-25.zip", b"not a zip", "application/zip")

    response = client.post("/imports/wages/chunks", json={"source_ref": stored["source_ref"]})

    assert response.status_code == 422


def test_damaged_archive_entry_is_unprocessable_with_entry_context(client, make_zip) -> None:
    content = bytearray(make_zip({"ALC_Export.csv": "Area,SocCode,Level1\n" + "10180,15-1252,40\n" * 50}))
    data_start = 30 + int.from_bytes(content[26:28], "little") + int.from_bytes(content[28:30], "little")
    content[data_start : data_start + 4] = b"\xff\xff\xff\xff"
    stored = _upload(client, "OFLC_Wages_2024-25.zip", bytes(content), "application/zip")

    response = client.post("/imports/wages/chunks", json={"source_ref": stored["source_ref"]})

    assert response.status_code == 422
    assert "ALC_Export.csv" in response.text


def test_delete_upload(client, storage) -> None:
    stored = _upload(client, "LCA_FY2024.csv", DISCLOSURE_CSV.encode("utf-8"), "text/csv")

    response = client.delete(f"/imports/uploads/{stored['source_ref']}")

    assert response.status_code == 204
    assert not (storage.root_dir / stored["source_ref"]).exists()


def test_fetch_stores_the_archive(app, client, make_zip) -> None:
    app.dependency_overrides[get_archive_fetcher] = lambda: _StubFetcher(make_zip({"a.csv": "Area,SocCode\n"}))

    response = client.post("/imports/wages/fetch", json={"archive_url": "https://flag.dol.gov/w.zip"})

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["wage_year"] == "2024-2025"
    assert body["source"]["file_name"] == "OFLC_Wages_2024-25.zip"


def test_fetch_from_disallowed_host_is_a_bad_request(app, client) -> None:
    app.dependency_overrides[get_archive_fetcher] = lambda: ArchiveFetcher(
        settings=ArchiveSettings(allowed_hosts=("flag.dol.gov",))
    )

    response = client.post("/imports/wages/fetch", json={"archive_url": "https://evil.example.com/w.zip"})

    assert response.status_code == 400
    assert response.json()["detail"]["context"]["host"] == "evil.example.com"
