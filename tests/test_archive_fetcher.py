"""
tests/test_archive_fetcher.py

Allow-listed downloads with retry, using an in-memory HTTP session.
"""

from __future__ import annotations

import pytest
import requests

from app.archive.fetcher import MAX_REDIRECTS, ArchiveFetcher, ensure_allowed_url, infer_wage_year
from app.config import ArchiveSettings
from app.errors import DisallowedHostError, SourceError


class _FakeResponse:
    def __init__(self, status_code: int, body: bytes = b"", url: str = "", headers: dict | None = None) -> None:
        self.status_code = status_code
        self._body = body
        self.url = url
        self.headers = headers or {}
        self.closed = False

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}", response=self)

    def iter_content(self, chunk_size: int):
        for start in range(0, len(self._body), chunk_size):
            yield self._body[start : start + chunk_size]

    def close(self) -> None:
        self.closed = True


class _FakeSession:
    def __init__(self, responses: list) -> None:
        self._responses = list(responses)
        self.calls: list[str] = []

    def request(self, *, method: str, url: str, timeout: float, stream: bool, allow_redirects: bool):
        assert allow_redirects is False
        self.calls.append(url)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


URL = "https://flag.dol.gov/sites/default/files/wages/OFLC_Wages_2024-25.zip"


@pytest.fixture()
def settings() -> ArchiveSettings:
    return ArchiveSettings(
        allowed_hosts=("flag.dol.gov",),
        max_retries=2,
        backoff_initial_seconds=0.0,
        backoff_multiplier=1.0,
        max_archive_bytes=64,
    )


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("OFLC_Wages_2024-25.zip", "2024-2025"),
        ("OFLC_Wages_2023_24_Updated.zip", "2023-2024"),
        ("ALC_Export_2022-2023.csv", "2022-2023"),
        ("wages.zip", None),
    ],
)
def test_infer_wage_year(name: str, expected: str | None) -> None:
    assert infer_wage_year(name) == expected


def test_disallowed_host_is_rejected() -> None:
    with pytest.raises(DisallowedHostError) as exc_info:
        ensure_allowed_url("https://evil.example.com/wages.zip", ("flag.dol.gov",))

    assert exc_info.value.context["host"] == "evil.example.com"


def test_non_http_scheme_is_rejected() -> None:
    with pytest.raises(DisallowedHostError):
        ensure_allowed_url("file://flag.dol.gov/etc/passwd", ("flag.dol.gov",))


def test_fetch_retries_transient_failures(settings) -> None:
    session = _FakeSession(
        [
            requests.ConnectionError("reset"),
            _FakeResponse(503, url=URL),
            _FakeResponse(200, body=b"PK-archive", url=URL, headers={"Content-Type": "application/zip"}),
        ]
    )

    fetched = ArchiveFetcher(settings=settings, session=session).fetch(URL)

    assert len(session.calls) == 3
    assert fetched.content == b"PK-archive"
    assert fetched.file_name == "OFLC_Wages_2024-25.zip"
    assert fetched.wage_year == "2024-2025"
    assert fetched.content_type == "application/zip"


def test_fetch_gives_up_after_max_retries(settings) -> None:
    session = _FakeSession([_FakeResponse(503, url=URL) for _ in range(3)])

    with pytest.raises(SourceError):
        ArchiveFetcher(settings=settings, session=session).fetch(URL)

    assert len(session.calls) == 3


def test_fetch_does_not_retry_client_errors(settings) -> None:
    session = _FakeSession([_FakeResponse(404, url=URL)])

    with pytest.raises(SourceError) as exc_info:
        ArchiveFetcher(settings=settings, session=session).fetch(URL)

    assert exc_info.value.context["status_code"] == 404
    assert len(session.calls) == 1


def test_redirect_off_the_allow_list_is_never_requested(settings) -> None:
    redirect = _FakeResponse(302, url=URL, headers={"Location": "https://mirror.example.net/w.zip"})
    session = _FakeSession([redirect])

    with pytest.raises(DisallowedHostError):
        ArchiveFetcher(settings=settings, session=session).fetch(URL)

    assert session.calls == [URL]
    assert redirect.closed


def test_redirect_within_the_allow_list_is_followed(settings) -> None:
    redirect = _FakeResponse(301, url=URL, headers={"Location": "/files/OFLC_Wages_2024-25.zip"})
    session = _FakeSession([redirect, _FakeResponse(200, body=b"PK-archive")])

    fetched = ArchiveFetcher(settings=settings, session=session).fetch(URL)

    assert session.calls == [URL, "https://flag.dol.gov/files/OFLC_Wages_2024-25.zip"]
    assert fetched.content == b"PK-archive"
    assert redirect.closed


def test_redirect_loop_is_cut_off(settings) -> None:
    session = _FakeSession([_FakeResponse(302, headers={"Location": URL}) for _ in range(MAX_REDIRECTS + 1)])

    with pytest.raises(SourceError) as exc_info:
        ArchiveFetcher(settings=settings, session=session).fetch(URL)

    assert exc_info.value.context["max_redirects"] == MAX_REDIRECTS


def test_error_responses_are_closed(settings) -> None:
    retried = _FakeResponse(503)
    rejected = _FakeResponse(404)
    session = _FakeSession([retried, rejected])

    with pytest.raises(SourceError):
        ArchiveFetcher(settings=settings, session=session).fetch(URL)

    assert retried.closed
    assert rejected.closed


def test_oversized_body_is_rejected(settings) -> None:
    response = _FakeResponse(200, body=b"x" * 100, url=URL)
    session = _FakeSession([response])

    with pytest.raises(SourceError):
        ArchiveFetcher(settings=settings, session=session).fetch(URL)

    assert response.closed
