"""
app/archive/fetcher.py

Allow-listed HTTP download of published wage archives.

Only hosts on the configured allow-list are fetched so the import endpoints
cannot be used as an open fetch proxy.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterable
from urllib.parse import urljoin, urlparse

import requests

from app.config import ArchiveSettings
from app.errors import DisallowedHostError, SourceError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
REDIRECT_STATUS_CODES = {301, 302, 303, 307, 308}
MAX_REDIRECTS = 5
ALLOWED_SCHEMES = {"http", "https"}
DOWNLOAD_CHUNK_BYTES = 1024 * 1024

_WAGE_YEAR_PATTERN = re.compile(r"(?<!\d)(20\d{2})[-_]((?:20)?\d{2})(?!\d)")


def infer_wage_year(name: str) -> str | None:
    """
    Derive a ``YYYY-YYYY`` wage year from names such as ``..._2024-25.zip``
    or ``..._2024-2025.zip``.
    """

    match = _WAGE_YEAR_PATTERN.search(name)
    if match is None:
        return None
    start, end = match.groups()
    if len(end) == 2:
        end = start[:2] + end
    return f"{start}-{end}"


def ensure_allowed_url(url: str, allowed_hosts: Iterable[str]) -> str:
    """
    Return the lower-cased host of ``url`` or raise when it is not allowed.
    """

    parsed = urlparse(url.strip())
    host = (parsed.hostname or "").lower()
    allowed = {item.lower() for item in allowed_hosts}
    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not host or host not in allowed:
        raise DisallowedHostError(
            "Archive URL host is not on the allow-list.",
            context={"host": host or None, "scheme": parsed.scheme or None, "allowed_hosts": sorted(allowed)},
        )
    return host


@dataclass(frozen=True)
class FetchedArchive:
    url: str
    file_name: str
    content: bytes
    content_type: str | None
    wage_year: str | None


class ArchiveFetcher:
    """
    Downloads archives with retry and exponential backoff.
    """

    def __init__(
        self,
        *,
        settings: ArchiveSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()

    def fetch(self, url: str) -> FetchedArchive:
        ensure_allowed_url(url, self._settings.allowed_hosts)
        response, final_url = self._follow_redirects(url)

        content = self._read_body(response, url=final_url)
        file_name = PurePosixPath(urlparse(url).path).name or "archive.zip"
        logger.info(
            "Archive downloaded url=%s final_url=%s file_name=%s size_bytes=%s",
            url,
            final_url,
            file_name,
            len(content),
        )
        return FetchedArchive(
            url=url,
            file_name=file_name,
            content=content,
            content_type=response.headers.get("Content-Type"),
            wage_year=infer_wage_year(file_name) or infer_wage_year(final_url),
        )

    def _follow_redirects(self, url: str) -> tuple[requests.Response, str]:
        """
        Follow redirects one hop at a time; every hop must stay on the allow-list.
        """

        current = url
        for _ in range(MAX_REDIRECTS + 1):
            response = self._request(current)
            if response.status_code not in REDIRECT_STATUS_CODES:
                return response, current

            location = response.headers.get("Location")
            response.close()
            if not location:
                raise SourceError(
                    "Archive redirect carries no Location header.",
                    context={"url": current, "status_code": response.status_code},
                )
            current = urljoin(current, location)
            ensure_allowed_url(current, self._settings.allowed_hosts)
            logger.info("Archive download redirected url=%s", current)

        raise SourceError(
            "Archive download exceeded the redirect limit.",
            context={"url": url, "max_redirects": MAX_REDIRECTS},
        )

    def _request(self, url: str) -> requests.Response:
        last_error: Exception | None = None
        for attempt in range(self._settings.max_retries + 1):
            try:
                response = self._session.request(
                    method="GET",
                    url=url,
                    timeout=self._settings.timeout_seconds,
                    stream=True,
                    allow_redirects=False,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable HTTP status code: {response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if exc.response is not None:
                    exc.response.close()
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error(
                        "Archive download failed status=%s url=%s error=%s",
                        status_code,
                        url,
                        exc,
                    )
                    raise SourceError(
                        "Archive download failed with a non-retryable status.",
                        context={"url": url, "status_code": status_code},
                    ) from exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc

            if attempt >= self._settings.max_retries:
                break

            backoff_seconds = self._settings.backoff_initial_seconds * (
                self._settings.backoff_multiplier**attempt
            )
            logger.warning(
                "Archive download retry attempt=%s/%s wait_seconds=%.2f url=%s",
                attempt + 1,
                self._settings.max_retries,
                backoff_seconds,
                url,
            )
            time.sleep(backoff_seconds)

        logger.error("Archive download exhausted retries url=%s error=%s", url, last_error)
        raise SourceError(
            "Archive download failed after retries.",
            context={"url": url, "error": str(last_error)},
        ) from last_error

    def _read_body(self, response: requests.Response, *, url: str) -> bytes:
        limit = self._settings.max_archive_bytes
        declared = response.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > limit:
            raise SourceError(
                "Archive exceeds the configured size limit.",
                context={"url": url, "declared_bytes": int(declared), "max_bytes": limit},
            )

        buffer = bytearray()
        try:
            for block in response.iter_content(chunk_size=DOWNLOAD_CHUNK_BYTES):
                buffer.extend(block)
                if len(buffer) > limit:
                    raise SourceError(
                        "Archive exceeds the configured size limit.",
                        context={"url": url, "read_bytes": len(buffer), "max_bytes": limit},
                    )
        except requests.RequestException as exc:
            raise SourceError(
                "Archive download was interrupted.",
                context={"url": url, "read_bytes": len(buffer)},
            ) from exc
        finally:
            response.close()
        return bytes(buffer)
