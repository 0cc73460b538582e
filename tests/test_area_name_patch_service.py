"""
tests/test_area_name_patch_service.py

Backfilling area names on imported wage rows.
"""

from __future__ import annotations

import pytest
from sqlalchemy import select

from app.archive.fetcher import FetchedArchive
from app.domain.ingestion import WritePolicy
from app.domain.records import WageRecord
from app.errors import SourceError
from app.repositories.batch_writer import BatchWriter
from app.services.area_name_patch_service import AreaNamePatchService, load_label_names
from db.models.prevailing_wage import PrevailingWage

ARCHIVE_URL = "https://flag.dol.gov/wages/OFLC_Wages_2024-25.zip"


class _StubFetcher:
    def __init__(self, content: bytes, wage_year: str | None = "2024-2025") -> None:
        self._content = content
        self._wage_year = wage_year
        self.urls: list[str] = []

    def fetch(self, url: str) -> FetchedArchive:
        self.urls.append(url)
        return FetchedArchive(
            url=url,
            file_name="OFLC_Wages_2024-25.zip",
            content=self._content,
            content_type="application/zip",
            wage_year=self._wage_year,
        )


@pytest.fixture()
def seeded(session_factory) -> None:
    with session_factory() as session:
        BatchWriter(session, PrevailingWage, policy=WritePolicy.APPEND, natural_key=()).write(
            [
                WageRecord(wage_year="2024-2025", area_code="10180", soc_code="15-1252"),
                WageRecord(wage_year="2024-2025", area_code="10180", soc_code="13-2011"),
                WageRecord(wage_year="2024-2025", area_code="10420", soc_code="15-1252"),
                WageRecord(wage_year="2023-2024", area_code="10180", soc_code="15-1252"),
            ]
        )


def test_patch_prefers_geography_names_over_labels(session_factory, make_zip, seeded) -> None:
    content = make_zip(
        {
            "ALC_Export.csv": "Area,SocCode,Level1,Label\n10180,15-1252,40,Abilene label\n10420,15-1252,41,Akron label\n",
            "Geography.csv": 'Area,AreaName\n10180,"Abilene, TX"\n',
        }
    )

    with session_factory() as session:
        service = AreaNamePatchService(session=session, fetcher=_StubFetcher(content))
        result = service.patch(archive_url=ARCHIVE_URL)

    assert result.wage_year == "2024-2025"
    assert result.area_codes_seen == 2
    assert result.updated_count == 3

    with session_factory() as session:
        rows = session.execute(
            select(PrevailingWage.wage_year, PrevailingWage.area_code, PrevailingWage.area_name)
        ).all()
    names = {(year, code): name for year, code, name in rows}
    assert names[("2024-2025", "10180")] == "Abilene, TX"
    assert names[("2024-2025", "10420")] == "Akron label"
    assert names[("2023-2024", "10180")] is None


def test_patch_without_any_names_raises(session_factory, make_zip) -> None:
    content = make_zip({"ALC_Export.csv": "Area,SocCode,Level1\n10180,15-1252,40\n"})

    with session_factory() as session:
        service = AreaNamePatchService(session=session, fetcher=_StubFetcher(content))
        with pytest.raises(SourceError):
            service.patch(archive_url=ARCHIVE_URL)


def test_load_label_names_respects_the_row_limit() -> None:
    text = "Area,SocCode,Label\n1,a,One\n2,b,Two\n3,c,Three\n"

    assert load_label_names(text, limit=2) == {"1": "One", "2": "Two"}
