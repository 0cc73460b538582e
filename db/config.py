"""
db/config.py

Environment-driven configuration shared by the API, the import CLI and
Alembic: `.env` loading, typed environment lookups and database URL
resolution.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, TypeVar

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

T = TypeVar("T")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = (".env", ".env.local")
CLOUD_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})
TRUTHY = frozenset({"1", "true", "yes", "on"})


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, _, value = line.partition("=")
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip("\"'")


def load_env_files(root: Path = PROJECT_ROOT) -> None:
    """
    Copy KEY=VALUE pairs from `.env` then `.env.local` into the process
    environment. Variables that are already set win.
    """

    for name in ENV_FILES:
        path = root / name
        if not path.is_file():
            continue
        for raw_line in path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def env_value(name: str, parse: Callable[[str], T], default: T) -> T:
    """
    Parse an environment variable, falling back to ``default`` when it is
    unset, blank or unparseable.
    """

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return parse(raw.strip())
    except ValueError:
        return default


def parse_bool(raw: str) -> bool:
    return raw.lower() in TRUTHY


def parse_csv(raw: str) -> tuple[str, ...]:
    items = tuple(item.strip().lower() for item in raw.split(",") if item.strip())
    if not items:
        raise ValueError("empty list")
    return items


def normalize_postgres_url(url: str) -> str:
    """
    Point bare postgres URLs at the psycopg 3 driver.
    """

    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def resolve_database_url() -> str:
    """
    Pick the database URL for this process.

    DATABASE_URL always wins. CLOUD_DATABASE_URL is used only when
    ENVIRONMENT names a cloud deployment; LOCAL_DATABASE_URL is the fallback.
    """

    load_env_files()

    candidates = ["DATABASE_URL"]
    if os.getenv("ENVIRONMENT", "local").strip().lower() in CLOUD_ENVIRONMENTS:
        candidates.append("CLOUD_DATABASE_URL")
    candidates.append("LOCAL_DATABASE_URL")

    for name in candidates:
        url = (os.getenv(name) or "").strip()
        if url:
            return normalize_postgres_url(url)

    raise RuntimeError("No database URL configured; set DATABASE_URL or LOCAL_DATABASE_URL / CLOUD_DATABASE_URL.")


def describe_database_url(url: str) -> str:
    """
    Render a database URL for logs with the password masked.
    """

    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable database url>"
