"""
app/main.py

FastAPI entrypoint for the LCA import API.

Startup fails fast: configuration problems are reported together, then the
database must answer and already carry every import table.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.services.archive_cache import ArchiveCache

logger = logging.getLogger(__name__)

DATABASE_URL_VARIABLES = ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL")


def _startup_config_problems() -> list[str]:
    problems: list[str] = []

    if not any(os.getenv(name, "").strip() for name in DATABASE_URL_VARIABLES):
        problems.append(f"No database URL configured; set one of {', '.join(DATABASE_URL_VARIABLES)}.")

    storage_root = os.getenv("IMPORT_STORAGE_ROOT")
    if storage_root is not None and not storage_root.strip():
        problems.append("IMPORT_STORAGE_ROOT is set but empty.")

    allowed_hosts = os.getenv("ARCHIVE_ALLOWED_HOSTS")
    if allowed_hosts is not None and not any(item.strip() for item in allowed_hosts.split(",")):
        problems.append("ARCHIVE_ALLOWED_HOSTS is set but lists no hosts.")

    return problems


def _validate_env() -> None:
    from db.config import load_env_files

    load_env_files()
    problems = _startup_config_problems()
    if problems:
        raise RuntimeError("Invalid import API configuration:\n" + "\n".join(f"  - {item}" for item in problems))


def _configure_logging() -> None:
    level_name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _verify_database() -> None:
    """
    Ping the database and make sure migrations created every import table.

    Never migrates; run ``alembic upgrade head`` first.
    """

    from sqlalchemy import inspect, text
    from sqlalchemy.exc import SQLAlchemyError

    import db.models  # noqa: F401  registers ORM models on Base.metadata
    from db.base import Base
    from db.config import describe_database_url
    from db.session import get_engine

    engine = get_engine()
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            present = set(inspect(connection).get_table_names())
    except SQLAlchemyError as exc:
        raise RuntimeError(f"Database unavailable at {describe_database_url(str(engine.url))}.") from exc

    missing = sorted(set(Base.metadata.tables) - present)
    if missing:
        logger.critical("Import tables missing from database tables=%s", ",".join(missing))
        raise RuntimeError(f"Import tables missing ({', '.join(missing)}); run alembic upgrade head.")
    logger.info("Database verified tables=%s", len(Base.metadata.tables))


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    _verify_database()
    application.state.archive_cache = ArchiveCache()
    try:
        yield
    finally:
        application.state.archive_cache.clear()
        logger.info("Archive cache cleared")


def create_app() -> FastAPI:
    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="LCA Ingest API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import imports_router

    application.include_router(imports_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
