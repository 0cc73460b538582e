"""
db/session.py

SQLAlchemy engine and session factory.

The engine is created lazily so importing the import services never opens a
connection; tests bind their own engine through ``build_session_factory``.
"""

from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import env_value, parse_bool, resolve_database_url

_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def create_db_engine() -> Engine:
    """
    Build the PostgreSQL engine; pool sizing comes from DB_POOL_* variables.
    """

    database_url = resolve_database_url()
    if not database_url.startswith("postgresql"):
        raise RuntimeError("The import database must be PostgreSQL.")

    return create_engine(
        database_url,
        echo=env_value("SQL_ECHO", parse_bool, False),
        pool_pre_ping=True,
        pool_recycle=env_value("DB_POOL_RECYCLE", int, 1800),
        pool_size=env_value("DB_POOL_SIZE", int, 5),
        max_overflow=env_value("DB_MAX_OVERFLOW", int, 10),
    )


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def build_session_factory(engine: Engine) -> sessionmaker:
    """
    Session factory with the settings every import session relies on.

    ``expire_on_commit`` stays off because the chunk loop commits after every
    window and keeps reading the job row afterwards.
    """
    return sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)


def SessionLocal() -> Session:
    """Open a session on the shared engine, building the factory on first use."""
    global _session_factory
    if _session_factory is None:
        _session_factory = build_session_factory(get_engine())
    return _session_factory()


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request."""
    with SessionLocal() as session:
        yield session
