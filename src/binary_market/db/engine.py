"""Database engine and session management."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def _ensure_psycopg_driver(url: str) -> str:
    """Rewrite postgresql:// to postgresql+psycopg:// for psycopg v3."""
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://"):]
    return url


def init_engine(url: str, create_tables: bool = False, **kwargs) -> Engine:
    """Create the global engine and session factory.

    With *create_tables* the journal tables are created directly, which is
    what local SQLite setups use instead of running migrations.
    """
    global _engine, _SessionLocal
    _engine = create_engine(_ensure_psycopg_driver(url), **kwargs)
    _SessionLocal = sessionmaker(bind=_engine)
    if create_tables:
        from binary_market.db.base import Base
        import binary_market.db.tables  # noqa: F401

        Base.metadata.create_all(_engine)
    return _engine


def get_engine() -> Engine:
    """Return the global engine (must call init_engine first)."""
    if _engine is None:
        raise RuntimeError("Database engine not initialised, call init_engine() first")
    return _engine


def session_factory() -> sessionmaker[Session]:
    """Return the global session factory (must call init_engine first)."""
    if _SessionLocal is None:
        raise RuntimeError("Database engine not initialised, call init_engine() first")
    return _SessionLocal


def get_session() -> Generator[Session, None, None]:
    """Yield a session, closing it when done."""
    session = session_factory()()
    try:
        yield session
    finally:
        session.close()
