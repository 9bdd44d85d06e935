"""Database layer — engine, session, ORM base."""

from binary_market.db.base import Base
from binary_market.db.engine import get_engine, get_session, init_engine, session_factory

__all__ = ["Base", "get_engine", "get_session", "init_engine", "session_factory"]
