"""Database package — async SQLAlchemy engine, session factory, Base."""
from portal.db.base import Base, async_session_factory, create_schema, engine, get_db

__all__ = ["Base", "async_session_factory", "create_schema", "engine", "get_db"]
