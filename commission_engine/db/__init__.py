"""Database session helpers."""

from commission_engine.db.session import (
    build_engine,
    build_sessionmaker,
    get_db,
    get_db_context,
)

__all__ = [
    "build_engine",
    "build_sessionmaker",
    "get_db",
    "get_db_context",
]
