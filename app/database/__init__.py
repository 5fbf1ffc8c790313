"""
Database access: async engine, session factory and schema bootstrap.
"""

from app.database.async_db import (
    create_all_tables,
    dispose_async_engine,
    get_async_engine,
    get_session_factory,
)

__all__ = [
    "create_all_tables",
    "dispose_async_engine",
    "get_async_engine",
    "get_session_factory",
]
