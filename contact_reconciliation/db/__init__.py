"""PostgreSQL database module."""

from .client import (
    close_db,
    create_schema,
    get_async_engine,
    get_db_session,
    init_db,
    is_db_initialized,
    ping,
)

__all__ = [
    "init_db",
    "close_db",
    "create_schema",
    "get_db_session",
    "get_async_engine",
    "is_db_initialized",
    "ping",
]
