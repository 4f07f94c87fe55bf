"""
Database module
"""
from lrdesk.db.database import (
    Base, engine, async_session_maker, build_engine,
    get_db, get_async_session, init_db, close_db,
)

__all__ = [
    "Base", "engine", "async_session_maker", "build_engine",
    "get_db", "get_async_session", "init_db", "close_db",
]
