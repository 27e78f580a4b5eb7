"""Database session and store."""

from ptstudio.db.repository import Repository, Store
from ptstudio.db.session import AsyncSessionLocal, engine, get_db, get_db_context

__all__ = [
    "AsyncSessionLocal",
    "engine",
    "get_db",
    "get_db_context",
    "Repository",
    "Store",
]
