"""
Database configuration

SQLAlchemy setup used by the database-backed blog store.
Only consulted when BLOG_STORAGE=database; the default store is in memory.
"""

import os
from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

# Get database URL from environment variable
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./moody.db")


def make_engine(url: str = DATABASE_URL, **kwargs):
    """
    Create an engine for the given URL.

    SQLite needs check_same_thread disabled because FastAPI runs sync
    endpoints on a thread pool.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("poolclass", NullPool)
    return create_engine(url, echo=False, **kwargs)


engine = make_engine()

# Base class for ORM models
Base = declarative_base()


def check_db_connection(bind=None) -> bool:
    """
    Test database connectivity
    Returns True if connection successful, False otherwise
    """
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
