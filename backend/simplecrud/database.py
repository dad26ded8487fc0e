"""
simple-crud — Database Engine Construction
===========================================

What:  Builds the store URL and the async SQLAlchemy engine from settings.
How:   Applies DB_NAME / DB_USERNAME / DB_PASSWORD to the configured URI
       where the URI leaves them out, then creates an async engine with
       connection pooling.
Who:   Called once by DocumentStore.from_settings() at application startup
       and by the Alembic environment.

Connection Pooling Strategy (server databases only):
    pool_size / max_overflow: from settings
    pool_pre_ping:    validates connections before use
    pool_recycle=3600: recycles connections every hour
SQLite URLs get SQLAlchemy's default pool for the driver.
"""

from typing import Any, Dict

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from simplecrud.config import Settings


def is_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite"


def build_store_url(settings: Settings) -> URL:
    """
    Resolve the effective store URL.

    DB_URI wins for every component it sets. DB_NAME fills in a missing
    database name, DB_USERNAME / DB_PASSWORD fill in missing credentials.
    SQLite URLs are file paths and are returned untouched.
    """
    url = make_url(settings.db_uri)
    if is_sqlite(url):
        return url

    if not url.database:
        url = url.set(database=settings.db_name)
    if url.username is None and settings.db_username:
        url = url.set(username=settings.db_username, password=settings.db_password)
    return url


def create_store_engine(settings: Settings, url: URL) -> AsyncEngine:
    """Create the async engine shared by every request of the process."""
    options: Dict[str, Any] = {
        # SQL echo only in DEBUG mode
        "echo": settings.log_level == "DEBUG",
    }
    if not is_sqlite(url):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
    return create_async_engine(url, **options)
