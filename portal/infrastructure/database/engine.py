"""
SQLAlchemy engine construction.

One engine per process, built from ``settings.get_database_url()``.
SQLite connections run in WAL mode with foreign keys enforced;
PostgreSQL connections are pre-pinged and time out after 10 seconds.
"""

import logging
from functools import lru_cache
from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from portal.core.config import settings

logger = logging.getLogger(__name__)

POSTGRES_CONNECT_TIMEOUT_SECONDS = 10


def mask_url(url: str) -> str:
    """Return ``url`` with its password replaced by ``***``."""
    return make_url(url).render_as_string(hide_password=True)


def _enable_sqlite_pragmas(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def build_engine(url: str) -> Engine:
    """Create a SQLAlchemy engine for a SQLite or PostgreSQL URL.

    Args:
        url: A SQLAlchemy database URL.

    Returns:
        A configured engine. No connection is opened yet.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        if parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(url, connect_args={"check_same_thread": False})
        event.listen(engine, "connect", _enable_sqlite_pragmas)
    else:
        engine = create_engine(
            url,
            pool_pre_ping=True,
            connect_args={"connect_timeout": POSTGRES_CONNECT_TIMEOUT_SECONDS},
        )
    logger.info("Database engine ready: %s", mask_url(url))
    return engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Return the process-wide engine. Used as a FastAPI dependency."""
    return build_engine(settings.get_database_url())


def check_connection(engine: Engine) -> bool:
    """Return True if the database answers ``SELECT 1``."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database connection check failed")
        return False
    return True
