"""Engine construction, schema creation and session factories.

There is no module-level engine: callers build one with ``build_engine``
and hand sessions to repositories and services explicitly.
"""

import logging
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .core.config import settings
from .exceptions import PersistenceError

logger = logging.getLogger(__name__)

# Create base class for models
Base = declarative_base()


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def build_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Create an engine for ``database_url`` (defaults to settings)."""
    url = database_url or settings.database_url

    if not url.startswith("sqlite"):
        return create_engine(url, echo=echo, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}, "echo": echo}
    if _is_memory_sqlite(url):
        # One shared connection, otherwise every checkout sees an empty database.
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)

    # SQLite defaults foreign_keys to OFF; CASCADE constraints are silently
    # ignored unless we enable them on every connection.
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to ``engine``."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_database(engine: Engine) -> None:
    """Create every table and index that does not exist yet."""
    from . import models  # noqa: F401  registers tables on Base.metadata

    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.error("Schema creation failed", extra={"error": str(e)})
        raise PersistenceError("create database schema", e) from e
    logger.info("Database schema ready", extra={"dialect": engine.dialect.name})


def check_connection(engine: Engine) -> None:
    """Run a trivial query, raising PersistenceError if the store is unreachable."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database connection check failed", extra={"error": str(e)})
        raise PersistenceError("connect to database", e) from e
