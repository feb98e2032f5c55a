"""Process start-up: logging, engine, schema, default data."""

import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from .core.config import settings
from .core.logging_config import setup_logging
from .core.seeder import seed_system_tags
from .database import build_engine, check_connection, create_session_factory, init_database

logger = logging.getLogger(__name__)


def bootstrap(database_url: Optional[str] = None, seed: bool = True,
              configure_logging: bool = True) -> sessionmaker:
    """Prepare a store and return a session factory bound to it.

    Raises PersistenceError if the database cannot be reached or the
    schema cannot be created.
    """
    if configure_logging:
        setup_logging(settings.log_level, settings.log_format)

    engine = build_engine(database_url)
    check_connection(engine)
    init_database(engine)
    session_factory = create_session_factory(engine)

    if seed:
        db = session_factory()
        try:
            result = seed_system_tags(db)
        finally:
            db.close()
        if result.skipped:
            logger.warning("Some system tags were not seeded", extra={
                "skipped": [s.name for s in result.skipped],
            })

    logger.info("Store ready", extra={"environment": settings.environment.value})
    return session_factory
