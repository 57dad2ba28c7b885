"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes database initialization for the client:
- Creates the Engine (connection pool + SQL execution entry point) from
  a `DatabaseSettings` instance.
- Performs the liveness check (`SELECT 1`) used when a client opens.
- Defines shared MetaData for table and schema objects.
- Exposes a Declarative Base class for ORM models.

Notes
-----
- The connection URL is built with `URL.create(...)` (see
  `DatabaseSettings.get_url`) so credentials are never formatted by hand.
- Pool sizing comes from the settings; statement echo follows `DB_DEBUG_MODE`.
- Models used with the client must be mapped classes; inheriting from
  `declarativeBase` is the simplest way to get one.
"""

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import MetaData

from pgstore.database.config.config import DatabaseSettings

logger = logging.getLogger(__name__)


def create_connection_engine(settings: DatabaseSettings) -> Engine:
    """
    Create the SQLAlchemy Engine described by `settings`.

    No connection is made here; the pool connects lazily on first use.

    Parameters
    ----------
    settings : DatabaseSettings
        Connection settings.

    Returns
    -------
    Engine
        A pooled engine with `echo` set from `DB_DEBUG_MODE`.
    """
    return create_engine(
        settings.get_url(),
        echo=settings.DB_DEBUG_MODE,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
    )


def ping(engine: Engine) -> None:
    """
    Check that the database behind `engine` is reachable.

    Raises
    ------
    sqlalchemy.exc.DBAPIError
        If a connection cannot be opened or the probe query fails.
    """
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))


# --------------------------------------------------------------------
# Metadata object: stores schema-level information about tables,
# constraints, indexes, etc. Shared across all models.
# --------------------------------------------------------------------
metadata = MetaData()
"""
Metadata object: Stores schema-level information about tables, constraints, indexes, etc. Shared across all models.
"""
# --------------------------------------------------------------------
# Declarative Base: root class for ORM models.
# --------------------------------------------------------------------
declarativeBase = declarative_base(metadata=metadata)
"""Declarative Base: Root class for ORM models.
All model classes should inherit from this to gain ORM features and automatic schema generation.
 """
