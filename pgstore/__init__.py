"""
pgstore — a thin data-access layer over PostgreSQL built on SQLAlchemy.

Usage::

    from pgstore import Postgres, load_settings

    with Postgres(load_settings()) as pg:
        users = pg.select(User, "age > ?", 18)
"""

from sqlalchemy.exc import NoResultFound

from pgstore.database.config.config import DatabaseSettings, load_settings
from pgstore.database.config.connection_engine import declarativeBase, metadata
from pgstore.database.daos.postgres_dao import (
    ClientClosedError,
    MissingWhereClauseError,
    Operations,
    Postgres,
)
from pgstore.database.helpers.transactionManagement import session_scope, transactional

__all__ = [
    "DatabaseSettings",
    "load_settings",
    "declarativeBase",
    "metadata",
    "Postgres",
    "Operations",
    "ClientClosedError",
    "MissingWhereClauseError",
    "NoResultFound",
    "session_scope",
    "transactional",
]
