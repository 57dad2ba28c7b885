"""
Configuration — Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Strongly-typed database connection settings using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Every field has a default, so an empty environment yields a working
  local configuration (`localhost:5432`, user/password/db `postgres`).
- Empty variables count as unset.
- `DB_DEBUG_MODE` is parsed leniently: an unrecognized value logs a warning
  and falls back to the default instead of raising.
- The settings object is frozen once built.

Usage
-----
from pgstore.database.config.config import load_settings

settings = load_settings()
dsn = settings.get_dsn()
"""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

logger = logging.getLogger(__name__)

DEFAULT_DEBUG_MODE = True

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


def parse_bool(value: str):
    """
    Parse a boolean string.

    Accepts ``1, t, T, TRUE, true, True`` and ``0, f, F, FALSE, false, False``.

    Returns
    -------
    bool | None
        The parsed value, or None when the string is not a recognized boolean.
    """
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None


class DatabaseSettings(BaseSettings):
    """
    Connection settings for a PostgreSQL database, loaded from environment
    variables or a `.env` file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
        frozen=True,
    )

    DB_HOST: str = Field("localhost", description="Hostname or IP address of the database server.")
    DB_PORT: str = Field("5432", description="TCP port of the database server.")
    DB_USER: str = Field("postgres", description="Database username credential.")
    DB_PASSWORD: str = Field("postgres", description="Database password credential.")
    DB_NAME: str = Field("postgres", description="Name of the database.")
    DB_SCHEMA: str = Field("public", description="Schema placed on the connection's search_path.")
    DB_SSL_MODE: str = Field("disable", description="libpq sslmode (e.g., `disable`, `require`, `verify-full`).")
    DB_DEBUG_MODE: bool = Field(DEFAULT_DEBUG_MODE, description="Log every SQL statement issued through the client.")
    DB_DRIVER_NAME: str = Field("postgresql+psycopg2", description="SQLAlchemy driver name.")
    DB_POOL_SIZE: int = Field(5, description="Number of connections kept open in the pool.")
    DB_MAX_OVERFLOW: int = Field(10, description="Connections allowed beyond the pool size under load.")

    @field_validator("DB_DEBUG_MODE", mode="before")
    @classmethod
    def _lenient_debug_mode(cls, value):
        if isinstance(value, bool):
            return value
        parsed = parse_bool(str(value).strip())
        if parsed is None:
            logger.warning(
                "Invalid value for DB_DEBUG_MODE: %s. Using default: %s", value, DEFAULT_DEBUG_MODE
            )
            return DEFAULT_DEBUG_MODE
        return parsed

    def get_dsn(self) -> str:
        """
        Build the libpq keyword/value connection descriptor.

        Values are concatenated as-is; a value containing spaces or ``=``
        produces a corrupt descriptor.

        Returns
        -------
        str
            ``host=... port=... user=... password=... dbname=... search_path=... sslmode=...``
        """
        return (
            f"host={self.DB_HOST} port={self.DB_PORT} user={self.DB_USER} "
            f"password={self.DB_PASSWORD} dbname={self.DB_NAME} "
            f"search_path={self.DB_SCHEMA} sslmode={self.DB_SSL_MODE}"
        )

    def get_url(self) -> URL:
        """
        Build the SQLAlchemy connection URL for the same settings.

        libpq has no ``search_path`` keyword, so the schema is sent as a
        server option (``-csearch_path=<schema>``).
        """
        return URL.create(
            drivername=self.DB_DRIVER_NAME,
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=int(self.DB_PORT),
            database=self.DB_NAME,
            query={
                "sslmode": self.DB_SSL_MODE,
                "options": f"-csearch_path={self.DB_SCHEMA}",
            },
        )


def load_settings(**overrides) -> DatabaseSettings:
    """
    Build a fresh `DatabaseSettings` from the environment.

    Keyword arguments override individual fields (and accept the
    pydantic-settings init options such as ``_env_file=None``).
    """
    return DatabaseSettings(**overrides)
