"""Shared fixtures: an in-memory SQLite engine standing in for PostgreSQL."""

from datetime import datetime

import pytest
from sqlalchemy import DateTime, Integer, String, create_engine, event, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from pgstore import Postgres, declarativeBase, load_settings


class Account(declarativeBase):
    """Minimal mapped model used across the client tests."""

    __tablename__ = "account"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_on: Mapped[datetime] = mapped_column(DateTime, server_default=func.current_timestamp())


DB_ENV_VARS = [
    "DB_HOST",
    "DB_PORT",
    "DB_USER",
    "DB_PASSWORD",
    "DB_NAME",
    "DB_SCHEMA",
    "DB_SSL_MODE",
    "DB_DEBUG_MODE",
    "DB_DRIVER_NAME",
    "DB_POOL_SIZE",
    "DB_MAX_OVERFLOW",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove DB_* variables and run from a directory without a .env file."""
    for name in DB_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture
def settings(clean_env):
    return load_settings(DB_DEBUG_MODE=False)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    declarativeBase.metadata.create_all(engine)
    return engine


@pytest.fixture
def statements(engine):
    """List of every SQL statement sent through `engine`."""
    seen = []

    @event.listens_for(engine, "before_cursor_execute")
    def _record(conn, cursor, statement, parameters, context, executemany):
        seen.append(statement)

    return seen


@pytest.fixture
def pg(settings, engine):
    client = Postgres(settings, engine=engine)
    yield client
    client.close()


def make_account(**kwargs):
    defaults = {
        "name": "John Doe",
        "email": "john@example.com",
        "age": 25,
    }
    defaults.update(kwargs)
    return Account(**defaults)


@pytest.fixture
def seeded(pg):
    """Insert five accounts aged 20, 30, 40, 50, 60."""
    for i, age in enumerate([20, 30, 40, 50, 60]):
        pg.insert(make_account(name=f"user{i}", email=f"user{i}@example.com", age=age))
    return pg
