"""
The `database` package is responsible for all interactions with the PostgreSQL database.
It provides configuration, connection bootstrap, transaction helpers and the
generic CRUD client.

Contents:
    - config:
        Settings loaded from the environment and the SQLAlchemy engine
        bootstrap (engine creation, ping, shared declarative base).

    - daos:
        The `Postgres` data access object offering select / insert / update /
        delete / count / exists / transaction operations for any mapped model.

    - helpers:
        Utility helpers to manage database transactions and sessions.
"""
