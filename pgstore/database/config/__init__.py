"""
The `config` package provides two core building blocks for establishing and managing database connections.

Contents:
    - config: Configuration layer - strongly typed connection settings loaded from environment variables (with .env support), built on demand through `load_settings()`
    - connection_engine: Database layer - SQLAlchemy bootstrap that creates the Engine from those settings, pings it, and holds the shared MetaData and declarative base for ORM models

Together they provide environment-driven configuration and a clean ORM foundation.
"""
