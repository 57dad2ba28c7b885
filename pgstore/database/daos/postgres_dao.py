"""
Postgres DAO — generic CRUD client
==================================

Purpose
-------
A single, model-agnostic data-access object over a PostgreSQL database.
It owns one SQLAlchemy `Engine` and provides:
- select / select_one / count / exists
- insert / update / delete / delete_one
- with_transaction for multi-statement units of work
- close, and `db` as an escape hatch to the raw engine

Models and Queries
------------------
- `model` is a SQLAlchemy mapped class (or, where noted, a mapped instance).
- `query` is one of:
    * None — no filter
    * a SQL fragment with ``?`` placeholders bound to `*args` in order;
      list/tuple/set args expand for ``IN ?``
    * a mapping of attribute name to value (equality; lists become ``IN``)
    * a SQLAlchemy expression such as ``User.age > 18``
- Fragments are passed to the database as written; only `*args` are bound
  as parameters. A ``?`` inside a single-quoted literal, a double-quoted
  identifier or a ``$$`` string is not a placeholder, and colons (including
  ``::`` casts) are never read as named parameters.

Lifecycle
---------
``Postgres(settings)`` opens and pings the connection, failing fast on error.
``close()`` disposes the pool; every CRUD call afterwards raises
`ClientClosedError`.

Transaction Model
-----------------
Each call runs in its own short transaction unless a transaction opened by
`with_transaction` (or `session_scope` on the same engine) is active in the
current context, in which case the call joins it.

Error Handling
--------------
- Connection failures at construction are logged and re-raised.
- `select_one` and `delete_one` raise `sqlalchemy.exc.NoResultFound` when
  nothing matches.
- Driver and constraint errors propagate unchanged.

Usage
-----
.. code-block:: python

    from pgstore import Postgres, load_settings

    with Postgres(load_settings()) as pg:
        pg.insert(User(name="John Doe", email="john@example.com", age=25))
        adults = pg.select(User, "age > ?", 18)
        pg.update(User, "id = ?", {"name": "New Name", "age": 30}, 1)
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, Callable, List, Optional, Protocol, TypeVar

from sqlalchemy import bindparam, delete, func, inspect, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.sql import ClauseElement

from pgstore.database.config.config import DatabaseSettings
from pgstore.database.config.connection_engine import create_connection_engine, ping
from pgstore.database.helpers.transactionManagement import session_scope

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")
ResultT = TypeVar("ResultT")

# Quoted literals, quoted identifiers and $$ strings are matched first so that
# a "?" inside them is left alone. Colons are escaped so text() binds nothing
# but the generated parameters.
_PLACEHOLDER = re.compile(r"""'(?:[^']|'')*'|"(?:[^"]|"")*"|\$\$.*?\$\$|\?|:""", re.DOTALL)


class ClientClosedError(RuntimeError):
    """Raised when an operation is attempted on a closed client."""


class MissingWhereClauseError(ValueError):
    """Raised when an update or delete would affect every row of a table."""


class Operations(Protocol):
    """Common database operations."""

    def select(self, model: type, query: Any = None, *args: Any) -> List[Any]: ...

    def select_one(self, model: type, query: Any = None, *args: Any) -> Any: ...

    def insert(self, record: Any) -> Any: ...

    def update(self, model: Any, query: Any, updates: Mapping, *args: Any) -> int: ...

    def delete(self, model: Any, query: Any, *args: Any) -> int: ...

    def delete_one(self, model: type, query: Any = None, *args: Any) -> Any: ...

    def count(self, model: type, query: Any = None, *args: Any) -> int: ...

    def exists(self, model: type, query: Any = None, *args: Any) -> bool: ...

    def close(self) -> None: ...


def _entity(model) -> type:
    return model if isinstance(model, type) else type(model)


def _primary_key(entity: type):
    return inspect(entity).primary_key


def _text_condition(fragment: str, args: tuple):
    """Turn a ``?``-placeholder fragment into a bound `text()` clause."""
    params = []

    def _bind(match):
        if match.group(0) != "?":
            return match.group(0).replace(":", r"\:")
        if len(params) >= len(args):
            raise ValueError(
                f"condition {fragment!r} has more placeholders than the {len(args)} argument(s) given"
            )
        name = f"p{len(params)}"
        value = args[len(params)]
        if isinstance(value, (list, tuple, set, frozenset)):
            params.append(bindparam(name, list(value), expanding=True))
        else:
            params.append(bindparam(name, value))
        return f":{name}"

    sql = _PLACEHOLDER.sub(_bind, fragment)
    if len(params) != len(args):
        raise ValueError(
            f"condition {fragment!r} has {len(params)} placeholder(s) but {len(args)} argument(s) were given"
        )
    return text(sql).bindparams(*params)


def _conditions(entity: type, query, args: tuple) -> list:
    """Translate a `query` / `args` pair into a list of WHERE criteria."""
    if query is None:
        if args:
            raise ValueError("positional arguments given without a condition")
        return []
    if isinstance(query, str):
        return [_text_condition(query, args)] if query.strip() else []
    if args:
        raise ValueError("positional arguments are only bound into string conditions")
    if isinstance(query, Mapping):
        criteria = []
        for key, value in query.items():
            column = getattr(entity, key)
            if isinstance(value, (list, tuple, set, frozenset)):
                criteria.append(column.in_(list(value)))
            else:
                criteria.append(column == value)
        return criteria
    if isinstance(query, ClauseElement):
        return [query]
    raise TypeError(f"unsupported condition type: {type(query).__name__}")


def _identity_conditions(model) -> list:
    """Primary-key criteria for a mapped instance; empty for classes and unsaved instances."""
    if isinstance(model, type):
        return []
    state = inspect(model)
    values = state.identity
    if values is None:
        values = state.mapper.primary_key_from_instance(model)
    if values is None or any(value is None for value in values):
        return []
    return [column == value for column, value in zip(state.mapper.primary_key, values)]


class Postgres:
    """
    Data Access Object owning one PostgreSQL connection pool.

    Construction opens and validates the connection; see the module
    docstring for the accepted `model` and `query` forms.
    """

    def __init__(self, settings: DatabaseSettings, engine: Optional[Engine] = None):
        """
        Open the database described by `settings` and ping it.

        Parameters
        ----------
        settings : DatabaseSettings
            Connection settings. `DB_DEBUG_MODE` turns on statement echo.
        engine : Engine, optional
            Pre-built engine to adopt instead of creating one from
            `settings`. The client takes ownership and disposes it on close.

        Raises
        ------
        sqlalchemy.exc.DBAPIError
            If the connection cannot be opened or the ping fails. The engine
            is disposed before the error propagates; there is no retry.
        """
        self._settings = settings
        self._engine = engine

        try:
            if self._engine is None:
                self._engine = create_connection_engine(settings)
            if settings.DB_DEBUG_MODE:
                self._engine.echo = True
            ping(self._engine)
        except Exception as e:
            logger.error("failed to connect database: %s", e)
            if self._engine is not None:
                self._engine.dispose()
            raise

        self._closed = False
        logger.info("Successfully connected to PostgreSQL database")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def settings(self) -> DatabaseSettings:
        return self._settings

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def db(self) -> Engine:
        """
        The underlying SQLAlchemy `Engine`.

        Use it for operations this client does not cover, e.g.::

            with pg.db.begin() as conn:
                conn.execute(text("RAW SQL HERE"))

        Calls made through it bypass the client's closed-state checks.
        """
        return self._engine

    def _session(self):
        if self._closed:
            raise ClientClosedError("database client is closed")
        return session_scope(self._engine)

    def ping(self) -> None:
        """Run the liveness check against the open connection."""
        if self._closed:
            raise ClientClosedError("database client is closed")
        ping(self._engine)

    def select(self, model: type, query: Any = None, *args: Any) -> List[Any]:
        """
        Retrieve every record matching the condition.

        Parameters
        ----------
        model : type
            Mapped class to query.
        query : str | Mapping | ClauseElement | None
            Filter condition.
        *args
            Values bound to the ``?`` placeholders of a string condition.

        Returns
        -------
        list
            Matching instances; empty when nothing matches.

        Example
        -------
        >>> users = pg.select(User, "age > ?", 18)
        """
        entity = _entity(model)
        stmt = select(entity).where(*_conditions(entity, query, args))
        with self._session() as session:
            return list(session.scalars(stmt))

    def select_one(self, model: type, query: Any = None, *args: Any) -> Any:
        """
        Retrieve the first record (by primary key) matching the condition.

        Raises
        ------
        sqlalchemy.exc.NoResultFound
            If no record matches.

        Example
        -------
        >>> try:
        ...     user = pg.select_one(User, "email = ?", "someone@example.com")
        ... except NoResultFound:
        ...     log.info("user not found")
        """
        entity = _entity(model)
        stmt = (
            select(entity)
            .where(*_conditions(entity, query, args))
            .order_by(*_primary_key(entity))
            .limit(1)
        )
        with self._session() as session:
            return session.scalars(stmt).one()

    def insert(self, record: ModelT) -> ModelT:
        """
        Persist a new record.

        Generated values (primary keys, server defaults) are loaded back into
        `record`, which is also returned.
        """
        with self._session() as session:
            session.add(record)
            session.flush()
            session.refresh(record)
        return record

    def update(self, model: Any, query: Any, updates: Mapping, *args: Any) -> int:
        """
        Apply `updates` to every record matching the condition.

        Parameters
        ----------
        model : type | instance
            Mapped class, or a persistent instance whose primary key is added
            to the condition.
        query : str | Mapping | ClauseElement | None
            Filter condition.
        updates : Mapping
            Attribute name to new value.
        *args
            Values bound to the ``?`` placeholders of `query`.

        Returns
        -------
        int
            Number of rows updated.

        Raises
        ------
        MissingWhereClauseError
            If neither a condition nor an instance identity restricts the update.

        Example
        -------
        >>> pg.update(User, "id = ?", {"name": "New Name", "age": 30}, 1)
        """
        entity = _entity(model)
        criteria = _identity_conditions(model) + _conditions(entity, query, args)
        if not criteria:
            raise MissingWhereClauseError(f"refusing to update every row of {entity.__name__}")
        stmt = (
            update(entity)
            .where(*criteria)
            .values(dict(updates))
            .execution_options(synchronize_session=False)
        )
        with self._session() as session:
            return session.execute(stmt).rowcount

    def delete(self, model: Any, query: Any, *args: Any) -> int:
        """
        Remove every record matching the condition and return the row count.

        Raises `MissingWhereClauseError` when nothing restricts the delete.
        """
        entity = _entity(model)
        criteria = _identity_conditions(model) + _conditions(entity, query, args)
        if not criteria:
            raise MissingWhereClauseError(f"refusing to delete every row of {entity.__name__}")
        stmt = delete(entity).where(*criteria).execution_options(synchronize_session=False)
        with self._session() as session:
            return session.execute(stmt).rowcount

    def delete_one(self, model: type, query: Any = None, *args: Any) -> Any:
        """
        Delete the first record (by primary key) matching the condition.

        The lookup locks the row (``SELECT ... FOR UPDATE``) and the delete is
        scoped to that row's identity, both inside one transaction, so the
        record removed is the one that matched.

        Returns
        -------
        object
            The deleted instance.

        Raises
        ------
        sqlalchemy.exc.NoResultFound
            If no record matches; nothing is deleted.
        """
        entity = _entity(model)
        stmt = (
            select(entity)
            .where(*_conditions(entity, query, args))
            .order_by(*_primary_key(entity))
            .limit(1)
            .with_for_update()
        )
        with self._session() as session:
            record = session.scalars(stmt).one()
            session.delete(record)
        return record

    def count(self, model: type, query: Any = None, *args: Any) -> int:
        """
        Count the records matching the condition.

        Example
        -------
        >>> n = pg.count(User, "age > ?", 30)
        """
        entity = _entity(model)
        stmt = select(func.count()).select_from(entity).where(*_conditions(entity, query, args))
        with self._session() as session:
            return int(session.scalar(stmt))

    def exists(self, model: type, query: Any = None, *args: Any) -> bool:
        """Return True if at least one record matches the condition."""
        return self.count(model, query, *args) > 0

    def with_transaction(self, fn: Callable[[Session], ResultT]) -> ResultT:
        """
        Run `fn` inside a single transaction.

        `fn` receives the transaction's `Session`. If it raises, the
        transaction is rolled back and the exception propagates; otherwise
        it is committed and `fn`'s return value is returned. Client calls
        made while `fn` runs join the same transaction.

        Example
        -------
        >>> def place_order(session):
        ...     session.add(user)
        ...     session.add(order)
        >>> pg.with_transaction(place_order)
        """
        with self._session() as session:
            return fn(session)

    def close(self) -> None:
        """
        Release the connection pool.

        The client cannot be used afterwards; closing twice is a no-op.
        """
        if self._closed:
            logger.debug("close() called on an already closed client")
            return
        self._engine.dispose()
        self._closed = True
        logger.info("Database connection closed")
