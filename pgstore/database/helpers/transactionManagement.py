"""
Database Transaction Management
===============================

This module provides utilities for managing SQLAlchemy database sessions
using Python context variables, a context manager and a decorator-based
transaction wrapper.

It allows seamless propagation of a database session across function calls
without explicitly threading it through arguments. Code running inside an
active scope for the same engine joins that scope's transaction instead of
opening a new one; there are no savepoints.

Key features
~~~~~~~~~~~~
- Context variable to store the active session
- Implicit reuse of an existing session bound to the same engine
- Automatic commit and rollback handling
- Clean session closure after execution
- Decorator pattern for function-level transaction management

"""

import contextvars
import logging
from contextlib import contextmanager
from functools import wraps

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------
# Context variable to store the current database session.
# Context variables are per-thread and per-asyncio-task.
# --------------------------------------------------------------------
db_session_context = contextvars.ContextVar("db_session_context", default=None)
"""Context variable storing the active SQLAlchemy session."""


def active_session(engine: Engine):
    """Return the session active in this context for `engine`, or None."""
    session = db_session_context.get()
    if session is not None and session.bind is engine:
        return session
    return None


@contextmanager
def session_scope(engine: Engine):
    """
    Provide a transactional session bound to `engine`.

    - If a session for the same engine is already active in context, it is
      yielded as-is and the outer scope decides commit or rollback.
    - Otherwise a new session is created, committed on success, rolled back
      when the block raises, and closed in every case.

    Sessions are created with ``expire_on_commit=False`` so that instances
    loaded inside the scope keep their attribute values after it ends.

    Parameters
    ----------
    engine : Engine
        Engine the session is bound to.

    Yields
    ------
    Session
        The active session.
    """
    session = active_session(engine)
    if session is not None:
        yield session
        return

    session = Session(bind=engine, expire_on_commit=False)
    token = db_session_context.set(session)
    try:
        yield session
        session.flush()   # Push pending changes
        session.commit()
    except Exception:
        logger.debug("Rolling back transaction on %s", engine.url)
        session.rollback()
        raise
    finally:
        session.close()
        db_session_context.reset(token)


def transactional(engine: Engine):
    """
    Decorator factory wrapping functions in a managed transaction on `engine`.

    The wrapped function must accept a `session` keyword argument.

    Example
    -------
    >>> @transactional(pg.db)
    ... def create_user(user: User, session=None):
    ...     session.add(user)
    ...     return user
    ...
    >>> new_user = create_user(User(...))
    """
    def decorator(func):
        @wraps(func)
        def wrap_func(*args, **kwargs):
            with session_scope(engine) as session:
                return func(*args, session=session, **kwargs)

        return wrap_func

    return decorator
