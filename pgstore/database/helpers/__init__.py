"""
The `helpers` package provides utility functions and decorators
that support database operations and cross-cutting concerns.

Contents
--------
- transactionManagement
    Provides tools for database transaction management:
        - Context variable (`db_session_context`) for propagating the active session across function calls without explicit passing
        - `session_scope(engine)` context manager:
            - Reuses an existing session for the same engine if one is active in context
            - Creates, commits, and closes a new session otherwise
            - Rolls back the session on errors
        - `@transactional(engine)` decorator applying `session_scope` to a whole function
"""
