"""
DAOs Package — Data Access Layer (SQLAlchemy 2.0)
=================================================

The `daos` package provides the Data Access Layer. Instead of one DAO per
entity, a single generic DAO works with any SQLAlchemy mapped class.

Conventions
-----------
- SQLAlchemy 2.0 statements (`select`, `update`, `delete`) executed through
  short-lived sessions from `helpers.transactionManagement`
- DAOs surface exceptions so upper layers decide error policy

Contents
--------
- Postgres
    Owns the connection pool:
    * Opens and pings the database on construction
    * select / select_one / count / exists
    * insert / update / delete / delete_one
    * with_transaction, close, and raw engine access via `db`
"""
