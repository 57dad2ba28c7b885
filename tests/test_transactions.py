"""Tests for with_transaction and the session helpers."""

import pytest
from sqlalchemy import select

from pgstore import session_scope, transactional
from pgstore.database.helpers.transactionManagement import active_session, db_session_context
from tests.conftest import Account, make_account


class Boom(Exception):
    pass


class TestWithTransaction:
    def test_failure_rolls_back(self, pg):
        pg.insert(make_account(email="keep@example.com"))

        def work(session):
            session.add(make_account(email="a@example.com"))
            session.add(make_account(email="b@example.com"))
            session.flush()
            raise Boom("abort")

        with pytest.raises(Boom):
            pg.with_transaction(work)
        assert [a.email for a in pg.select(Account)] == ["keep@example.com"]

    def test_success_commits_all_writes(self, pg):
        def work(session):
            session.add(make_account(email="a@example.com"))
            session.add(make_account(email="b@example.com"))
            return "done"

        assert pg.with_transaction(work) == "done"
        assert pg.count(Account) == 2

    def test_client_calls_join_the_transaction(self, pg):
        def work(session):
            pg.insert(make_account(email="a@example.com"))
            assert active_session(pg.db) is session
            assert pg.count(Account) == 1
            pg.update(Account, {"email": "a@example.com"}, {"age": 70})
            raise Boom("abort")

        with pytest.raises(Boom):
            pg.with_transaction(work)
        assert pg.count(Account) == 0

    def test_not_found_inside_transaction_rolls_back(self, pg):
        from sqlalchemy.exc import NoResultFound

        def work(session):
            pg.insert(make_account(email="a@example.com"))
            pg.delete_one(Account, {"email": "missing@example.com"})

        with pytest.raises(NoResultFound):
            pg.with_transaction(work)
        assert pg.exists(Account) is False

    def test_context_is_cleared_afterwards(self, pg):
        pg.with_transaction(lambda session: None)
        assert db_session_context.get() is None


class TestSessionScope:
    def test_commits_on_success(self, pg):
        with session_scope(pg.db) as session:
            session.add(make_account())
        assert pg.count(Account) == 1

    def test_rolls_back_on_error(self, pg):
        with pytest.raises(Boom):
            with session_scope(pg.db) as session:
                session.add(make_account())
                session.flush()
                raise Boom()
        assert pg.count(Account) == 0

    def test_nested_scope_reuses_session(self, pg):
        with session_scope(pg.db) as outer:
            with session_scope(pg.db) as inner:
                assert inner is outer

    def test_scope_for_other_engine_is_separate(self, pg, engine):
        from sqlalchemy import create_engine

        other = create_engine("sqlite://")
        with session_scope(pg.db) as outer:
            with session_scope(other) as inner:
                assert inner is not outer
            assert active_session(pg.db) is outer
        other.dispose()


class TestTransactionalDecorator:
    def test_injects_session_and_commits(self, pg):
        @transactional(pg.db)
        def create(email, session=None):
            session.add(make_account(email=email))
            return email

        assert create("x@example.com") == "x@example.com"
        with session_scope(pg.db) as session:
            emails = session.scalars(select(Account.email)).all()
        assert emails == ["x@example.com"]

    def test_rolls_back_on_error(self, pg):
        @transactional(pg.db)
        def create_then_fail(session=None):
            session.add(make_account())
            session.flush()
            raise Boom()

        with pytest.raises(Boom):
            create_then_fail()
        assert pg.count(Account) == 0
