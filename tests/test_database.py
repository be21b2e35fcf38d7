"""Pruebas del pool y las transacciones. / Pool and transaction tests."""

import psycopg2
import pytest

from guardianes import database
from guardianes.errors import PersistenceError


class BrokenCommitConnection:
    def __init__(self):
        self.rollbacks = 0

    def commit(self):
        raise psycopg2.OperationalError("server closed the connection")

    def rollback(self):
        self.rollbacks += 1


def test_create_pool_passes_bounds_and_sslmode(monkeypatch, make_settings):
    calls = {}

    def fake_pool(minconn, maxconn, **kwargs):
        calls.update(minconn=minconn, maxconn=maxconn, **kwargs)
        return "pool"

    monkeypatch.setattr(database.pg_pool, "SimpleConnectionPool", fake_pool)

    assert database.create_pool(make_settings(DATABASE_SSLMODE="require")) == "pool"
    assert calls["minconn"] == 1
    assert calls["maxconn"] == 5
    assert calls["sslmode"] == "require"


def test_create_pool_connect_failure_is_persistence_error(monkeypatch, make_settings):
    def refuse(*args, **kwargs):
        raise psycopg2.OperationalError("could not connect to server: Connection refused")

    monkeypatch.setattr(database.pg_pool, "SimpleConnectionPool", refuse)

    with pytest.raises(PersistenceError, match="could not connect to the database"):
        database.create_pool(make_settings())


def test_checkout_returns_connection_after_error(fake_pool):
    with pytest.raises(RuntimeError):
        with database.checkout(fake_pool):
            raise RuntimeError("boom")
    assert fake_pool.checked_out == 0


def test_checkout_refused_is_persistence_error(fake_pool):
    fake_pool.refused.add(1)
    with pytest.raises(PersistenceError, match="connection refused"):
        with database.checkout(fake_pool):
            pass
    assert fake_pool.checked_out == 0


def test_transaction_rolls_back_and_reraises(fake_pool):
    conn = fake_pool.getconn()
    with pytest.raises(ValueError):
        with database.transaction(conn):
            raise ValueError("bad row")
    assert conn.rollbacks == 1
    assert conn.commits == 0


def test_commit_failure_is_persistence_error():
    with pytest.raises(PersistenceError, match="commit failed"):
        with database.transaction(BrokenCommitConnection()):
            pass
