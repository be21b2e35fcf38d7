"""Pruebas del almacén PostgreSQL con un cursor simulado.

Tests for the PostgreSQL store using a recording cursor.
"""

import psycopg2
import pytest

from guardianes.core import storage
from guardianes.core.models import ElectionType, HistoricalResult, MunicipalTotal
from guardianes.core.storage import PostgresStore
from guardianes.errors import PersistenceError


class RecordingCursor:
    def __init__(self, rows=None, fail_with=None):
        self.statements = []
        self.rows = rows or []
        self.fail_with = fail_with

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def execute(self, sql, params=None):
        if self.fail_with is not None:
            raise self.fail_with
        self.statements.append((" ".join(sql.split()), params))

    def fetchall(self):
        return self.rows

    def fetchone(self):
        return self.rows[0]


class RecordingConnection:
    def __init__(self, cursor):
        self._cursor = cursor

    def cursor(self):
        return self._cursor


def _result(party="PAN", votes=10):
    return HistoricalResult(
        municipality_id=1,
        election_year=2021,
        election_type=ElectionType.MUNICIPAL,
        party=party,
        votes=votes,
        percentage=10.0,
        turnout_percentage=50.0,
    )


def test_schema_declares_unique_historical_key():
    ddl = " ".join(storage.HISTORICAL_RESULTS_UNIQUE.split())
    assert "CREATE UNIQUE INDEX IF NOT EXISTS" in ddl
    assert "(municipality_id, election_year, election_type, party)" in ddl
    assert storage.HISTORICAL_RESULTS_UNIQUE in storage.SCHEMA_STATEMENTS


def test_electorate_ddl_has_every_column():
    for column in storage.ELECTORATE_COLUMNS:
        assert column in storage.ELECTORATE_DDL
    assert len(storage.ELECTORATE_COLUMNS) == 31


def test_ensure_schema_runs_all_statements():
    cursor = RecordingCursor()
    PostgresStore(RecordingConnection(cursor)).ensure_schema()
    assert len(cursor.statements) == len(storage.SCHEMA_STATEMENTS)


def test_truncate_restarts_identity():
    cursor = RecordingCursor()
    PostgresStore(RecordingConnection(cursor)).truncate("historical_results")
    assert cursor.statements == [("TRUNCATE TABLE historical_results RESTART IDENTITY", None)]


def test_truncate_rejects_unknown_table():
    with pytest.raises(ValueError):
        PostgresStore(RecordingConnection(RecordingCursor())).truncate("municipalities")


def test_load_municipalities():
    cursor = RecordingCursor(rows=[(1, "ACAPULCO DE JUAREZ", "Guerrero")])
    (municipality,) = PostgresStore(RecordingConnection(cursor)).load_municipalities()
    assert municipality.id == 1
    assert municipality.canonical_name == "ACAPULCO DE JUAREZ"


def test_insert_municipality_returns_id():
    cursor = RecordingCursor(rows=[(42,)])
    assert PostgresStore(RecordingConnection(cursor)).insert_municipality("COPALA", "Guerrero") == 42
    sql, params = cursor.statements[0]
    assert "ON CONFLICT (name) DO UPDATE" in sql
    assert params == ("COPALA", "Guerrero")


def test_insert_historical_results_counts_returned_rows(monkeypatch):
    calls = {}

    def fake_execute_values(cursor, sql, rows, page_size, fetch=False):
        calls.update(sql=sql, rows=rows, fetch=fetch)
        return [(1,)]

    monkeypatch.setattr(storage, "execute_values", fake_execute_values)
    store = PostgresStore(RecordingConnection(RecordingCursor()))

    inserted = store.insert_historical_results([_result("PAN"), _result("PRI")])

    assert inserted == 1
    assert calls["fetch"] is True
    assert "ON CONFLICT DO NOTHING" in calls["sql"]
    assert calls["rows"][0] == (1, 2021, "Municipal", "PAN", 10, 10.0, 50.0)


def test_insert_historical_results_empty_is_noop(monkeypatch):
    monkeypatch.setattr(storage, "execute_values", pytest.fail)
    assert PostgresStore(RecordingConnection(RecordingCursor())).insert_historical_results([]) == 0


def test_driver_errors_become_persistence_errors():
    cursor = RecordingCursor(fail_with=psycopg2.OperationalError("server closed the connection"))
    with pytest.raises(PersistenceError, match="summary failed"):
        PostgresStore(RecordingConnection(cursor)).summary()


def test_summary_rows():
    cursor = RecordingCursor(rows=[(2021, "Municipal", 16, 8, None)])
    assert PostgresStore(RecordingConnection(cursor)).summary() == [
        {"election_year": 2021, "election_type": "Municipal", "rows": 16, "municipalities": 8, "votes": 0}
    ]


def test_percentage_columns_hold_shares_far_above_100():
    assert "NUMERIC(7" not in storage.HISTORICAL_RESULTS_DDL
    assert storage.HISTORICAL_RESULTS_DDL.count("NUMERIC(12, 2)") == 2
    assert "NUMERIC(12, 2)" in storage.MUNICIPAL_TOTALS_DDL


def test_municipal_totals_are_unique_per_file_key():
    ddl = " ".join(storage.MUNICIPAL_TOTALS_UNIQUE.split())
    assert "(municipality_id, election_year, election_type)" in ddl
    assert storage.MUNICIPAL_TOTALS_UNIQUE in storage.SCHEMA_STATEMENTS
    assert "municipal_totals" in storage.TRUNCATABLE_TABLES


def test_insert_municipal_totals_counts_returned_rows(monkeypatch):
    calls = {}

    def fake_execute_values(cursor, sql, rows, page_size, fetch=False):
        calls.update(sql=sql, rows=rows, fetch=fetch)
        return [(1,), (2,)]

    monkeypatch.setattr(storage, "execute_values", fake_execute_values)
    total = MunicipalTotal(
        municipality_id=3,
        election_year=2018,
        election_type=ElectionType.STATE_LEGISLATURE,
        rows=4,
        valid_votes=90,
        null_votes=10,
        total_votes=100,
        nominal_list_size=400,
        turnout_percentage=25.0,
    )

    inserted = PostgresStore(RecordingConnection(RecordingCursor())).insert_municipal_totals([total, total])

    assert inserted == 2
    assert calls["fetch"] is True
    assert "INSERT INTO municipal_totals" in calls["sql"]
    assert calls["rows"][0] == (3, 2018, "StateLegislature", 4, 90, 10, 100, 400, 25.0)
