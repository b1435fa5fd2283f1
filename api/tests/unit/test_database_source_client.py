from __future__ import annotations

from typing import Any, Dict, List

import mysql.connector
import psycopg
import pytest

from datasync.domain.entities.sync import ExternalConnection
from datasync.infrastructure.external.connections.connection_client import ConnectionClient
from datasync.infrastructure.external.connections.database_client import DatabaseSourceClient
from datasync.shared.exceptions.sync import SourceError


class DummyCursor:
    def __init__(self, rows: List[Dict[str, Any]], error: Exception = None):
        self.rows = rows
        self.error = error
        self.executed = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, query, params=None):
        self.executed.append((query, params))
        if self.error:
            raise self.error

    def fetchall(self):
        return self.rows


class DummyConnection:
    def __init__(self, cursor: DummyCursor):
        self._cursor = cursor
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False

    def cursor(self):
        return self._cursor


class DummyConnect:
    def __init__(self, rows=None, error=None):
        self.cursor = DummyCursor(rows or [], error)
        self.connection = DummyConnection(self.cursor)
        self.kwargs = None

    def __call__(self, **kwargs):
        self.kwargs = kwargs
        return self.connection


def _connection(**overrides) -> ExternalConnection:
    values = dict(
        id="c-1",
        connection_type="database",
        db_type="postgres",
        host="db.example",
        port=5432,
        database="src",
        username="reader",
        password="secret",
    )
    values.update(overrides)
    return ExternalConnection(**values)


def test_fetch_returns_rows_and_closes_connection() -> None:
    connect = DummyConnect(rows=[{"id": 1, "name": "Ana"}])
    client = DatabaseSourceClient(connect=connect, connect_timeout_s=3)

    rows = client.fetch(_connection(), 'SELECT * FROM "public"."users" WHERE "updated_at" > %s', ("2026-03-01",))

    assert rows == [{"id": 1, "name": "Ana"}]
    assert connect.kwargs["dbname"] == "src"
    assert connect.kwargs["connect_timeout"] == 3
    assert connect.cursor.executed == [('SELECT * FROM "public"."users" WHERE "updated_at" > %s', ["2026-03-01"])]
    assert connect.connection.closed


def test_fetch_without_params_passes_none() -> None:
    connect = DummyConnect(rows=[])
    DatabaseSourceClient(connect=connect).fetch(_connection(), "SELECT 1")
    assert connect.cursor.executed == [("SELECT 1", None)]


def test_driver_errors_become_source_errors() -> None:
    connect = DummyConnect(error=psycopg.OperationalError('relation "users" does not exist'))

    with pytest.raises(SourceError, match="does not exist"):
        DatabaseSourceClient(connect=connect).fetch(_connection(), "SELECT * FROM users")

    assert connect.connection.closed


def test_unsupported_db_type() -> None:
    with pytest.raises(SourceError, match="Unsupported database type: oracle"):
        DatabaseSourceClient(connect=DummyConnect()).fetch(_connection(db_type="oracle"), "SELECT 1")


def test_null_db_type_defaults_to_postgres() -> None:
    connect = DummyConnect(rows=[{"id": 1}])

    rows = DatabaseSourceClient(connect=connect, mysql_connect=DummyMysqlConnect()).fetch(
        _connection(db_type=None), "SELECT 1"
    )

    assert rows == [{"id": 1}]
    assert connect.kwargs["dbname"] == "src"


# =============================================================================
# MYSQL
# =============================================================================

class DummyMysqlCursor:
    def __init__(self, rows: List[Dict[str, Any]], error: Exception = None):
        self.rows = rows
        self.error = error
        self.executed = []
        self.closed = False

    def execute(self, query, params=None):
        self.executed.append((query, params))
        if self.error:
            raise self.error

    def fetchall(self):
        return self.rows

    def close(self):
        self.closed = True


class DummyMysqlConnection:
    def __init__(self, cursor: DummyMysqlCursor):
        self._cursor = cursor
        self.cursor_kwargs = None
        self.closed = False

    def cursor(self, **kwargs):
        self.cursor_kwargs = kwargs
        return self._cursor

    def close(self):
        self.closed = True


class DummyMysqlConnect:
    def __init__(self, rows=None, error=None):
        self.cursor = DummyMysqlCursor(rows or [], error)
        self.connection = DummyMysqlConnection(self.cursor)
        self.kwargs = None

    def __call__(self, **kwargs):
        self.kwargs = kwargs
        return self.connection


def test_mysql_fetch_returns_dict_rows_and_closes() -> None:
    mysql_connect = DummyMysqlConnect(rows=[{"id": 1, "name": "Ana"}])
    client = DatabaseSourceClient(connect=DummyConnect(), mysql_connect=mysql_connect, connect_timeout_s=4)

    rows = client.fetch(
        _connection(db_type="mysql", port=None),
        "SELECT * FROM `src`.`users` WHERE `updated_at` > %s",
        ("2026-03-01",),
    )

    assert rows == [{"id": 1, "name": "Ana"}]
    assert mysql_connect.kwargs["database"] == "src"
    assert mysql_connect.kwargs["port"] == 3306
    assert mysql_connect.kwargs["connection_timeout"] == 4
    assert mysql_connect.connection.cursor_kwargs == {"dictionary": True}
    assert mysql_connect.cursor.executed == [("SELECT * FROM `src`.`users` WHERE `updated_at` > %s", ("2026-03-01",))]
    assert mysql_connect.cursor.closed
    assert mysql_connect.connection.closed


def test_mysql_driver_errors_become_source_errors() -> None:
    mysql_connect = DummyMysqlConnect(
        error=mysql.connector.errors.ProgrammingError(msg="Table 'src.users' doesn't exist")
    )
    client = DatabaseSourceClient(connect=DummyConnect(), mysql_connect=mysql_connect)

    with pytest.raises(SourceError, match="doesn't exist"):
        client.fetch(_connection(db_type="mysql"), "SELECT * FROM users")

    assert mysql_connect.connection.closed


def test_connection_client_dispatches_by_type() -> None:
    connect = DummyConnect(rows=[{"id": 1}])
    client = ConnectionClient(database_client=DatabaseSourceClient(connect=connect))

    assert client.fetch(_connection(), "SELECT 1") == [{"id": 1}]

    with pytest.raises(SourceError, match="requires a query"):
        client.fetch(_connection())

    with pytest.raises(SourceError, match="Unsupported connection type"):
        client.fetch(_connection(connection_type="ftp"))
