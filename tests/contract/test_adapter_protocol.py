"""Contract tests for adapter protocol compliance."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from typing import Any

import pytest

from lite_query.adapters.protocol import EngineAdapter
from lite_query.adapters.sqlite import SqliteAdapter
from lite_query.core.connection import DatabaseConfig
from lite_query.core.enums import ResultCode


@pytest.fixture
def adapter() -> SqliteAdapter:
    return SqliteAdapter()


@pytest.fixture
def handle(adapter: SqliteAdapter, sqlite_config: DatabaseConfig) -> Iterator[Any]:
    conn = adapter.open(sqlite_config)
    yield conn
    adapter.close(conn)


class TestSqliteAdapterProtocol:
    def test_implements_protocol(self, adapter: SqliteAdapter) -> None:
        assert isinstance(adapter, EngineAdapter)

    def test_errors(self, adapter: SqliteAdapter) -> None:
        assert issubclass(sqlite3.OperationalError, adapter.errors)

    def test_autocommit_handle(self, adapter: SqliteAdapter, handle: Any) -> None:
        assert handle.isolation_level is None
        adapter.run(adapter.cursor(handle), "create table t ( x )", ())
        assert not adapter.in_transaction(handle)

    def test_cursor_lifecycle(self, adapter: SqliteAdapter, handle: Any) -> None:
        cursor = adapter.cursor(handle)
        adapter.run(cursor, "select 1 as val, 2 as other", ())
        assert adapter.columns(cursor) == ["val", "other"]
        assert adapter.fetch(cursor) == (1, 2)
        assert adapter.fetch(cursor) is None
        adapter.discard(cursor)

    def test_columns_without_result(self, adapter: SqliteAdapter, handle: Any) -> None:
        cursor = adapter.cursor(handle)
        adapter.run(cursor, "create table t ( x )", ())
        assert adapter.columns(cursor) == []

    def test_prepare_does_not_execute(self, adapter: SqliteAdapter, handle: Any) -> None:
        adapter.prepare(handle, "create table t ( x )", ())
        cursor = adapter.cursor(handle)
        adapter.run(cursor, "select count(*) from sqlite_master", ())
        assert adapter.fetch(cursor) == (0,)

    def test_prepare_rejects_bad_sql(self, adapter: SqliteAdapter, handle: Any) -> None:
        with pytest.raises(sqlite3.OperationalError):
            adapter.prepare(handle, "select from", ())

    def test_counters(self, adapter: SqliteAdapter, handle: Any) -> None:
        cursor = adapter.cursor(handle)
        adapter.run(cursor, "create table t ( x )", ())
        adapter.run(cursor, "insert into t values ( 1 )", ())
        assert adapter.changes(handle) == 1
        assert adapter.total_changes(handle) == 1
        assert adapter.last_insert_rowid(handle) == 1

    def test_complete(self, adapter: SqliteAdapter) -> None:
        assert adapter.complete("select 1;")
        assert not adapter.complete("select 1")


class TestErrorStatus:
    def test_engine_code(self, adapter: SqliteAdapter, handle: Any) -> None:
        with pytest.raises(sqlite3.Error) as exc_info:
            adapter.prepare(handle, "select * from nowhere", ())
        code, message = adapter.error_status(exc_info.value)
        assert code == ResultCode.ERROR
        assert message == "no such table: nowhere"

    def test_constraint_code(self, adapter: SqliteAdapter, handle: Any) -> None:
        cursor = adapter.cursor(handle)
        adapter.run(cursor, "create table t ( x unique )", ())
        adapter.run(cursor, "insert into t values ( 1 )", ())
        with pytest.raises(sqlite3.Error) as exc_info:
            adapter.run(cursor, "insert into t values ( 1 )", ())
        assert adapter.error_status(exc_info.value)[0] == ResultCode.CONSTRAINT

    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (sqlite3.OperationalError("interrupted"), ResultCode.INTERRUPT),
            (sqlite3.DatabaseError("not authorized"), ResultCode.AUTH),
            (sqlite3.OperationalError("database is locked"), ResultCode.BUSY),
            (sqlite3.IntegrityError("UNIQUE constraint failed: t.x"), ResultCode.CONSTRAINT),
            (sqlite3.ProgrammingError("Incorrect number of bindings supplied"), ResultCode.RANGE),
            (sqlite3.ProgrammingError("Cannot operate on a closed cursor"), ResultCode.MISUSE),
            (sqlite3.OperationalError("no such table: x"), ResultCode.ERROR),
        ],
    )
    def test_inferred_codes(self, adapter: SqliteAdapter, exc: BaseException, expected: int) -> None:
        assert adapter.error_status(exc)[0] == expected

    def test_unknown_error(self, adapter: SqliteAdapter) -> None:
        assert adapter.error_status(sqlite3.Error("odd")) == (None, "odd")
