"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from lite_query.core.connection import DatabaseConfig
from lite_query.core.database import Database


@pytest.fixture
def sqlite_config() -> DatabaseConfig:
    """SQLite in-memory database config."""
    return DatabaseConfig(driver="sqlite", database=":memory:")


@pytest.fixture
def db(sqlite_config: DatabaseConfig) -> Iterator[Database]:
    """In-memory database with table ``foo`` holding rows foo, bar and baz."""
    database = Database.from_config(sqlite_config)
    with database.transaction():
        database.execute("create table foo ( a integer primary key, b text )")
        database.execute("insert into foo ( b ) values ( 'foo' )")
        database.execute("insert into foo ( b ) values ( 'bar' )")
        database.execute("insert into foo ( b ) values ( 'baz' )")
    yield database
    database.close()
