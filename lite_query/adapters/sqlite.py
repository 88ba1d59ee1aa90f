"""SQLite adapter - stdlib sqlite3."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from typing import Any

from lite_query.core.connection import DatabaseConfig
from lite_query.core.enums import ResultCode
from lite_query.core.lexer import first_keyword

# Fallbacks for interpreters whose sqlite3 exceptions carry no result code.
_MESSAGE_CODES: tuple[tuple[str, ResultCode], ...] = (
    ("interrupted", ResultCode.INTERRUPT),
    ("not authorized", ResultCode.AUTH),
    ("database is locked", ResultCode.BUSY),
    ("unable to open database", ResultCode.CANTOPEN),
)


class SqliteAdapter:
    """Embedded engine adapter using stdlib sqlite3."""

    @property
    def errors(self) -> tuple[type[BaseException], ...]:
        return (sqlite3.Error,)

    def open(self, config: DatabaseConfig) -> sqlite3.Connection:
        """Open a connection in autocommit mode.

        ``isolation_level=None`` keeps sqlite3 from issuing implicit BEGINs;
        transactions are only ever started explicitly.
        """
        return sqlite3.connect(
            config.database,
            timeout=config.timeout,
            isolation_level=None,
            check_same_thread=config.check_same_thread,
        )

    def close(self, handle: sqlite3.Connection) -> None:
        handle.close()

    def prepare(self, handle: sqlite3.Connection, sql: str, params: Any) -> None:
        """Compile *sql* through ``EXPLAIN`` so nothing is executed."""
        probe = sql if first_keyword(sql) == "EXPLAIN" else f"EXPLAIN {sql}"
        cursor = handle.cursor()
        try:
            cursor.execute(probe, params)
        finally:
            cursor.close()

    def cursor(self, handle: sqlite3.Connection) -> sqlite3.Cursor:
        return handle.cursor()

    def run(self, cursor: sqlite3.Cursor, sql: str, params: Any) -> None:
        cursor.execute(sql, params)

    def fetch(self, cursor: sqlite3.Cursor) -> tuple[Any, ...] | None:
        return cursor.fetchone()

    def columns(self, cursor: sqlite3.Cursor) -> list[str]:
        if cursor.description is None:
            return []
        return [desc[0] for desc in cursor.description]

    def discard(self, cursor: sqlite3.Cursor) -> None:
        cursor.close()

    def in_transaction(self, handle: sqlite3.Connection) -> bool:
        return handle.in_transaction

    def interrupt(self, handle: sqlite3.Connection) -> None:
        handle.interrupt()

    def changes(self, handle: sqlite3.Connection) -> int:
        return int(handle.execute("SELECT changes()").fetchone()[0])

    def total_changes(self, handle: sqlite3.Connection) -> int:
        return handle.total_changes

    def last_insert_rowid(self, handle: sqlite3.Connection) -> int:
        return int(handle.execute("SELECT last_insert_rowid()").fetchone()[0])

    def set_authorizer(
        self, handle: sqlite3.Connection, callback: Callable[..., int] | None
    ) -> None:
        handle.set_authorizer(callback)

    def set_trace(
        self, handle: sqlite3.Connection, callback: Callable[[str], None] | None
    ) -> None:
        handle.set_trace_callback(callback)

    def create_function(
        self,
        handle: sqlite3.Connection,
        name: str,
        arity: int,
        callback: Callable[..., Any],
        deterministic: bool = False,
    ) -> None:
        handle.create_function(name, arity, callback, deterministic=deterministic)

    def complete(self, sql: str) -> bool:
        return sqlite3.complete_statement(sql)

    def error_status(self, exc: BaseException) -> tuple[int | None, str]:
        """Primary result code and message of a sqlite3 exception.

        Python 3.11+ attaches ``sqlite_errorcode``; errors raised by the
        sqlite3 module itself (and older interpreters) have none, so the
        code is inferred from the exception class and message.
        """
        message = str(exc)
        code = getattr(exc, "sqlite_errorcode", None)
        if isinstance(code, int) and code >= 0:
            return code & 0xFF, message

        lowered = message.lower()
        for fragment, inferred in _MESSAGE_CODES:
            if fragment in lowered:
                return int(inferred), message
        if isinstance(exc, sqlite3.IntegrityError):
            return int(ResultCode.CONSTRAINT), message
        if isinstance(exc, sqlite3.ProgrammingError) and "binding" in lowered:
            return int(ResultCode.RANGE), message
        if isinstance(exc, sqlite3.ProgrammingError):
            return int(ResultCode.MISUSE), message
        if isinstance(exc, sqlite3.OperationalError):
            return int(ResultCode.ERROR), message
        return None, message
