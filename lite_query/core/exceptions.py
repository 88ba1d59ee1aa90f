"""LiteQuery exception hierarchy.

Raw engine exceptions are never exposed to callers: every engine status is
translated into one of the classes below at the point it is first observed.
"""

from __future__ import annotations

from typing import ClassVar

from lite_query.core.enums import ResultCode
from lite_query.core.lexer import find_error_offset


class LiteQueryError(Exception):
    """Base exception for all LiteQuery errors."""


# --- Setup ---


class AdapterError(LiteQueryError):
    """Raised when an engine adapter cannot be resolved or loaded."""


class ClosedError(LiteQueryError):
    """Raised when a closed Database, Statement or ResultSet is used."""

    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(f"cannot use a closed {resource}")


# --- Engine ---


class DatabaseError(LiteQueryError):
    """Base for errors reported by (or on behalf of) the engine.

    Attributes:
        code: Primary engine result code, or ``None`` when unknown.
        sql: SQL text being processed when the error occurred.
        sql_offset: Character offset in ``sql`` the error points at, or ``None``.
    """

    default_code: ClassVar[int | None] = None

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        sql: str | None = None,
        sql_offset: int | None = None,
    ) -> None:
        self.code = code if code is not None else self.default_code
        self.sql = sql
        self.sql_offset = sql_offset
        super().__init__(message)


class SQLError(DatabaseError):
    """Generic SQL-level error."""

    default_code = ResultCode.ERROR


class SQLSyntaxError(SQLError):
    """Raised when a statement cannot be prepared."""


class TransactionStateError(SQLError):
    """Raised on invalid transaction transitions (begin/commit/rollback)."""


class ConstraintError(DatabaseError):
    """Raised when a statement violates a constraint."""

    default_code = ResultCode.CONSTRAINT


class AuthorizationError(DatabaseError):
    """Raised when the authorizer denies an operation."""

    default_code = ResultCode.AUTH


class InterruptError(DatabaseError):
    """Raised when a statement is aborted by ``Database.interrupt()``."""

    default_code = ResultCode.INTERRUPT


class BindingError(DatabaseError):
    """Raised on parameter count, name or style mismatches."""

    default_code = ResultCode.RANGE


class ParameterTypeError(BindingError, TypeError):
    """Raised when a value of an unsupported kind is bound."""

    def __init__(self, value: object) -> None:
        self.value_type = type(value).__name__
        super().__init__(f"can't bind {self.value_type}")


class FunctionError(DatabaseError):
    """Raised when a custom SQL function fails during evaluation."""

    default_code = ResultCode.ERROR


class BusyError(DatabaseError):
    """Raised when a resource is busy (e.g. closing with open statements)."""

    default_code = ResultCode.BUSY


class MiscEngineError(DatabaseError):
    """Raised for any other non-success engine status."""


_ERRORS_BY_CODE: dict[int, type[DatabaseError]] = {
    ResultCode.ERROR: SQLError,
    ResultCode.CONSTRAINT: ConstraintError,
    ResultCode.AUTH: AuthorizationError,
    ResultCode.INTERRUPT: InterruptError,
    ResultCode.RANGE: BindingError,
    ResultCode.BUSY: BusyError,
}


def render_sql_error(message: str, sql: str, offset: int | None) -> str:
    """Format *message* followed by *sql*, with a caret under *offset*.

    The caret line is inserted right after the source line containing the
    offset, so multi-line SQL keeps its shape.
    """
    lines: list[str] = []
    position = 0
    placed = offset is None
    for line in sql.splitlines(keepends=True):
        lines.append(line.rstrip("\r\n"))
        if not placed and offset is not None and offset < position + len(line):
            lines.append(" " * (offset - position) + "^")
            placed = True
        position += len(line)
    return f"{message}:\n" + "\n".join(lines)


def translate_error(
    code: int | None,
    message: str,
    *,
    sql: str | None = None,
    prepare: bool = False,
) -> DatabaseError:
    """Map an engine status to a typed error.

    Args:
        code: Primary engine result code (``None`` if the engine gave none).
        message: Engine error message.
        sql: SQL text the failing call was working on.
        prepare: True when the failure happened while preparing *sql*;
            generic SQL errors then become ``SQLSyntaxError`` with the SQL
            and an error position rendered into the message.
    """
    if code is None:
        return MiscEngineError(message, sql=sql)

    cls = _ERRORS_BY_CODE.get(code, MiscEngineError)
    if prepare and cls is SQLError and sql is not None:
        offset = find_error_offset(sql, message)
        return SQLSyntaxError(
            render_sql_error(message, sql, offset),
            code=code,
            sql=sql,
            sql_offset=offset,
        )
    return cls(message, code=code, sql=sql)
