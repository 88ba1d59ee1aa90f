"""Connection facade.

The Database owns exactly one engine handle and composes statements, result
sets, transactions and callbacks into the public API.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from lite_query.core.callbacks import (
    AuthorizerCallback,
    CallbackRegistry,
    FunctionCallback,
    TraceCallback,
)
from lite_query.core.connection import DatabaseConfig, load_adapter
from lite_query.core.enums import ResultCode, TransactionMode
from lite_query.core.exceptions import (
    BusyError,
    ClosedError,
    DatabaseError,
    FunctionError,
    LiteQueryError,
    translate_error,
)
from lite_query.core.lexer import is_blank
from lite_query.core.params import normalize_bind_vars
from lite_query.core.result_set import ResultSet
from lite_query.core.statement import Statement
from lite_query.core.transaction import Transaction, TransactionManager, transaction_mode

logger = logging.getLogger(__name__)

_QUOTED_DEFAULT = re.compile(r"^'(.*)'$", re.DOTALL)


@dataclass(frozen=True)
class ColumnInfo:
    """One row of ``Database.table_info()``."""

    cid: int
    name: str
    type: str
    notnull: int
    dflt_value: str | None
    pk: int


def _column_default(value: Any) -> str | None:
    """Unquote a string-literal column default; ``NULL`` means no default."""
    if value is None:
        return None
    text = str(value)
    if text.upper() == "NULL":
        return None
    match = _QUOTED_DEFAULT.match(text)
    if match:
        return match.group(1).replace("''", "'")
    return text


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class Database:
    """A connection to one database.

    A Database and everything created from it must be used from one thread
    at a time; concurrent use is not supported. The one exception is
    ``interrupt()``, which may be called from a custom function running
    inside a statement on the same connection.

    Args:
        database: Path handed to the engine (``":memory:"`` by default) or a
            complete DatabaseConfig.
        **options: DatabaseConfig fields overriding the defaults.

    Raises:
        AdapterError: If the configured driver is unknown.
        DatabaseError: If the engine cannot open the database.
    """

    def __init__(self, database: str | DatabaseConfig = ":memory:", **options: Any) -> None:
        if isinstance(database, DatabaseConfig):
            config = DatabaseConfig(**{**database.model_dump(), **options})
        else:
            config = DatabaseConfig(database=database, **options)

        self._config = config
        self._adapter = load_adapter(config.driver)
        try:
            self._handle = self._adapter.open(config)
        except self._adapter.errors as exc:
            code, message = self._adapter.error_status(exc)
            raise translate_error(code, message) from exc

        self.results_as_hash = config.results_as_hash
        self._closed = False
        self._statements: set[Statement] = set()
        self._callbacks = CallbackRegistry(self._adapter, self._handle)
        self._transactions = TransactionManager(self)
        self._errcode = int(ResultCode.OK)
        self._errmsg = "not an error"
        logger.debug("Opened database %s", config.database)

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> Database:
        """Create and open a Database from a DatabaseConfig."""
        return cls(config)

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    # --- Statements ---

    def prepare(self, sql: str, callback: Callable[[Statement], Any] | None = None) -> Any:
        """Prepare the first statement of *sql*.

        With a *callback*, it is called with the statement, the statement is
        closed afterwards and the callback's value is returned.
        """
        statement = Statement(self, sql)
        if callback is None:
            return statement
        with statement:
            return callback(statement)

    def execute(
        self,
        sql: str,
        *bind_vars: Any,
        callback: Callable[[Any], Any] | None = None,
    ) -> list[Any]:
        """Run *sql* and return every row.

        With a *callback*, it is called once per row instead and an empty
        list is returned.
        """
        with self.prepare(sql) as statement, statement.execute(*bind_vars) as result:
            if callback is None:
                return list(result)
            for row in result:
                callback(row)
            return []

    def execute2(
        self,
        sql: str,
        *bind_vars: Any,
        callback: Callable[[Any], Any] | None = None,
    ) -> list[Any]:
        """Like ``execute``, with the list of column names ahead of the rows."""
        with self.prepare(sql) as statement, statement.execute(*bind_vars) as result:
            columns = result.columns
            if callback is None:
                return [columns, *result]
            callback(columns)
            for row in result:
                callback(row)
            return []

    def execute_batch(self, sql: str, *bind_vars: Any) -> None:
        """Run every statement in *sql* in order.

        The bind values are applied to each statement whose placeholders
        they fit; statements they do not fit run unbound.
        """
        values = normalize_bind_vars(bind_vars)
        while not is_blank(sql):
            with self.prepare(sql) as statement:
                if values is not None and self._fits(statement, values):
                    statement.bind_params(values)
                for _ in statement:
                    pass
                sql = statement.remainder

    @staticmethod
    def _fits(statement: Statement, values: list[Any] | dict[str, Any]) -> bool:
        if isinstance(values, dict):
            names = {key.lstrip(":@$") for key in values}
            return names == set(statement.parameter_names)
        return len(values) == statement.parameter_count

    def query(
        self,
        sql: str,
        *bind_vars: Any,
        callback: Callable[[ResultSet], Any] | None = None,
    ) -> Any:
        """Run *sql* and return a live ResultSet that owns its statement.

        With a *callback*, it is called with the result set, which is closed
        afterwards whether or not the callback raised; the callback's value
        is returned.
        """
        statement = self.prepare(sql)
        try:
            if bind_vars:
                statement.bind_params(*bind_vars)
            result = ResultSet(statement, owns_statement=True)
        except LiteQueryError:
            statement.close()
            raise
        if callback is None:
            return result
        with result:
            return callback(result)

    def get_first_row(self, sql: str, *bind_vars: Any) -> Any:
        """Return the first row of *sql*, or None when it yields no rows."""
        with self.query(sql, *bind_vars) as result:
            return result.next()

    def get_first_value(self, sql: str, *bind_vars: Any) -> Any:
        """Return the first column of the first row, or None.

        Reads the raw row, so the result is the same whether or not
        ``results_as_hash`` is set (even when column names repeat).
        """
        with self.prepare(sql) as statement:
            if bind_vars:
                statement.bind_params(*bind_vars)
            row = statement.step()
        return None if row is None else row[0]

    def table_info(self, table: str) -> list[ColumnInfo]:
        """Describe the columns of *table*."""
        with self.prepare(f"PRAGMA table_info({_quote_identifier(table)})") as statement:
            return [
                ColumnInfo(
                    cid=cid,
                    name=name,
                    type=type_,
                    notnull=notnull,
                    dflt_value=_column_default(default),
                    pk=pk,
                )
                for cid, name, type_, notnull, default, pk in statement
            ]

    # --- Counters ---

    def interrupt(self) -> None:
        """Abort the running statement at its next engine interaction."""
        self._check_open()
        self._adapter.interrupt(self._handle)

    @property
    def changes(self) -> int:
        """Rows changed by the most recent INSERT, UPDATE or DELETE."""
        self._check_open()
        with self._callbacks.suspended():
            return self._adapter.changes(self._handle)

    @property
    def total_changes(self) -> int:
        """Rows changed since the database was opened."""
        self._check_open()
        return self._adapter.total_changes(self._handle)

    @property
    def last_insert_row_id(self) -> int:
        self._check_open()
        with self._callbacks.suspended():
            return self._adapter.last_insert_rowid(self._handle)

    @property
    def errcode(self) -> int:
        """Result code of the last statement (0 after a success)."""
        return self._errcode

    @property
    def errmsg(self) -> str:
        return self._errmsg

    # --- Transactions ---

    def transaction(self, mode: TransactionMode | str = TransactionMode.DEFERRED) -> Transaction:
        """Begin a transaction now.

        The returned Transaction can be used as a context manager to commit
        on success and roll back on error::

            with db.transaction():
                db.execute("insert into foo (b) values (?)", "x")
        """
        mode = transaction_mode(mode)
        self._transactions.begin(mode)
        return Transaction(self._transactions, mode)

    def begin(self, mode: TransactionMode | str = TransactionMode.DEFERRED) -> None:
        self._transactions.begin(mode)

    def commit(self) -> None:
        self._transactions.commit()

    def rollback(self) -> None:
        self._transactions.rollback()

    @property
    def transaction_active(self) -> bool:
        self._check_open()
        return self._transactions.active

    # --- Callbacks ---

    def trace(self, callback: TraceCallback | None) -> None:
        """Call *callback* with the SQL of every statement run (None clears)."""
        self._check_open()
        self._callbacks.set_trace(callback)

    def authorizer(self, callback: AuthorizerCallback | None) -> None:
        """Install an authorizer (None clears).

        The callback receives ``(action, arg1, arg2, dbname, source)`` and
        returns an AuthorizerResult, an int, True (allow), False (deny) or
        None (ignore).
        """
        self._check_open()
        self._callbacks.set_authorizer(callback)

    def create_function(
        self,
        name: str,
        arity: int,
        callback: FunctionCallback,
        *,
        deterministic: bool = False,
    ) -> None:
        """Register a SQL function called as ``callback(ctx, *args)``.

        The callback reports its value through ``ctx.result``. Raising, or
        calling ``ctx.set_error()``, fails the statement with FunctionError.
        An arity of -1 accepts any number of arguments.
        """
        self._check_open()
        self._callbacks.create_function(name, arity, callback, deterministic=deterministic)

    # --- Lifecycle ---

    @staticmethod
    def complete(sql: str) -> bool:
        """True when *sql* ends with a complete statement (lexical check only)."""
        return complete(sql)

    def close(self) -> None:
        """Close the connection. Calling it again is a no-op.

        Raises:
            BusyError: In strict mode, while statements are still open.
        """
        if self._closed:
            return
        open_statements = [s for s in self._statements if not s.closed]
        if open_statements:
            if self._config.strict:
                raise BusyError("unable to close due to unfinalized statements")
            logger.warning(
                "Closing %d unfinalized statement(s) on %s",
                len(open_statements),
                self._config.database,
            )
            for statement in open_statements:
                logger.debug("Finalizing statement: %s", statement.sql)
                statement.close()

        self._adapter.close(self._handle)
        self._closed = True
        logger.debug("Closed database %s", self._config.database)

    # --- Internals used by Statement / ResultSet / TransactionManager ---

    def _check_open(self) -> None:
        if self._closed:
            raise ClosedError("database")

    def _prepare(self, sql: str, params: Any) -> None:
        with self._callbacks.suspended(trace=True, authorizer=False):
            try:
                self._adapter.prepare(self._handle, sql, params)
            except self._adapter.errors as exc:
                error = self._translate(exc, sql, prepare=True)
                raise error from error.__cause__

    def _translate(self, exc: BaseException, sql: str, *, prepare: bool = False) -> DatabaseError:
        """Turn an engine exception into a typed error and record it."""
        code, message = self._adapter.error_status(exc)
        pending = None if prepare else self._callbacks.take_pending_error()
        if pending is not None:
            message, cause = pending
            error: DatabaseError = FunctionError(message, sql=sql)
        else:
            error = translate_error(code, message, sql=sql, prepare=prepare)
            cause = exc
        error.__cause__ = cause

        self._errcode = error.code if error.code is not None else int(ResultCode.ERROR)
        self._errmsg = message
        self._transactions.sync()
        return error

    def _statement_finished(self) -> None:
        self._errcode = int(ResultCode.OK)
        self._errmsg = "not an error"
        self._transactions.sync()

    def _register(self, statement: Statement) -> None:
        self._statements.add(statement)

    def _unregister(self, statement: Statement) -> None:
        self._statements.discard(statement)


def complete(sql: str) -> bool:
    """True when *sql* ends with a complete statement (lexical check only)."""
    return load_adapter(DatabaseConfig().driver).complete(sql)
