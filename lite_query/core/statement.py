"""Prepared statements.

A Statement owns one prepared engine statement: it is compiled when created,
bound, stepped row by row, reset for re-execution and finally closed. The
native cursor only lives while the statement is being stepped.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, NoReturn

from lite_query.core.exceptions import BindingError, ClosedError
from lite_query.core.lexer import is_blank, split_statement
from lite_query.core.params import (
    bind,
    engine_params,
    normalize_bind_vars,
    resolve_index,
    scan_placeholders,
    to_bindable,
)

if TYPE_CHECKING:
    from lite_query.core.database import Database
    from lite_query.core.result_set import ResultSet


class Statement:
    """A single prepared SQL statement.

    Only the first statement of *sql* is prepared; the unparsed rest is kept
    in ``remainder`` (see ``Database.execute_batch``).

    Raises:
        SQLSyntaxError: If the engine cannot compile the statement.
        AuthorizationError: If the authorizer denies it.
        BindingError: If the statement mixes positional and named placeholders.
    """

    def __init__(self, database: Database, sql: str) -> None:
        database._check_open()
        self._database = database
        self.sql, self.remainder = split_statement(sql, database._adapter.complete)
        self._placeholders = scan_placeholders(self.sql)
        if self._placeholders.mixed:
            raise BindingError(
                "cannot mix positional and named placeholders in one statement",
                sql=self.sql,
            )
        self._blank = is_blank(self.sql)
        self._values: dict[int, Any] = {}
        self._cursor: Any = None
        self._columns: list[str] | None = None
        self._done = False
        self._closed = False

        if not self._blank:
            database._prepare(self.sql, engine_params(self._placeholders, {}))
        database._register(self)

    def __enter__(self) -> Statement:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        """Step through the remaining raw rows."""
        while True:
            row = self.step()
            if row is None:
                return
            yield row

    @property
    def database(self) -> Database:
        return self._database

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def done(self) -> bool:
        """True once the statement has been stepped to completion."""
        return self._done

    @property
    def active(self) -> bool:
        """True while the statement is started but not yet done."""
        return self._cursor is not None

    @property
    def parameter_count(self) -> int:
        return self._placeholders.count

    @property
    def parameter_names(self) -> list[str]:
        return list(self._placeholders.names)

    @property
    def columns(self) -> list[str]:
        """Result column names; populated once the statement has started."""
        return list(self._columns or [])

    # --- Binding ---

    def bind_params(self, *bind_vars: Any) -> None:
        """Replace all bindings. Accepts the same shapes as ``Database.execute``."""
        self._check_open()
        self.reset()
        self._values = bind(self._placeholders, normalize_bind_vars(bind_vars))

    def bind_param(self, key: int | str, value: Any) -> None:
        """Bind one value by 1-based position or by name."""
        self._check_open()
        self.reset()
        self._values[resolve_index(self._placeholders, key)] = to_bindable(value)

    def clear_bindings(self) -> None:
        self._check_open()
        self.reset()
        self._values = {}

    # --- Execution ---

    def execute(self, *bind_vars: Any) -> ResultSet:
        """Reset, optionally rebind, and start the statement."""
        from lite_query.core.result_set import ResultSet

        self._check_open()
        self.reset()
        if bind_vars:
            self.bind_params(*bind_vars)
        return ResultSet(self)

    def execute_rows(self, *bind_vars: Any) -> list[Any]:
        """Execute and materialize every row."""
        return list(self.execute(*bind_vars))

    def step(self) -> tuple[Any, ...] | None:
        """Advance to the next row; None once the statement is done."""
        self._check_open()
        if self._done:
            return None
        if self._cursor is None:
            self._start()
            if self._done:
                return None

        try:
            row = self._database._adapter.fetch(self._cursor)
        except self._database._adapter.errors as exc:
            self._fail(exc)
        if row is None:
            self._finish()
            return None
        return tuple(row)

    def reset(self) -> None:
        """Rewind to the pre-execution state, keeping bindings."""
        self._release_cursor()
        self._done = False

    def close(self) -> None:
        """Finalize the statement. Calling it again is a no-op."""
        if self._closed:
            return
        self._release_cursor()
        self._closed = True
        self._database._unregister(self)

    # --- Internals ---

    def _start(self) -> None:
        """Bind and begin execution (the engine runs up to the first row)."""
        self._check_open()
        if self._cursor is not None:
            return
        if self._blank:
            self._columns = []
            self._done = True
            return

        adapter = self._database._adapter
        self._database._callbacks.take_pending_error()
        self._cursor = adapter.cursor(self._database._handle)
        try:
            adapter.run(self._cursor, self.sql, engine_params(self._placeholders, self._values))
        except adapter.errors as exc:
            self._fail(exc)
        self._columns = adapter.columns(self._cursor)

    def _finish(self) -> None:
        self._release_cursor()
        self._done = True
        self._database._statement_finished()

    def _fail(self, exc: BaseException) -> NoReturn:
        self._release_cursor()
        self._done = True
        error = self._database._translate(exc, self.sql)
        raise error from error.__cause__

    def _release_cursor(self) -> None:
        if self._cursor is not None:
            cursor, self._cursor = self._cursor, None
            self._database._adapter.discard(cursor)

    def _check_open(self) -> None:
        if self._closed:
            raise ClosedError("statement")
        self._database._check_open()
