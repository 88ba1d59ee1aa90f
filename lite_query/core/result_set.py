"""Forward-only result cursors."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from lite_query.core.exceptions import ClosedError, LiteQueryError

if TYPE_CHECKING:
    from lite_query.core.statement import Statement


class ResultSet:
    """Lazy, read-once row sequence over a running Statement.

    Rows are built when they are fetched, as a list of values or, when the
    owning Database has ``results_as_hash`` set at that moment, a dict keyed
    by column name.

    Args:
        statement: The statement to step; it is started immediately.
        owns_statement: Close the statement together with this result set
            (otherwise it is only reset).
    """

    def __init__(self, statement: Statement, *, owns_statement: bool = False) -> None:
        self._statement = statement
        self._owns_statement = owns_statement
        self._closed = False
        try:
            statement._start()
        except LiteQueryError:
            self.close()
            raise

    def __enter__(self) -> ResultSet:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __iter__(self) -> Iterator[Any]:
        return self

    def __next__(self) -> Any:
        row = self.next()
        if row is None:
            raise StopIteration
        return row

    @property
    def statement(self) -> Statement:
        return self._statement

    @property
    def columns(self) -> list[str]:
        return self._statement.columns

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def eof(self) -> bool:
        """True once every row has been read."""
        return self._statement.done

    def next(self) -> Any:
        """Return the next row, or None when exhausted (on every later call too)."""
        if self._closed:
            raise ClosedError("result set")
        try:
            values = self._statement.step()
        except LiteQueryError:
            self.close()
            raise
        if values is None:
            return None
        if self._statement.database.results_as_hash:
            return dict(zip(self._statement.columns, values, strict=True))
        return list(values)

    def close(self) -> None:
        """Release the underlying statement. Calling it again is a no-op."""
        if self._closed:
            return
        self._closed = True
        if self._owns_statement:
            self._statement.close()
        elif not self._statement.closed:
            self._statement.reset()
