"""Engine adapter protocol.

The embedded engine is an external collaborator. Everything LiteQuery needs
from it is listed here; an adapter owns all native calling-convention detail.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from lite_query.core.connection import DatabaseConfig


@runtime_checkable
class EngineAdapter(Protocol):
    """Synchronous embedded-engine adapter protocol."""

    @property
    def errors(self) -> tuple[type[BaseException], ...]:
        """Exception types the engine raises."""
        ...

    def open(self, config: DatabaseConfig) -> Any:
        """Open a connection handle."""
        ...

    def close(self, handle: Any) -> None:
        """Close a connection handle."""
        ...

    def prepare(self, handle: Any, sql: str, params: Any) -> None:
        """Compile *sql* without running it, raising on failure."""
        ...

    def cursor(self, handle: Any) -> Any:
        """Create a cursor for one statement execution."""
        ...

    def run(self, cursor: Any, sql: str, params: Any) -> None:
        """Bind *params* and start executing *sql* on *cursor*."""
        ...

    def fetch(self, cursor: Any) -> tuple[Any, ...] | None:
        """Step to the next row, or return None when done."""
        ...

    def columns(self, cursor: Any) -> list[str]:
        """Result column names of the running statement."""
        ...

    def discard(self, cursor: Any) -> None:
        """Release the cursor and its native statement."""
        ...

    def in_transaction(self, handle: Any) -> bool:
        """Whether the engine currently has a transaction open."""
        ...

    def interrupt(self, handle: Any) -> None:
        """Abort running statements as soon as possible."""
        ...

    def changes(self, handle: Any) -> int:
        """Rows changed by the most recent statement."""
        ...

    def total_changes(self, handle: Any) -> int:
        """Rows changed since the connection was opened."""
        ...

    def last_insert_rowid(self, handle: Any) -> int:
        """Rowid of the most recent successful insert."""
        ...

    def set_authorizer(self, handle: Any, callback: Callable[..., int] | None) -> None:
        """Install (or clear) the authorizer callback."""
        ...

    def set_trace(self, handle: Any, callback: Callable[[str], None] | None) -> None:
        """Install (or clear) the statement trace callback."""
        ...

    def create_function(
        self,
        handle: Any,
        name: str,
        arity: int,
        callback: Callable[..., Any],
        deterministic: bool = False,
    ) -> None:
        """Register a scalar SQL function."""
        ...

    def complete(self, sql: str) -> bool:
        """Lexical check: does *sql* end with a complete statement?"""
        ...

    def error_status(self, exc: BaseException) -> tuple[int | None, str]:
        """Primary result code and message of an engine exception."""
        ...
