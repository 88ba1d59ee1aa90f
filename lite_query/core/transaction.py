"""Transaction management.

The engine is the source of truth for whether a transaction is open: a
constraint failure under ``INSERT OR ROLLBACK`` ends the transaction without
any call from us, so the state is read from the engine rather than cached.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from lite_query.core.enums import TransactionMode, TransactionState
from lite_query.core.exceptions import SQLError, TransactionStateError

if TYPE_CHECKING:
    from lite_query.core.database import Database

logger = logging.getLogger(__name__)


def transaction_mode(mode: TransactionMode | str) -> TransactionMode:
    """Resolve a mode given as a member or a case-insensitive name."""
    if isinstance(mode, TransactionMode):
        return mode
    try:
        return TransactionMode(str(mode).lower())
    except ValueError as exc:
        raise SQLError(f"unknown transaction mode: {mode!r}") from exc


class TransactionManager:
    """Begin/commit/rollback state machine for one Database."""

    def __init__(self, database: Database) -> None:
        self._database = database
        self._last_seen = TransactionState.NONE

    @property
    def state(self) -> TransactionState:
        self._database._check_open()
        if self._database._adapter.in_transaction(self._database._handle):
            return TransactionState.ACTIVE
        return TransactionState.NONE

    @property
    def active(self) -> bool:
        return self.state is TransactionState.ACTIVE

    def sync(self) -> TransactionState:
        """Re-read the engine state after a statement; log engine-side endings."""
        state = self.state
        if self._last_seen is TransactionState.ACTIVE and state is TransactionState.NONE:
            logger.debug("Transaction ended by the engine")
        self._last_seen = state
        return state

    def begin(self, mode: TransactionMode | str = TransactionMode.DEFERRED) -> None:
        mode = transaction_mode(mode)
        if self.active:
            raise TransactionStateError("cannot start a transaction within a transaction")
        self._database.execute(f"begin {mode.value} transaction")
        logger.debug("Began %s transaction", mode.value)

    def commit(self) -> None:
        if not self.active:
            raise TransactionStateError("cannot commit - no transaction is active")
        self._last_seen = TransactionState.NONE
        self._database.execute("commit transaction")
        logger.debug("Committed transaction")

    def rollback(self) -> None:
        if not self.active:
            raise TransactionStateError("cannot rollback - no transaction is active")
        self._last_seen = TransactionState.NONE
        self._database.execute("rollback transaction")
        logger.debug("Rolled back transaction")


class Transaction:
    """Scoped transaction returned by ``Database.transaction()``.

    The transaction is already open when this object exists. As a context
    manager it commits on normal exit and rolls back when the block raises.
    Calling ``commit()``/``rollback()`` inside the block ends the
    transaction early, so the closing commit raises TransactionStateError.
    """

    def __init__(self, manager: TransactionManager, mode: TransactionMode) -> None:
        self._manager = manager
        self.mode = mode

    def __enter__(self) -> Database:
        return self._manager._database

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if exc_type is None:
            self._manager.commit()
        elif self._manager.active:
            self._manager.rollback()
        else:
            logger.debug("Transaction already ended; not rolling back after %s", exc_type.__name__)
