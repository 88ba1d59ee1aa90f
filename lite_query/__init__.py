"""LiteQuery - SQLite execution and transaction core."""

from __future__ import annotations

from lite_query.core.callbacks import FunctionContext
from lite_query.core.connection import DatabaseConfig
from lite_query.core.database import ColumnInfo, Database, complete
from lite_query.core.enums import (
    AuthorizerResult,
    ResultCode,
    TransactionMode,
    TransactionState,
)
from lite_query.core.exceptions import (
    AdapterError,
    AuthorizationError,
    BindingError,
    BusyError,
    ClosedError,
    ConstraintError,
    DatabaseError,
    FunctionError,
    InterruptError,
    LiteQueryError,
    MiscEngineError,
    ParameterTypeError,
    SQLError,
    SQLSyntaxError,
    TransactionStateError,
)
from lite_query.core.params import Blob
from lite_query.core.result_set import ResultSet
from lite_query.core.statement import Statement
from lite_query.core.transaction import Transaction, TransactionManager

__all__ = [
    # Connection
    "Database",
    "DatabaseConfig",
    "ColumnInfo",
    "complete",
    # Statements
    "Statement",
    "ResultSet",
    "Blob",
    # Transaction
    "Transaction",
    "TransactionManager",
    # Callbacks
    "FunctionContext",
    # Enums
    "AuthorizerResult",
    "ResultCode",
    "TransactionMode",
    "TransactionState",
    # Exceptions
    "LiteQueryError",
    "AdapterError",
    "ClosedError",
    "DatabaseError",
    "SQLError",
    "SQLSyntaxError",
    "TransactionStateError",
    "ConstraintError",
    "AuthorizationError",
    "InterruptError",
    "BindingError",
    "ParameterTypeError",
    "FunctionError",
    "BusyError",
    "MiscEngineError",
]

__version__ = "0.1.0"
