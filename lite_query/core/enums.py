"""Engine result codes and execution-layer enumerations."""

from __future__ import annotations

from enum import Enum, IntEnum


class ResultCode(IntEnum):
    """Primary engine result codes."""

    OK = 0
    ERROR = 1
    INTERNAL = 2
    PERM = 3
    ABORT = 4
    BUSY = 5
    LOCKED = 6
    NOMEM = 7
    READONLY = 8
    INTERRUPT = 9
    IOERR = 10
    CORRUPT = 11
    NOTFOUND = 12
    FULL = 13
    CANTOPEN = 14
    PROTOCOL = 15
    EMPTY = 16
    SCHEMA = 17
    TOOBIG = 18
    CONSTRAINT = 19
    MISMATCH = 20
    MISUSE = 21
    NOLFS = 22
    AUTH = 23
    FORMAT = 24
    RANGE = 25
    NOTADB = 26


class AuthorizerResult(IntEnum):
    """Decisions an authorizer callback can return to the engine."""

    ALLOW = 0
    DENY = 1
    IGNORE = 2


class TransactionMode(Enum):
    """Locking behaviour requested by ``BEGIN``."""

    DEFERRED = "deferred"
    IMMEDIATE = "immediate"
    EXCLUSIVE = "exclusive"


class TransactionState(Enum):
    NONE = "none"
    ACTIVE = "active"
