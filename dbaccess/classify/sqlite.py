from __future__ import annotations
import sqlite3
from typing import Any

from ..result.error import ErrorType
from .base import TableClassifier

# SQLite primary result codes
SQLITE_BUSY = 5
SQLITE_LOCKED = 6
SQLITE_INTERRUPT = 9
SQLITE_IOERR = 10
SQLITE_CORRUPT = 11
SQLITE_CONSTRAINT = 19
SQLITE_MISMATCH = 20

# Extended constraint codes
SQLITE_CONSTRAINT_CHECK = 275
SQLITE_CONSTRAINT_FOREIGNKEY = 787
SQLITE_CONSTRAINT_NOTNULL = 1299
SQLITE_CONSTRAINT_PRIMARYKEY = 1555
SQLITE_CONSTRAINT_UNIQUE = 2067


class SqliteClassifier(TableClassifier):
    """Classifies ``sqlite3`` errors (also raised by aiosqlite) by result code."""

    table = {
        SQLITE_CONSTRAINT_UNIQUE: ErrorType.CONFLICT,
        SQLITE_CONSTRAINT_PRIMARYKEY: ErrorType.CONFLICT,
        SQLITE_CONSTRAINT_FOREIGNKEY: ErrorType.BUSINESS,
        SQLITE_CONSTRAINT_CHECK: ErrorType.VALIDATION,
        SQLITE_CONSTRAINT_NOTNULL: ErrorType.VALIDATION,
        SQLITE_MISMATCH: ErrorType.VALIDATION,
        SQLITE_BUSY: ErrorType.UNAVAILABLE,
        SQLITE_LOCKED: ErrorType.UNAVAILABLE,
        SQLITE_INTERRUPT: ErrorType.TIMEOUT,
    }

    def recognizes(self, exc: BaseException) -> bool:
        return isinstance(exc, sqlite3.Error)

    def native_code(self, exc: BaseException) -> Any:
        code = getattr(exc, "sqlite_errorcode", None)
        if code is None:
            return getattr(exc, "sqlite_errorname", None) or type(exc).__name__
        return code

    def lookup(self, code: Any) -> ErrorType:
        if not isinstance(code, int):
            return self.default_type
        if code in self.table:
            return self.table[code]
        return self.table.get(code & 0xFF, self.default_type)
