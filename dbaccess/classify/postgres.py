from __future__ import annotations
from typing import Any

from ..result.error import ErrorType
from .base import TableClassifier, first_attr

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"
CHECK_VIOLATION = "23514"
QUERY_CANCELED = "57014"
ADMIN_SHUTDOWN = "57P01"
DEADLOCK_DETECTED = "40P01"
SERIALIZATION_FAILURE = "40001"
RAISE_EXCEPTION = "P0001"

# SQLSTATE classes mapped as a whole when the exact code is not listed.
CLASS_TYPES = {
    "08": ErrorType.UNAVAILABLE,  # connection exception
    "22": ErrorType.VALIDATION,   # data exception
    "53": ErrorType.UNAVAILABLE,  # insufficient resources
}


class PostgresClassifier(TableClassifier):
    """
    Classifies PostgreSQL errors by SQLSTATE.

    Duck-typed: reads ``sqlstate`` (psycopg 3, asyncpg) or ``pgcode``
    (psycopg2), so no driver needs to be importable.
    """

    table = {
        UNIQUE_VIOLATION: ErrorType.CONFLICT,
        FOREIGN_KEY_VIOLATION: ErrorType.BUSINESS,
        NOT_NULL_VIOLATION: ErrorType.VALIDATION,
        CHECK_VIOLATION: ErrorType.VALIDATION,
        QUERY_CANCELED: ErrorType.TIMEOUT,
        ADMIN_SHUTDOWN: ErrorType.UNAVAILABLE,
        DEADLOCK_DETECTED: ErrorType.UNAVAILABLE,
        SERIALIZATION_FAILURE: ErrorType.UNAVAILABLE,
        RAISE_EXCEPTION: ErrorType.BUSINESS,
    }

    def native_code(self, exc: BaseException) -> Any:
        return first_attr(exc, "sqlstate", "pgcode", convert=str)

    def lookup(self, code: Any) -> ErrorType:
        if code in self.table:
            return self.table[code]
        return CLASS_TYPES.get(str(code)[:2], self.default_type)

    def message(self, exc: BaseException) -> str:
        return first_attr(exc, "pgerror", "message", convert=str) or str(exc)
