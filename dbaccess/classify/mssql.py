from __future__ import annotations
import re
from typing import Any

from ..result.error import ErrorType
from .base import TableClassifier, first_attr

TIMEOUT = -2
UNIQUE_CONSTRAINT_VIOLATION = 2627
UNIQUE_INDEX_VIOLATION = 2601
DEADLOCK = 1205
CONSTRAINT_CONFLICT = 547
CANNOT_OPEN_DATABASE = 4060
READ_ONLY = 3906
USER_RAISED_ERROR = 50000
SESSION_EXPIRED = 50003

# pyodbc ends the message with "(number) (SQLExecDirectW)"; earlier parentheses can hold key values.
_NUMBER_IN_MESSAGE = re.compile(r"\((-?\d+)\)")


class MsSqlClassifier(TableClassifier):
    """Classifies SQL Server errors by error ``number``."""

    table = {
        UNIQUE_CONSTRAINT_VIOLATION: ErrorType.CONFLICT,
        UNIQUE_INDEX_VIOLATION: ErrorType.CONFLICT,
        DEADLOCK: ErrorType.UNAVAILABLE,
        TIMEOUT: ErrorType.TIMEOUT,
        CONSTRAINT_CONFLICT: ErrorType.BUSINESS,
        USER_RAISED_ERROR: ErrorType.BUSINESS,
        SESSION_EXPIRED: ErrorType.BUSINESS,
        CANNOT_OPEN_DATABASE: ErrorType.UNAVAILABLE,
        READ_ONLY: ErrorType.UNAVAILABLE,
    }

    def native_code(self, exc: BaseException) -> Any:
        code = first_attr(exc, "number", convert=int)
        if code is not None:
            return code
        # pymssql: args == (number, b"message")
        if (
            len(exc.args) > 1
            and isinstance(exc.args[0], int)
            and not isinstance(exc.args[0], bool)
            and isinstance(exc.args[1], (str, bytes))
        ):
            return exc.args[0]
        # pyodbc: args == (sqlstate, "[...] message (number) (SQLExecDirectW)")
        if len(exc.args) > 1 and isinstance(exc.args[1], str):
            numbers = _NUMBER_IN_MESSAGE.findall(exc.args[1])
            if numbers:
                return int(numbers[-1])
        return None

    def message(self, exc: BaseException) -> str:
        if len(exc.args) > 1:
            message = exc.args[1]
            return message.decode("utf-8", "replace") if isinstance(message, bytes) else str(message)
        return str(exc)
