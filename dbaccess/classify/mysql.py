from __future__ import annotations
from typing import Any

from ..result.error import ErrorType
from .base import TableClassifier, first_attr

DUPLICATE_ENTRY = 1062
LOCK_WAIT_TIMEOUT = 1205
DEADLOCK_FOUND = 1213
ROW_IS_REFERENCED = 1451
NO_REFERENCED_ROW = 1452
ROW_IS_REFERENCED_OLD = 1217
NO_REFERENCED_ROW_OLD = 1216
DATA_TOO_LONG = 1406
BAD_NULL = 1048
CHECK_CONSTRAINT_VIOLATED = 3819
QUERY_INTERRUPTED = 1317
QUERY_TIMEOUT = 3024
SIGNAL_EXCEPTION = 1644
CANNOT_CONNECT = 2003
SERVER_GONE = 2006
SERVER_LOST = 2013


def _mysql_errno(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("not an error number")
    return int(value)


class MySqlClassifier(TableClassifier):
    """
    Classifies MySQL / MariaDB errors by error number.

    Reads ``errno`` (mysql-connector) or the first positional argument
    (PyMySQL, mysqlclient, aiomysql).
    """

    table = {
        DUPLICATE_ENTRY: ErrorType.CONFLICT,
        DEADLOCK_FOUND: ErrorType.UNAVAILABLE,
        LOCK_WAIT_TIMEOUT: ErrorType.TIMEOUT,
        QUERY_INTERRUPTED: ErrorType.TIMEOUT,
        QUERY_TIMEOUT: ErrorType.TIMEOUT,
        ROW_IS_REFERENCED: ErrorType.BUSINESS,
        NO_REFERENCED_ROW: ErrorType.BUSINESS,
        ROW_IS_REFERENCED_OLD: ErrorType.BUSINESS,
        NO_REFERENCED_ROW_OLD: ErrorType.BUSINESS,
        SIGNAL_EXCEPTION: ErrorType.BUSINESS,
        DATA_TOO_LONG: ErrorType.VALIDATION,
        BAD_NULL: ErrorType.VALIDATION,
        CHECK_CONSTRAINT_VIOLATED: ErrorType.VALIDATION,
        CANNOT_CONNECT: ErrorType.UNAVAILABLE,
        SERVER_GONE: ErrorType.UNAVAILABLE,
        SERVER_LOST: ErrorType.UNAVAILABLE,
    }

    def native_code(self, exc: BaseException) -> Any:
        if isinstance(exc, OSError):
            return None
        code = first_attr(exc, "errno", convert=_mysql_errno)
        if code is not None:
            return code
        if len(exc.args) > 1 and isinstance(exc.args[0], int) and not isinstance(exc.args[0], bool):
            return exc.args[0]
        return None

    def message(self, exc: BaseException) -> str:
        msg = first_attr(exc, "msg", convert=str)
        if msg:
            return msg
        if len(exc.args) > 1:
            return str(exc.args[1])
        return str(exc)
