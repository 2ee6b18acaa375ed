from __future__ import annotations
from typing import Any

from ..result.error import ErrorType
from .base import TableClassifier, first_attr

UNIQUE_CONSTRAINT_VIOLATION = 1      # ORA-00001
DEADLOCK_DETECTED = 60               # ORA-00060
USER_REQUESTED_CANCEL = 1013         # ORA-01013
DISTRIBUTED_LOCK_TIMEOUT = 2049      # ORA-02049
CHECK_CONSTRAINT_VIOLATED = 2290     # ORA-02290
PARENT_KEY_NOT_FOUND = 2291          # ORA-02291
CHILD_RECORD_FOUND = 2292            # ORA-02292
CANNOT_INSERT_NULL = 1400            # ORA-01400
NOT_CONNECTED = 3114                 # ORA-03114
END_OF_FILE_ON_CHANNEL = 3113        # ORA-03113


class OracleClassifier(TableClassifier):
    """
    Classifies Oracle errors by ORA- number.

    python-oracledb raises ``DatabaseError(error_obj)`` where ``error_obj``
    carries ``code``; the attribute is also looked up on the exception itself.
    """

    table = {
        UNIQUE_CONSTRAINT_VIOLATION: ErrorType.CONFLICT,
        DEADLOCK_DETECTED: ErrorType.UNAVAILABLE,
        NOT_CONNECTED: ErrorType.UNAVAILABLE,
        END_OF_FILE_ON_CHANNEL: ErrorType.UNAVAILABLE,
        USER_REQUESTED_CANCEL: ErrorType.TIMEOUT,
        DISTRIBUTED_LOCK_TIMEOUT: ErrorType.TIMEOUT,
        PARENT_KEY_NOT_FOUND: ErrorType.BUSINESS,
        CHILD_RECORD_FOUND: ErrorType.BUSINESS,
        CHECK_CONSTRAINT_VIOLATED: ErrorType.VALIDATION,
        CANNOT_INSERT_NULL: ErrorType.VALIDATION,
    }

    def _error_object(self, exc: BaseException) -> Any:
        if exc.args and hasattr(exc.args[0], "code"):
            return exc.args[0]
        return exc

    def native_code(self, exc: BaseException) -> Any:
        return first_attr(self._error_object(exc), "code", convert=int)

    def message(self, exc: BaseException) -> str:
        return first_attr(self._error_object(exc), "message", convert=str) or str(exc)
