from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Type

from ..exceptions import (
    ExecutionError,
    ValidationError,
    ConflictError,
    TimeoutExpiredError,
    UnavailableError,
    DatabaseError,
    BusinessError,
    UnexpectedError,
)


class ErrorType(str, Enum):
    """Closed set of failure categories produced by error classifiers."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    DATABASE = "database"
    BUSINESS = "business"
    UNEXPECTED = "unexpected"


_EXCEPTION_TYPES: Dict[ErrorType, Type[ExecutionError]] = {
    ErrorType.VALIDATION: ValidationError,
    ErrorType.CONFLICT: ConflictError,
    ErrorType.TIMEOUT: TimeoutExpiredError,
    ErrorType.UNAVAILABLE: UnavailableError,
    ErrorType.DATABASE: DatabaseError,
    ErrorType.BUSINESS: BusinessError,
    ErrorType.UNEXPECTED: UnexpectedError,
}


@dataclass(frozen=True)
class Error:
    """
    Normalized failure value: a stable ``{type, code, message}`` triple.

    Produced by an error classifier from a caught backend failure and carried
    by ``Failure`` results. Callers branch on ``type`` (for instance retry only
    when ``is_transient``) and log ``code``/``message``.
    """

    type: ErrorType
    code: str
    message: str

    @classmethod
    def validation(cls, code: Any, message: str) -> Error:
        return cls(ErrorType.VALIDATION, str(code), message)

    @classmethod
    def conflict(cls, code: Any, message: str) -> Error:
        return cls(ErrorType.CONFLICT, str(code), message)

    @classmethod
    def timeout(cls, code: Any, message: str) -> Error:
        return cls(ErrorType.TIMEOUT, str(code), message)

    @classmethod
    def unavailable(cls, code: Any, message: str) -> Error:
        return cls(ErrorType.UNAVAILABLE, str(code), message)

    @classmethod
    def database(cls, code: Any, message: str) -> Error:
        return cls(ErrorType.DATABASE, str(code), message)

    @classmethod
    def business(cls, code: Any, message: str) -> Error:
        return cls(ErrorType.BUSINESS, str(code), message)

    @classmethod
    def unexpected(cls, code: Any, message: str) -> Error:
        return cls(ErrorType.UNEXPECTED, str(code), message)

    @classmethod
    def from_exception(cls, exc: BaseException) -> Error:
        """Wrap any failure generically as an Unexpected error."""
        return cls(ErrorType.UNEXPECTED, type(exc).__name__, str(exc))

    @property
    def is_transient(self) -> bool:
        return self.type in (ErrorType.UNAVAILABLE, ErrorType.TIMEOUT)

    def to_exception(self) -> ExecutionError:
        return _EXCEPTION_TYPES[self.type](self)

    def to_dict(self) -> dict:
        return {"type": self.type.value, "code": self.code, "message": self.message}

    def __str__(self) -> str:
        return f"{self.type.value}[{self.code}]: {self.message}"
