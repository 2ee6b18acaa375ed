from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .result.error import Error


class DBAccessError(Exception):
    """Base exception for dbaccess."""
    pass


# Usage errors: raised immediately, never classified.

class UsageError(DBAccessError):
    """Raised when the API is used incorrectly."""
    pass

class DisposedError(UsageError):
    """Raised when a disposed object is used."""

    def __init__(self, object_name: str):
        super().__init__(f"Cannot access a disposed object: {object_name}")
        self.object_name = object_name

class InvalidOperationError(UsageError):
    """Raised when an operation is not valid in the current state."""
    pass

class TransactionActiveError(InvalidOperationError):
    """Raised when a transaction is started while another one is active."""

    def __init__(self, message: str = "transaction already active"):
        super().__init__(message)

class MissingCollaboratorError(UsageError):
    """Raised when a required collaborator is None."""

    def __init__(self, name: str):
        super().__init__(f"Required collaborator is missing: {name}")
        self.name = name

class SynchronousCallError(UsageError):
    """Raised when a blocking primitive is called on an async-only driver."""
    pass

class UnknownBackendError(UsageError):
    """Raised when a registry has no backend under the requested name."""
    pass

class ResultAccessError(UsageError):
    """Raised when the value of a Failure (or the error of a Success) is read."""
    pass

class HistoryError(DBAccessError):
    """Raised when history operations fail."""
    pass


# Execution errors: raised only by the legacy throwing API.

class ExecutionError(DBAccessError):
    """A classified database failure re-raised as an exception."""

    def __init__(self, error: "Error"):
        super().__init__(f"[{error.type.value}:{error.code}] {error.message}")
        self.error = error

    @property
    def code(self) -> str:
        return self.error.code

class ValidationError(ExecutionError):
    pass

class ConflictError(ExecutionError):
    pass

class TimeoutExpiredError(ExecutionError):
    pass

class UnavailableError(ExecutionError):
    pass

class DatabaseError(ExecutionError):
    pass

class BusinessError(ExecutionError):
    pass

class UnexpectedError(ExecutionError):
    pass
