"""
Success-or-failure values returned by every Result-based operation.

``Success(value)`` and ``Failure(error)`` are frozen, slotted dataclasses; the
``Result`` alias is their union. Both expose the same composition surface so
callers can chain work without try/except:

    result = (
        session.execute_scalar(sql("SELECT count(*) FROM users"))
        .map(int)
        .tap(lambda n: logger.info("%d users", n))
    )

    match result:
        case Success(value):
            ...
        case Failure(error) if error.is_transient:
            ...
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar, Union

from ..exceptions import ResultAccessError
from .error import Error

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    value: T

    @property
    def is_success(self) -> bool:
        return True

    @property
    def is_failure(self) -> bool:
        return False

    @property
    def error(self) -> Error:
        raise ResultAccessError("Success has no error")

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return Success(f(self.value))

    def bind(self, f: Callable[[T], Result[U]]) -> Result[U]:
        return f(self.value)

    def tap(self, f: Callable[[T], Any]) -> Result[T]:
        f(self.value)
        return self

    def tap_error(self, f: Callable[[Error], Any]) -> Result[T]:
        return self

    def map_error(self, f: Callable[[Error], Error]) -> Result[T]:
        return self

    def finally_(self, action: Callable[[], Any]) -> Result[T]:
        action()
        return self

    def value_or(self, default: T) -> T:
        return self.value

    def unwrap(self) -> T:
        return self.value

    def to_dict(self) -> dict:
        return {"success": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Success({self.value!r})"


@dataclass(frozen=True, slots=True)
class Failure(Generic[T]):
    error: Error

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_failure(self) -> bool:
        return True

    @property
    def value(self) -> T:
        raise ResultAccessError(f"Failure has no value: {self.error}")

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return self  # type: ignore[return-value]

    def bind(self, f: Callable[[T], Result[U]]) -> Result[U]:
        return self  # type: ignore[return-value]

    def tap(self, f: Callable[[T], Any]) -> Result[T]:
        return self

    def tap_error(self, f: Callable[[Error], Any]) -> Result[T]:
        f(self.error)
        return self

    def map_error(self, f: Callable[[Error], Error]) -> Result[T]:
        return Failure(f(self.error))

    def finally_(self, action: Callable[[], Any]) -> Result[T]:
        action()
        return self

    def value_or(self, default: T) -> T:
        return default

    def unwrap(self) -> T:
        """Raise the exception mapped from the error (legacy throwing style)."""
        raise self.error.to_exception()

    def to_dict(self) -> dict:
        return {"success": False, "error": self.error.to_dict()}

    def __repr__(self) -> str:
        return f"Failure({self.error!r})"


Result = Union[Success[T], Failure[T]]


def try_(fn: Callable[[], T], on_error: Callable[[Exception], Error]) -> Result[T]:
    """Run ``fn``; an ``Exception`` it raises becomes ``Failure(on_error(exc))``."""
    try:
        return Success(fn())
    except Exception as exc:
        return Failure(on_error(exc))


async def try_async(fn: Callable[[], Awaitable[T]], on_error: Callable[[Exception], Error]) -> Result[T]:
    try:
        return Success(await fn())
    except Exception as exc:
        return Failure(on_error(exc))
