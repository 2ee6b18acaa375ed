from __future__ import annotations
from logging import Logger, getLogger as logging_getLogger
from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

from ..result.error import Error, ErrorType

_logger = logging_getLogger(__name__)


@runtime_checkable
class ErrorClassifier(Protocol):
    """Maps a caught failure to exactly one normalized Error; never raises."""

    def map(self, exc: BaseException) -> Error:
        ...


class DefaultClassifier:
    """Wraps every failure as an Unexpected error carrying the original message."""

    def map(self, exc: BaseException) -> Error:
        return Error.from_exception(exc)

    def __repr__(self):
        return "DefaultClassifier()"


class TableClassifier:
    """
    Classifier driven by a product error-code table.

    Subclasses say which exceptions belong to their backend (``recognizes``)
    and how to read the native code off them (``native_code``). Recognized
    failures whose code is not in ``table`` fall back to ``default_type``;
    failures of any other kind are Unexpected.
    """

    table: Dict[Any, ErrorType] = {}
    default_type: ErrorType = ErrorType.DATABASE

    def recognizes(self, exc: BaseException) -> bool:
        return self.native_code(exc) is not None

    def native_code(self, exc: BaseException) -> Any:
        raise NotImplementedError

    def lookup(self, code: Any) -> ErrorType:
        return self.table.get(code, self.default_type)

    def message(self, exc: BaseException) -> str:
        return str(exc)

    def map(self, exc: BaseException) -> Error:
        if not self.recognizes(exc):
            return Error.from_exception(exc)
        code = self.native_code(exc)
        return Error(self.lookup(code), str(code), self.message(exc))

    def __repr__(self):
        return f"{type(self).__name__}()"


def classify(classifier: ErrorClassifier, exc: BaseException, logger: Optional[Logger] = None) -> Error:
    """Run ``classifier`` and guarantee a result even if the policy itself fails."""
    try:
        error = classifier.map(exc)
    except Exception as e:
        (logger or _logger).error(f"Error classifier {classifier!r} failed on {exc!r}: {e}")
        return Error.from_exception(exc)
    if not isinstance(error, Error):
        (logger or _logger).error(f"Error classifier {classifier!r} returned {error!r}, not an Error")
        return Error.from_exception(exc)
    return error


def first_attr(exc: BaseException, *names: str, convert: Callable[[Any], Any] = lambda v: v) -> Any:
    """First non-None attribute among ``names``, converted; None if none is usable."""
    for name in names:
        value = getattr(exc, name, None)
        if value is None:
            continue
        try:
            return convert(value)
        except (TypeError, ValueError):
            continue
    return None
