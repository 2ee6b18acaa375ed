from __future__ import annotations
from logging import Logger, getLogger as logging_getLogger
from typing import Any, Callable, Optional, TypeVar, Union

from ..drivers.base import DataReader

T = TypeVar("T")

ConsumerLike = Union[Callable[[DataReader], Any], Any]

_logger = logging_getLogger(__name__)


def consume(consumer: ConsumerLike, reader: DataReader) -> Any:
    """Hand the reader to a consumer object (``consume(reader)``) or a plain callable."""
    method = getattr(consumer, "consume", None)
    if callable(method):
        return method(reader)
    if callable(consumer):
        return consumer(reader)
    raise TypeError(f"Consumer must be callable or define consume(reader), got {type(consumer).__name__}")


def drain(reader: DataReader, logger: Optional[Logger] = None) -> int:
    """
    Advance past every remaining result set.

    Output parameters and return codes are only populated once all result
    sets have been read. A failing ``next_result()`` ends the drain; it is
    logged, not raised. Returns the number of result sets skipped.
    """
    skipped = 0
    try:
        while reader.next_result():
            skipped += 1
    except Exception as e:
        (logger or _logger).warning(f"Stopped draining result sets after {skipped}: {e}")
    return skipped


def read_all(reader: DataReader, consumer: ConsumerLike, logger: Optional[Logger] = None) -> Any:
    """Consume the first result set, drain the rest, and always close the reader."""
    try:
        value = consume(consumer, reader)
        drain(reader, logger)
        return value
    finally:
        reader.close()
