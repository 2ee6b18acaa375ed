from __future__ import annotations
from datetime import datetime, timedelta
from time import perf_counter
from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .result.error import Error


class SqlCallEvent:
    """
    Telemetry record for one command execution.

    Created when the call starts (SQL text and start time), finalized by
    ``finish()`` which stamps the duration, then broadcast to subscribers.
    The event is read-only once finished.
    """
    __slots__ = ("text", "start_time", "duration", "is_error", "_started", "_finished")

    def __init__(self, text: str, start_time: Optional[datetime] = None):
        self.text = text
        self.start_time = start_time or datetime.now()
        self.duration: Optional[timedelta] = None
        self.is_error = False
        self._started = perf_counter()
        self._finished = False

    @classmethod
    def start(cls, text: str) -> SqlCallEvent:
        return cls(text)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_finished", False):
            raise AttributeError(f"{type(self).__name__} is immutable after finish()")
        object.__setattr__(self, name, value)

    def finish(self) -> SqlCallEvent:
        if not self._finished:
            self.duration = timedelta(seconds=perf_counter() - self._started)
            self._finished = True
        return self

    @property
    def finished(self) -> bool:
        return self._finished

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "start_time": self.start_time.isoformat(),
            "duration": self.duration.total_seconds() if self.duration is not None else None,
            "is_error": self.is_error,
        }

    def __repr__(self):
        return f"{type(self).__name__}({self.text!r}, start_time={self.start_time!r}, duration={self.duration!r})"

    def __str__(self):
        return f"{self.start_time}; {self.text}; Duration: {self.duration}"


class ErrorEvent(SqlCallEvent):
    """A failed call: the original call's text and start time plus the classified error."""
    __slots__ = ("error", "exception")

    def __init__(self, call_event: SqlCallEvent, error: "Error", exception: Optional[BaseException] = None):
        super().__init__(call_event.text, call_event.start_time)
        self._started = call_event._started
        self.error = error
        self.exception = exception
        self.is_error = True
        if call_event.finished:
            self.duration = call_event.duration
            self._finished = True

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["error"] = self.error.to_dict()
        return data

    def __str__(self):
        return f"{super().__str__()}\nError: {self.error}"
