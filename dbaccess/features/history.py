from __future__ import annotations
import asyncio
from logging import Logger, getLogger as logging_getLogger
from typing import Any, Callable, List, Optional, Set, TYPE_CHECKING

from ..exceptions import HistoryError, MissingCollaboratorError
from ..log import SqlCallEvent
from .buffer import EventBuffer, validate_none_or_non_neg_int
from .dump import HistoryDump, HistoryDumpGenerator

if TYPE_CHECKING:
    from ..session.session_base import SessionBase


def default_history_format_function(entry: dict) -> str:
    """
    Default function to format history entries for dumping.
    """
    timestamp = entry.get("timestamp", entry.get("start_time", "no timestamp"))
    text = f"[{timestamp}] {entry['text']}\nDuration: {entry['duration']}s\n"
    if entry.get("is_error"):
        error = entry.get("error") or {}
        text += f"Error: {error.get('type')}[{error.get('code')}]: {error.get('message')}\n"
    return text


class HistoryFeature:
    """
    Records the session's calls and dumps them to a file.

    Each published event becomes a ``HistoryDump`` in a bounded buffer of
    ``history_length`` entries. When the buffer fills, a flush is scheduled on
    the running event loop; without a running loop the entries wait in a
    pending batch for the next ``await flush()``. ``history_tolerance`` extra
    entries are accepted while a scheduled flush is in flight. Recording is
    off when ``history_length`` is None or there is no generator.

    Entries that are dicts are passed through ``format_function`` (pass None
    to keep them structured, e.g. for JSON or CSV files).
    """

    def __init__(
        self,
        session: "SessionBase",
        generator: Optional[HistoryDumpGenerator] = None,
        history_length: Optional[int] = 10,
        *,
        history_tolerance: Optional[int] = 5,
        format_function: Optional[Callable[[dict], Any]] = default_history_format_function,
        logger: Optional[Logger] = None,
    ) -> None:
        if session is None:
            raise MissingCollaboratorError("session")
        self.session = session
        self.generator = generator
        self.format_function = format_function
        self.logger = logger or logging_getLogger(__name__)

        history_length = validate_none_or_non_neg_int(history_length, "history_length")
        history_tolerance = validate_none_or_non_neg_int(history_tolerance, "history_tolerance")
        self._history_tolerance = history_tolerance
        self._history: Optional[EventBuffer] = (
            None if history_length is None else EventBuffer(history_length, history_tolerance)
        )
        self._pending: List[HistoryDump] = []
        self._tasks: Set[asyncio.Task] = set()
        self._lock = asyncio.Lock()
        self._subscribed = True
        session.add_event(self.handle)

    # Property accessors
    @property
    def history(self) -> Optional[EventBuffer]:
        return self._history

    @property
    def pending(self) -> tuple:
        return tuple(self._pending)

    @property
    def history_length(self) -> Optional[int]:
        return None if self._history is None else self._history.max_length

    @history_length.setter
    def history_length(self, value: Optional[int]) -> None:
        value = validate_none_or_non_neg_int(value, "history_length")
        if value is None:
            if self._history is not None:
                self._pending.extend(self._history.flush())
            self._history = None
        elif self._history is None:
            self._history = EventBuffer(value, self._history_tolerance)
        else:
            self._history.max_length = value

    @property
    def history_tolerance(self) -> Optional[int]:
        return self._history_tolerance

    @history_tolerance.setter
    def history_tolerance(self, value: Optional[int]) -> None:
        self._history_tolerance = validate_none_or_non_neg_int(value, "history_tolerance")
        if self._history is not None:
            self._history.tolerance = self._history_tolerance

    @property
    def generator(self) -> Optional[HistoryDumpGenerator]:
        return self._generator

    @generator.setter
    def generator(self, value: Optional[HistoryDumpGenerator]) -> None:
        if value is not None and not isinstance(value, HistoryDumpGenerator):
            raise HistoryError("generator must be a HistoryDumpGenerator instance or None")
        self._generator = value

    # Recording
    def _create_dump(self, event: SqlCallEvent) -> HistoryDump:
        dump = self.generator.create(event.to_dict())
        if self.format_function is not None and isinstance(dump.data, dict):
            dump.data = self.format_function(dump.data)
        return dump

    def _schedule_flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._pending.extend(self._history.flush())
            return
        task = loop.create_task(self.flush())
        self._tasks.add(task)
        task.add_done_callback(self._flush_done)

    def _flush_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.error(f"Failed to flush history: {task.exception()}")

    def handle(self, event: SqlCallEvent) -> None:
        if self._history is None or self.generator is None:
            return
        dump = self._create_dump(event)
        try:
            full = self._history.append(dump)
        except OverflowError:
            self.logger.warning("History buffer over tolerance; moving entries to the pending batch")
            self._pending.extend(self._history.flush())
            self._pending.append(dump)
            return
        if full and not self._tasks:
            self._schedule_flush()

    async def flush(self) -> tuple:
        """Write pending and buffered entries; returns the dumps written."""
        async with self._lock:
            dumps = tuple(self._pending)
            self._pending.clear()
            if self._history is not None:
                dumps += self._history.flush()
            if dumps:
                await HistoryDump.write_many(dumps)
            return dumps

    async def wait(self) -> None:
        """Wait for scheduled flushes to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def dispose(self) -> None:
        if not self._subscribed:
            return
        self._subscribed = False
        self.session.remove_event(self.handle)
        unwritten = len(self._pending) + (len(self._history) if self._history is not None else 0)
        if unwritten:
            self.logger.debug(f"History feature disposed with {unwritten} unwritten entries; call flush() to write them")

    def __repr__(self):
        return f"HistoryFeature(generator={self.generator!r}, history_length={self.history_length})"
