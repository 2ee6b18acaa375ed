from __future__ import annotations
import asyncio
import threading
from contextlib import contextmanager
from logging import Logger, getLogger as logging_getLogger
from typing import Callable, Iterator, List, Optional


class CancellationToken:
    """
    Cooperative cancellation signal shared between a caller and a running call.

    The execution envelope checks the token before the native call starts and
    registers the command's ``cancel`` while the call runs, so a late
    ``cancel()`` is forwarded to the backend when the driver supports it.
    """

    def __init__(self, logger: Optional[Logger] = None):
        self._cancelled = threading.Event()
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()
        self.logger = logger or logging_getLogger(__name__)

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                self.logger.warning(f"Cancellation callback failed: {e}")

    def raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise asyncio.CancelledError("operation was cancelled before the native call started")

    @contextmanager
    def register(self, callback: Callable[[], None]) -> Iterator[None]:
        """Forward cancellation to ``callback`` for the duration of the block."""
        with self._lock:
            self._callbacks.append(callback)
        try:
            yield
        finally:
            with self._lock:
                self._callbacks.remove(callback)


def raise_if_cancelled(token: Optional[CancellationToken]) -> None:
    if token is not None:
        token.raise_if_cancelled()
