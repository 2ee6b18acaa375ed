"""
The execution envelope shared by every Session operation.

For one call it:

1. builds the native command from the caller's factory (outside the
   failure boundary: a raising factory propagates as-is);
2. starts a ``SqlCallEvent`` with the command text;
3. opens the session connection and attaches it, plus the active
   transaction if there is one, to the command;
4. runs the execution primitive inside the failure boundary;
5. on success finishes and publishes the event and returns ``Success``;
6. on failure finishes the event, classifies the exception, publishes an
   ``ErrorEvent`` and returns ``Failure``;
7. always disposes the command.

Usage errors (``UsageError``) and cancellation are not classified; they
reach the caller directly and publish nothing.
"""
from __future__ import annotations
from contextlib import contextmanager
from logging import Logger, getLogger as logging_getLogger
from typing import Any, Awaitable, Callable, Iterator, Optional, TypeVar, TYPE_CHECKING

from ..cancellation import CancellationToken, raise_if_cancelled
from ..classify.base import classify
from ..drivers.base import NativeCommand
from ..exceptions import UsageError
from ..log import ErrorEvent, SqlCallEvent
from ..result import Error, Failure, Result, Success
from .commands import CommandFactoryLike, construct_command

if TYPE_CHECKING:
    from ..session.session_base import SessionBase

T = TypeVar("T")

# Runs with the command once it succeeded, before it is disposed.
AfterSuccess = Callable[[NativeCommand, T], Result]


@contextmanager
def _forward_cancellation(token: Optional[CancellationToken], command: NativeCommand) -> Iterator[None]:
    if token is None:
        yield
        return
    with token.register(command.cancel):
        yield


class ExecutionEnvelope:

    def __init__(self, session: "SessionBase", logger: Optional[Logger] = None) -> None:
        self.session = session
        self.logger = logger or logging_getLogger(__name__)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _attach(self, command: NativeCommand, connection) -> None:
        command.connection = connection
        holder = self.session.transaction_holder
        command.transaction = holder.native if holder is not None else None

    def _succeed(self, event: SqlCallEvent) -> None:
        self.session.event_host.publish(event.finish())

    def _fail(self, event: SqlCallEvent, exc: Exception) -> Error:
        event.finish()
        error = classify(self.session.classifier, exc, self.logger)
        self.logger.debug(f"Call failed: {event.text} | {error}")
        self.session.event_host.publish(ErrorEvent(event, error, exc))
        return error

    def _dispose(self, command: NativeCommand) -> None:
        try:
            command.dispose()
        except Exception as e:
            self.logger.warning(f"Failed to dispose command {command!r}: {e}")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def run(
        self,
        factory: CommandFactoryLike,
        action: Callable[[NativeCommand], T],
        after_success: Optional[AfterSuccess] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Result[T]:
        command = construct_command(factory, self.session)
        try:
            event = SqlCallEvent.start(command.text)
            raise_if_cancelled(cancellation)
            try:
                self._attach(command, self.session.connection_holder.ensure_open())
                raise_if_cancelled(cancellation)
                with _forward_cancellation(cancellation, command):
                    value = action(command)
            except UsageError:
                raise
            except Exception as exc:
                return Failure(self._fail(event, exc))
            self._succeed(event)
            result: Result = Success(value)
            if after_success is not None:
                result = after_success(command, value)
            return result
        finally:
            self._dispose(command)

    async def run_async(
        self,
        factory: CommandFactoryLike,
        action: Callable[[NativeCommand], Awaitable[T]],
        after_success: Optional[AfterSuccess] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Result[T]:
        command = construct_command(factory, self.session)
        try:
            event = SqlCallEvent.start(command.text)
            raise_if_cancelled(cancellation)
            try:
                self._attach(command, await self.session.connection_holder.ensure_open_async())
                raise_if_cancelled(cancellation)
                with _forward_cancellation(cancellation, command):
                    value = await action(command)
            except UsageError:
                raise
            except Exception as exc:
                return Failure(self._fail(event, exc))
            self._succeed(event)
            result: Result = Success(value)
            if after_success is not None:
                result = after_success(command, value)
            return result
        finally:
            self._dispose(command)
