from __future__ import annotations
from typing import Any, Optional

from ..cancellation import CancellationToken
from ..drivers.base import NativeCommand
from ..exceptions import MissingCollaboratorError
from ..execution.commands import CommandFactoryLike, read_output_parameters
from ..execution.reader import ConsumerLike
from ..result import Result
from .session import Session


class LegacyConnection:
    """
    Throwing-style facade over a ``Session``, kept for callers written
    against the older exception-based API.

    Every call runs through the same execution envelope, so events are
    published exactly as for ``Session``. A ``Failure`` is re-raised as the
    ``ExecutionError`` subclass matching its error type (``ConflictError``,
    ``TimeoutExpiredError``...). On success the factory's
    ``read_output_parameters(session, command)`` hook runs when it has one.
    """

    def __init__(self, session: Session) -> None:
        if session is None:
            raise MissingCollaboratorError("session")
        self.session = session

    def _reader_hook(self, factory: CommandFactoryLike):
        def after_call(command: NativeCommand) -> None:
            read_output_parameters(factory, self.session, command)
        return after_call

    @staticmethod
    def _unwrap(result: Result) -> Any:
        return result.unwrap()

    def execute_non_query(self, factory: CommandFactoryLike, *, cancellation: Optional[CancellationToken] = None) -> int:
        return self._unwrap(
            self.session.execute_non_query(factory, self._reader_hook(factory), cancellation=cancellation)
        )

    def execute_scalar(self, factory: CommandFactoryLike, *, cancellation: Optional[CancellationToken] = None) -> Any:
        return self._unwrap(
            self.session.execute_scalar(factory, self._reader_hook(factory), cancellation=cancellation)
        )

    def get_reader(
        self,
        factory: CommandFactoryLike,
        consumer: Optional[ConsumerLike] = None,
        *,
        cancellation: Optional[CancellationToken] = None,
    ) -> Any:
        return self._unwrap(
            self.session.execute_reader(factory, consumer, self._reader_hook(factory), cancellation=cancellation)
        )

    async def execute_non_query_async(
        self, factory: CommandFactoryLike, *, cancellation: Optional[CancellationToken] = None
    ) -> int:
        return self._unwrap(
            await self.session.execute_non_query_async(factory, self._reader_hook(factory), cancellation=cancellation)
        )

    async def execute_scalar_async(
        self, factory: CommandFactoryLike, *, cancellation: Optional[CancellationToken] = None
    ) -> Any:
        return self._unwrap(
            await self.session.execute_scalar_async(factory, self._reader_hook(factory), cancellation=cancellation)
        )

    async def get_reader_async(
        self,
        factory: CommandFactoryLike,
        consumer: Optional[ConsumerLike] = None,
        *,
        cancellation: Optional[CancellationToken] = None,
    ) -> Any:
        return self._unwrap(
            await self.session.execute_reader_async(
                factory, consumer, self._reader_hook(factory), cancellation=cancellation
            )
        )

    def dispose(self) -> None:
        self.session.dispose()

    async def dispose_async(self) -> None:
        await self.session.dispose_async()

    def __enter__(self) -> LegacyConnection:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()
