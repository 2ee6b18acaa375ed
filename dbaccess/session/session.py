from __future__ import annotations
from logging import Logger
from typing import Any, Callable, Optional, Type, TypeVar, TYPE_CHECKING

from ..cancellation import CancellationToken
from ..classify.base import ErrorClassifier, classify
from ..drivers.base import DriverFactory, NativeCommand
from ..drivers.registry import DriverRegistry
from ..execution.commands import CommandFactoryLike
from ..execution.envelope import ExecutionEnvelope
from ..execution.fetch_types import FetchAll
from ..execution.reader import ConsumerLike, read_all
from ..features.history import HistoryFeature, default_history_format_function
from ..features.logger import LogFeature
from ..result import Failure, Result, Success
from .session_base import ConnectionStringSource, SessionBase

if TYPE_CHECKING:
    from ..features.dump import HistoryDumpGenerator

T = TypeVar("T")

AfterCall = Callable[[NativeCommand], Any]
Binder = Callable[[NativeCommand], Any]


class Session(SessionBase):
    """
    Executes commands against one backend and returns ``Result`` values.

        session = Session(SqliteDriver(), "app.db", SqliteClassifier())
        with session:
            result = session.execute_non_query(sql("DELETE FROM jobs WHERE done = 1"))
            if result.is_failure and result.error.is_transient:
                ...

    Backend failures never escape as exceptions: they are classified into an
    ``Error`` and returned as ``Failure``. Usage errors (a disposed session, a
    second transaction, a missing collaborator) raise immediately.
    """

    def __init__(
        self,
        driver: DriverFactory,
        connection_string: ConnectionStringSource,
        classifier: Optional[ErrorClassifier] = None,
        *,
        param_prefix: Optional[str] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(
            driver,
            connection_string,
            classifier,
            param_prefix=param_prefix,
            logger=logger,
        )
        self._envelope = ExecutionEnvelope(self, self.logger)

    @classmethod
    def from_registry(
        cls,
        registry: DriverRegistry,
        name: str,
        connection_string: ConnectionStringSource,
        *,
        logger: Optional[Logger] = None,
    ) -> Session:
        backend = registry.get(name)
        return cls(
            backend.driver,
            connection_string,
            backend.classifier,
            param_prefix=backend.prefix,
            logger=logger,
        )

    # Callbacks run after a successful call
    @staticmethod
    def _after_call(after_call: Optional[AfterCall]):
        if after_call is None:
            return None

        def run(command: NativeCommand, value: Any) -> Result:
            after_call(command)
            return Success(value)
        return run

    def _binder(self, binder: Binder):
        def run(command: NativeCommand, value: Any) -> Result:
            try:
                bound = binder(command)
            except Exception as exc:
                return Failure(classify(self.classifier, exc, self.logger))
            if isinstance(bound, (Success, Failure)):
                return bound
            return Success(bound)
        return run

    def _reader(self, consumer: Optional[ConsumerLike]):
        consumer = FetchAll() if consumer is None else consumer

        def read(command: NativeCommand) -> Any:
            return read_all(command.execute_reader(), consumer, self.logger)

        async def read_async(command: NativeCommand) -> Any:
            return read_all(await command.execute_reader_async(), consumer, self.logger)
        return read, read_async

    # Blocking operations
    def execute_non_query(
        self,
        command_factory: CommandFactoryLike,
        after_call: Optional[AfterCall] = None,
        *,
        cancellation: Optional[CancellationToken] = None,
    ) -> Result[int]:
        return self._envelope.run(
            command_factory,
            lambda command: command.execute_non_query(),
            self._after_call(after_call),
            cancellation,
        )

    def execute_scalar(
        self,
        command_factory: CommandFactoryLike,
        after_call: Optional[AfterCall] = None,
        *,
        cancellation: Optional[CancellationToken] = None,
    ) -> Result[Any]:
        return self._envelope.run(
            command_factory,
            lambda command: command.execute_scalar(),
            self._after_call(after_call),
            cancellation,
        )

    def execute_reader(
        self,
        command_factory: CommandFactoryLike,
        consumer: Optional[ConsumerLike] = None,
        after_call: Optional[AfterCall] = None,
        *,
        cancellation: Optional[CancellationToken] = None,
    ) -> Result[Any]:
        """
        Run the command and hand its reader to ``consumer`` (all rows by default).

        Remaining result sets are drained before ``after_call`` runs, so output
        parameters are populated by then. The reader is closed by the session.
        """
        read, _ = self._reader(consumer)
        return self._envelope.run(command_factory, read, self._after_call(after_call), cancellation)

    def execute_and_bind(
        self,
        command_factory: CommandFactoryLike,
        binder: Binder,
        *,
        cancellation: Optional[CancellationToken] = None,
    ) -> Result[Any]:
        """
        Run the command as a non-query, then map the command (typically its
        output parameters) through ``binder``.

        ``binder`` may return a ``Result`` or a plain value; it is never called
        when execution failed, and the execution error is returned unchanged.
        """
        return self._envelope.run(
            command_factory,
            lambda command: command.execute_non_query(),
            self._binder(binder),
            cancellation,
        )

    # Non-blocking operations
    async def execute_non_query_async(
        self,
        command_factory: CommandFactoryLike,
        after_call: Optional[AfterCall] = None,
        *,
        cancellation: Optional[CancellationToken] = None,
    ) -> Result[int]:
        return await self._envelope.run_async(
            command_factory,
            lambda command: command.execute_non_query_async(),
            self._after_call(after_call),
            cancellation,
        )

    async def execute_scalar_async(
        self,
        command_factory: CommandFactoryLike,
        after_call: Optional[AfterCall] = None,
        *,
        cancellation: Optional[CancellationToken] = None,
    ) -> Result[Any]:
        return await self._envelope.run_async(
            command_factory,
            lambda command: command.execute_scalar_async(),
            self._after_call(after_call),
            cancellation,
        )

    async def execute_reader_async(
        self,
        command_factory: CommandFactoryLike,
        consumer: Optional[ConsumerLike] = None,
        after_call: Optional[AfterCall] = None,
        *,
        cancellation: Optional[CancellationToken] = None,
    ) -> Result[Any]:
        _, read_async = self._reader(consumer)
        return await self._envelope.run_async(command_factory, read_async, self._after_call(after_call), cancellation)

    async def execute_and_bind_async(
        self,
        command_factory: CommandFactoryLike,
        binder: Binder,
        *,
        cancellation: Optional[CancellationToken] = None,
    ) -> Result[Any]:
        return await self._envelope.run_async(
            command_factory,
            lambda command: command.execute_non_query_async(),
            self._binder(binder),
            cancellation,
        )

    # Features
    def add_logger(self, logger: Optional[Logger] = None) -> LogFeature:
        """Log every call (errors at ERROR, the rest at INFO) until the session is disposed."""
        return self.add_feature(LogFeature(logger or self.logger, self))

    def add_history(
        self,
        generator: Optional["HistoryDumpGenerator"] = None,
        history_length: Optional[int] = 10,
        *,
        history_tolerance: Optional[int] = 5,
        format_function: Callable[[dict], Any] = default_history_format_function,
    ) -> HistoryFeature:
        return self.add_feature(
            HistoryFeature(
                self,
                generator,
                history_length,
                history_tolerance=history_tolerance,
                format_function=format_function,
                logger=self.logger,
            )
        )

    # Context management
    def __enter__(self) -> Session:
        return self

    def __exit__(self, exc_type: Optional[Type[BaseException]], exc_val: Optional[BaseException], exc_tb) -> None:
        self.dispose()

    async def __aenter__(self) -> Session:
        return self

    async def __aexit__(self, exc_type: Optional[Type[BaseException]], exc_val: Optional[BaseException], exc_tb) -> None:
        await self.dispose_async()

    def __repr__(self):
        return f"Session({self.driver!r}, in_transaction={self.in_transaction}, disposed={self.disposed})"
