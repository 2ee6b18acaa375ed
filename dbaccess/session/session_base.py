from __future__ import annotations
from logging import Logger, getLogger as logging_getLogger
from typing import Any, Callable, Optional, Union

from ..classify.base import DefaultClassifier, ErrorClassifier
from ..drivers.base import (
    CommandType,
    DriverFactory,
    IsolationLevel,
    NativeCommand,
    NativeConnection,
    Parameter,
    ParameterDirection,
)
from ..drivers.connection_string import prepare_connection_string
from ..exceptions import DisposedError, MissingCollaboratorError, TransactionActiveError, UsageError
from .connection_holder import ConnectionHolder
from .events import EventHandler, EventHost
from .features import Feature, FeatureHost
from .transaction import Transaction, TransactionHolder

ConnectionStringSource = Union[str, Callable[[], str]]


class SessionBase:
    """
    State and lifecycle of a session: one connection holder, at most one
    active transaction, an event host and a feature host.

    A session is not safe for concurrent use; serialize calls on it or use
    one session per unit of work.
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
        if driver is None:
            raise MissingCollaboratorError("driver")
        if connection_string is None:
            raise MissingCollaboratorError("connection_string")

        self.driver = driver
        self.connection_string = connection_string
        self.classifier: ErrorClassifier = classifier or DefaultClassifier()
        self.param_prefix = driver.param_prefix if param_prefix is None else param_prefix
        self.logger = logger or logging_getLogger(__name__)

        self._connection_holder = ConnectionHolder(driver, self._provide_connection_string, self.logger)
        self._event_host = EventHost(self.logger)
        self._feature_host = FeatureHost(self.logger)
        self._transaction: Optional[TransactionHolder] = None
        self._disposed = False

    def _provide_connection_string(self) -> str:
        source = self.connection_string
        raw = source() if callable(source) else source
        return prepare_connection_string(self.driver, raw)

    # Properties
    @property
    def connection_holder(self) -> ConnectionHolder:
        return self._connection_holder

    @property
    def event_host(self) -> EventHost:
        return self._event_host

    @property
    def feature_host(self) -> FeatureHost:
        return self._feature_host

    @property
    def transaction_holder(self) -> Optional[TransactionHolder]:
        return self._transaction

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _check_disposed(self) -> None:
        if self._disposed:
            raise DisposedError(type(self).__name__)

    # Connection Management
    def ensure_open(self) -> NativeConnection:
        return self._connection_holder.ensure_open()

    async def ensure_open_async(self) -> NativeConnection:
        return await self._connection_holder.ensure_open_async()

    # Events and Features
    def add_event(self, handler: EventHandler) -> None:
        self._event_host.add(handler)

    def remove_event(self, handler: EventHandler) -> None:
        self._event_host.remove(handler)

    def add_feature(self, feature: Feature) -> Feature:
        self._check_disposed()
        return self._feature_host.add_feature(feature)

    # Transaction Management
    def _check_can_begin(self) -> None:
        self._check_disposed()
        if self._transaction is not None:
            raise TransactionActiveError()

    def _release_transaction(self, holder: TransactionHolder) -> None:
        if self._transaction is holder:
            self._transaction = None

    def _activate(self, holder: TransactionHolder) -> Transaction:
        self._transaction = holder
        return Transaction(holder, self._release_transaction)

    def begin_transaction(self, isolation_level: IsolationLevel = IsolationLevel.READ_COMMITTED) -> Transaction:
        """Start the session's transaction; every command runs inside it until the handle is disposed."""
        self._check_can_begin()
        connection = self._connection_holder.ensure_open()
        native = connection.begin_transaction(isolation_level)
        self.logger.info(f"BEGIN transaction ({isolation_level.name})")
        return self._activate(TransactionHolder(native, self.logger))

    async def begin_transaction_async(self, isolation_level: IsolationLevel = IsolationLevel.READ_COMMITTED) -> Transaction:
        self._check_can_begin()
        connection = await self._connection_holder.ensure_open_async()
        native = await connection.begin_transaction_async(isolation_level)
        self.logger.info(f"BEGIN transaction ({isolation_level.name})")
        return self._activate(TransactionHolder(native, self.logger))

    # Command Helpers
    def param_name(self, name: str) -> str:
        """``name`` with the backend parameter prefix, unless it already carries it."""
        if not self.param_prefix or name.startswith(self.param_prefix):
            return name
        return f"{self.param_prefix}{name}"

    def get_sql_command(self, text: str) -> NativeCommand:
        return self.driver.create_command(text, CommandType.TEXT)

    def get_stored_proc_command(self, name: str) -> NativeCommand:
        return self.driver.create_command(name, CommandType.STORED_PROCEDURE)

    def _add_parameter(
        self,
        command: NativeCommand,
        name: str,
        value: Any,
        direction: ParameterDirection,
        db_type: Optional[str],
        size: int,
    ) -> Parameter:
        parameter = self.driver.create_parameter(self.param_name(name), value, direction, db_type, size)
        return command.add_parameter(parameter)

    def add_in_parameter(self, command: NativeCommand, name: str, value: Any, db_type: Optional[str] = None) -> Parameter:
        return self._add_parameter(command, name, value, ParameterDirection.INPUT, db_type, 0)

    def add_out_parameter(self, command: NativeCommand, name: str, db_type: Optional[str] = None, size: int = 0) -> Parameter:
        return self._add_parameter(command, name, None, ParameterDirection.OUTPUT, db_type, size)

    def add_in_out_parameter(
        self, command: NativeCommand, name: str, value: Any, db_type: Optional[str] = None, size: int = 0
    ) -> Parameter:
        return self._add_parameter(command, name, value, ParameterDirection.INPUT_OUTPUT, db_type, size)

    def add_return_parameter(self, command: NativeCommand, name: str = "return_value", db_type: Optional[str] = None) -> Parameter:
        return self._add_parameter(command, name, None, ParameterDirection.RETURN_VALUE, db_type, 0)

    def get_parameter_value(self, command: NativeCommand, name: str) -> Any:
        return command.get_parameter(self.param_name(name)).value

    # Lifecycle Management
    def dispose(self) -> None:
        """
        Release every feature and the native connection.

        An active transaction is neither committed nor rolled back here; that
        stays with the holder of its ``Transaction`` handle.
        """
        if self._disposed:
            return
        self._disposed = True
        try:
            self._feature_host.dispose()
        finally:
            try:
                self._connection_holder.dispose()
            except UsageError:
                self._disposed = False
                raise
        self.logger.debug("Session disposed")

    async def dispose_async(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        try:
            self._feature_host.dispose()
        finally:
            await self._connection_holder.dispose_async()
        self.logger.debug("Session disposed")
