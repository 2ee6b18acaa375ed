"""
A scriptable in-memory driver for exercising sessions without a database.

    driver = FakeDriver()
    driver.script("proc", result=3, outputs={"@total": 42})
    driver.script("broken", error=FakeDbError(2627, "duplicate key"))
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..drivers.base import (
    BufferedReader,
    CommandType,
    ConnectionState,
    DriverFactory,
    IsolationLevel,
    NativeCommand,
    NativeConnection,
    NativeTransaction,
)
from ..drivers.connection_string import ConnectionStringBuilder

CONNECTION_STRING = "Data Source=fake;Initial Catalog=tests"


class FakeDbError(Exception):
    """Driver exception carrying a SQL Server style ``number``."""

    def __init__(self, number: int, message: str = "fake failure"):
        super().__init__(message)
        self.number = number


@dataclass
class Script:
    result: Any = 1
    error: Optional[BaseException] = None
    result_sets: Optional[Sequence] = None
    outputs: Dict[str, Any] = field(default_factory=dict)
    next_result_error: Optional[BaseException] = None


class FakeTransaction(NativeTransaction):

    def __init__(self, connection: "FakeConnection", isolation_level: IsolationLevel):
        self.connection = connection
        self.isolation_level = isolation_level
        self.commits = 0
        self.rollbacks = 0
        self.disposals = 0
        self.commit_error: Optional[BaseException] = None
        self.rollback_error: Optional[BaseException] = None

    def commit(self) -> None:
        if self.commit_error is not None:
            raise self.commit_error
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1
        if self.rollback_error is not None:
            raise self.rollback_error

    def dispose(self) -> None:
        self.disposals += 1


class FakeConnection(NativeConnection):

    def __init__(self):
        self.connection_string = ""
        self._state = ConnectionState.CLOSED
        self.opens = 0
        self.disposals = 0
        self.transactions: List[FakeTransaction] = []
        self.open_error: Optional[BaseException] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    def set_state(self, state: ConnectionState) -> None:
        self._state = state

    def open(self) -> None:
        if self.open_error is not None:
            raise self.open_error
        self.opens += 1
        self._state = ConnectionState.OPEN

    def close(self) -> None:
        self._state = ConnectionState.CLOSED

    def begin_transaction(self, isolation_level: IsolationLevel) -> FakeTransaction:
        transaction = FakeTransaction(self, isolation_level)
        self.transactions.append(transaction)
        return transaction

    def dispose(self) -> None:
        self.disposals += 1
        self.close()


class FakeReader(BufferedReader):
    """Populates the command's output parameters once every result set was read."""

    def __init__(self, command: "FakeCommand", result_sets, next_result_error=None):
        super().__init__(result_sets)
        self.command = command
        self.next_result_error = next_result_error
        self.advanced = 0

    def next_result(self) -> bool:
        if self.next_result_error is not None:
            raise self.next_result_error
        more = super().next_result()
        if more:
            self.advanced += 1
        else:
            self.command.populate_outputs()
        return more


class FakeCommand(NativeCommand):

    def __init__(self, text: str, command_type: CommandType, script: Script):
        super().__init__(text, command_type)
        self.script = script
        self.executions = 0
        self.disposals = 0
        self.cancels = 0
        self.executed_connection: Optional[NativeConnection] = None
        self.executed_transaction: Optional[NativeTransaction] = None
        self.reader: Optional[FakeReader] = None

    def populate_outputs(self) -> None:
        for name, value in self.script.outputs.items():
            self.get_parameter(name).value = value

    def _run(self) -> None:
        self.executions += 1
        self.executed_connection = self.connection
        self.executed_transaction = self.transaction
        if self.script.error is not None:
            raise self.script.error

    def execute_non_query(self) -> int:
        self._run()
        self.populate_outputs()
        return self.script.result

    def execute_scalar(self) -> Any:
        self._run()
        self.populate_outputs()
        return self.script.result

    def execute_reader(self) -> FakeReader:
        self._run()
        self.reader = FakeReader(self, self.script.result_sets or [], self.script.next_result_error)
        return self.reader

    async def execute_non_query_async(self) -> int:
        return self.execute_non_query()

    async def execute_scalar_async(self) -> Any:
        return self.execute_scalar()

    async def execute_reader_async(self) -> FakeReader:
        return self.execute_reader()

    def cancel(self) -> None:
        self.cancels += 1

    def dispose(self) -> None:
        self.disposals += 1


class FakeDriver(DriverFactory):
    name = "fake"
    param_prefix = "@"

    def __init__(self, with_builder: bool = True):
        self.with_builder = with_builder
        self.connections: List[FakeConnection] = []
        self.commands: List[FakeCommand] = []
        self.scripts: Dict[str, Script] = {}

    def script(self, text: str, **kwargs) -> Script:
        script = Script(**kwargs)
        self.scripts[text] = script
        return script

    @property
    def last_command(self) -> FakeCommand:
        return self.commands[-1]

    def create_connection(self) -> FakeConnection:
        connection = FakeConnection()
        self.connections.append(connection)
        return connection

    def create_command(self, text: str, command_type: CommandType = CommandType.TEXT) -> FakeCommand:
        command = FakeCommand(text, command_type, self.scripts.get(text, Script()))
        self.commands.append(command)
        return command

    def create_connection_string_builder(self) -> Optional[ConnectionStringBuilder]:
        return ConnectionStringBuilder() if self.with_builder else None
