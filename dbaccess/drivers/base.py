"""
Native driver contract.

A driver is the swappable backend piece: it produces connections, commands
and parameters for one database product. The core depends only on the
abstract classes below. Blocking primitives are abstract; their ``*_async``
counterparts default to running the blocking primitive on a worker thread,
and natively asynchronous drivers override them.
"""
from __future__ import annotations
import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Iterator, List, Optional, Sequence, Tuple, TYPE_CHECKING

from ..exceptions import InvalidOperationError

if TYPE_CHECKING:
    from .connection_string import ConnectionStringBuilder


class ConnectionState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    BROKEN = "broken"


class CommandType(Enum):
    TEXT = "text"
    STORED_PROCEDURE = "stored_procedure"


class ParameterDirection(Enum):
    INPUT = "input"
    OUTPUT = "output"
    INPUT_OUTPUT = "input_output"
    RETURN_VALUE = "return_value"


class IsolationLevel(Enum):
    READ_UNCOMMITTED = "read_uncommitted"
    READ_COMMITTED = "read_committed"
    REPEATABLE_READ = "repeatable_read"
    SERIALIZABLE = "serializable"
    SNAPSHOT = "snapshot"


class Parameter:
    __slots__ = ("name", "value", "direction", "db_type", "size")

    def __init__(
        self,
        name: str,
        value: Any = None,
        direction: ParameterDirection = ParameterDirection.INPUT,
        db_type: Optional[str] = None,
        size: int = 0,
    ):
        self.name = name
        self.value = value
        self.direction = direction
        self.db_type = db_type
        self.size = size

    @property
    def is_input(self) -> bool:
        return self.direction in (ParameterDirection.INPUT, ParameterDirection.INPUT_OUTPUT)

    def __repr__(self):
        return f"Parameter({self.name!r}, {self.value!r}, {self.direction.name})"


class DataReader(ABC):
    """Forward-only access to one or more result sets."""

    @property
    @abstractmethod
    def description(self) -> Optional[Sequence[Tuple[Any, ...]]]:
        ...

    @property
    def columns(self) -> List[str]:
        return [column[0] for column in self.description or ()]

    @abstractmethod
    def fetchone(self) -> Optional[Tuple[Any, ...]]:
        ...

    def fetchmany(self, n: int) -> List[Tuple[Any, ...]]:
        rows = []
        for _ in range(n):
            row = self.fetchone()
            if row is None:
                break
            rows.append(row)
        return rows

    def fetchall(self) -> List[Tuple[Any, ...]]:
        return list(self)

    @abstractmethod
    def next_result(self) -> bool:
        """Advance to the next result set; False when there is none."""
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    def __iter__(self) -> Iterator[Tuple[Any, ...]]:
        while True:
            row = self.fetchone()
            if row is None:
                return
            yield row


class BufferedReader(DataReader):
    """A reader over result sets that were fetched up front."""

    def __init__(self, result_sets: Sequence[Tuple[Optional[Sequence[Tuple[Any, ...]]], Sequence[Tuple[Any, ...]]]]):
        self._result_sets = list(result_sets) or [(None, [])]
        self._index = 0
        self._position = 0
        self.closed = False

    @property
    def description(self):
        return self._result_sets[self._index][0]

    def fetchone(self):
        rows = self._result_sets[self._index][1]
        if self._position >= len(rows):
            return None
        row = rows[self._position]
        self._position += 1
        return tuple(row)

    def next_result(self) -> bool:
        if self._index + 1 >= len(self._result_sets):
            return False
        self._index += 1
        self._position = 0
        return True

    def close(self) -> None:
        self.closed = True


class NativeTransaction(ABC):

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...

    def dispose(self) -> None:
        pass

    async def commit_async(self) -> None:
        await asyncio.to_thread(self.commit)

    async def rollback_async(self) -> None:
        await asyncio.to_thread(self.rollback)

    async def dispose_async(self) -> None:
        self.dispose()


class NativeConnection(ABC):
    connection_string: str = ""

    @property
    @abstractmethod
    def state(self) -> ConnectionState:
        ...

    @abstractmethod
    def open(self) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    @abstractmethod
    def begin_transaction(self, isolation_level: IsolationLevel) -> NativeTransaction:
        ...

    def dispose(self) -> None:
        self.close()

    async def open_async(self) -> None:
        await asyncio.to_thread(self.open)

    async def begin_transaction_async(self, isolation_level: IsolationLevel) -> NativeTransaction:
        return await asyncio.to_thread(self.begin_transaction, isolation_level)

    async def dispose_async(self) -> None:
        await asyncio.to_thread(self.dispose)


class NativeCommand(ABC):

    def __init__(self, text: str, command_type: CommandType = CommandType.TEXT):
        self.text = text
        self.command_type = command_type
        self.parameters: List[Parameter] = []
        self.connection: Optional[NativeConnection] = None
        self.transaction: Optional[NativeTransaction] = None

    def add_parameter(self, parameter: Parameter) -> Parameter:
        self.parameters.append(parameter)
        return parameter

    def get_parameter(self, name: str) -> Parameter:
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter
        raise KeyError(name)

    def require_connection(self) -> NativeConnection:
        if self.connection is None:
            raise InvalidOperationError("command has no connection attached")
        return self.connection

    @abstractmethod
    def execute_non_query(self) -> int:
        ...

    @abstractmethod
    def execute_scalar(self) -> Any:
        ...

    @abstractmethod
    def execute_reader(self) -> DataReader:
        ...

    async def execute_non_query_async(self) -> int:
        return await asyncio.to_thread(self.execute_non_query)

    async def execute_scalar_async(self) -> Any:
        return await asyncio.to_thread(self.execute_scalar)

    async def execute_reader_async(self) -> DataReader:
        return await asyncio.to_thread(self.execute_reader)

    def cancel(self) -> None:
        pass

    def dispose(self) -> None:
        pass

    def __repr__(self):
        return f"{type(self).__name__}({self.text!r}, {self.command_type.name})"


class DriverFactory(ABC):
    """Produces the native connection/command/parameter triad for one backend."""

    name: str = "driver"
    param_prefix: str = ""

    @abstractmethod
    def create_connection(self) -> NativeConnection:
        ...

    @abstractmethod
    def create_command(self, text: str, command_type: CommandType = CommandType.TEXT) -> NativeCommand:
        ...

    def create_parameter(
        self,
        name: str,
        value: Any = None,
        direction: ParameterDirection = ParameterDirection.INPUT,
        db_type: Optional[str] = None,
        size: int = 0,
    ) -> Parameter:
        return Parameter(name, value, direction, db_type, size)

    def create_connection_string_builder(self) -> Optional["ConnectionStringBuilder"]:
        return None

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r})"
