from __future__ import annotations
import sqlite3
from logging import Logger, getLogger as logging_getLogger
from typing import Any, Dict, Optional

from ..exceptions import InvalidOperationError
from .base import (
    CommandType,
    ConnectionState,
    DataReader,
    DriverFactory,
    IsolationLevel,
    NativeCommand,
    NativeConnection,
    NativeTransaction,
)

PARAM_PREFIXES = ":@$"

# SQLite is always serializable; the isolation level picks when the write lock is taken.
BEGIN_STATEMENTS = {
    IsolationLevel.READ_UNCOMMITTED: "BEGIN DEFERRED",
    IsolationLevel.READ_COMMITTED: "BEGIN DEFERRED",
    IsolationLevel.REPEATABLE_READ: "BEGIN IMMEDIATE",
    IsolationLevel.SNAPSHOT: "BEGIN IMMEDIATE",
    IsolationLevel.SERIALIZABLE: "BEGIN EXCLUSIVE",
}

# Result codes after which the handle cannot be trusted any more.
BROKEN_CODES = {
    11,  # SQLITE_CORRUPT
    26,  # SQLITE_NOTADB
}


def bind_parameters(command: NativeCommand) -> Dict[str, Any]:
    """Named input parameters as a mapping, with the backend prefix stripped."""
    return {
        parameter.name.lstrip(PARAM_PREFIXES): parameter.value
        for parameter in command.parameters
        if parameter.is_input
    }


def begin_statement(isolation_level: IsolationLevel) -> str:
    return BEGIN_STATEMENTS.get(isolation_level, "BEGIN DEFERRED")


def is_broken_error(error: BaseException) -> bool:
    if isinstance(error, sqlite3.ProgrammingError) and "closed" in str(error).lower():
        return True
    return isinstance(error, sqlite3.Error) and getattr(error, "sqlite_errorcode", None) in BROKEN_CODES


class SqliteConnection(NativeConnection):
    """
    A ``sqlite3`` connection handle.

    The handle runs in autocommit mode (``isolation_level=None``); transactions
    are explicit ``BEGIN``/``COMMIT``/``ROLLBACK`` statements issued by
    ``SqliteTransaction``.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        detect_types: int = 0,
        foreign_keys: bool = True,
        logger: Optional[Logger] = None,
    ):
        self.connection_string = ""
        self.timeout = timeout
        self.detect_types = detect_types
        self.foreign_keys = foreign_keys
        self.logger = logger or logging_getLogger(__name__)
        self._conn: Optional[sqlite3.Connection] = None
        self._broken = False

    @property
    def state(self) -> ConnectionState:
        if self._broken:
            return ConnectionState.BROKEN
        if self._conn is None:
            return ConnectionState.CLOSED
        return ConnectionState.OPEN

    @property
    def raw(self) -> sqlite3.Connection:
        if self._conn is None:
            raise InvalidOperationError("connection is not open")
        return self._conn

    @property
    def database(self) -> str:
        return self.connection_string or ":memory:"

    def mark_broken(self) -> None:
        self._broken = True

    def open(self) -> None:
        if self._conn is not None:
            return
        path = self.database
        self._conn = sqlite3.connect(
            path,
            timeout=self.timeout,
            detect_types=self.detect_types,
            isolation_level=None,
            check_same_thread=False,
            uri=path.startswith("file:"),
        )
        if self.foreign_keys:
            self._conn.execute("PRAGMA foreign_keys = ON")
        self.logger.debug(f"Opened SQLite database: {path}")

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
        finally:
            self._conn = None
            self.logger.debug(f"Closed SQLite database: {self.database}")

    def begin_transaction(self, isolation_level: IsolationLevel) -> SqliteTransaction:
        statement = begin_statement(isolation_level)
        self.raw.execute(statement)
        return SqliteTransaction(self)


class SqliteTransaction(NativeTransaction):

    def __init__(self, connection: SqliteConnection):
        self.connection = connection

    def commit(self) -> None:
        self.connection.raw.execute("COMMIT")

    def rollback(self) -> None:
        self.connection.raw.execute("ROLLBACK")


class SqliteReader(DataReader):
    """Reads the single result set of a ``sqlite3`` cursor."""

    def __init__(self, cursor: sqlite3.Cursor):
        self._cursor = cursor

    @property
    def description(self):
        return self._cursor.description

    def fetchone(self):
        return self._cursor.fetchone()

    def fetchmany(self, n: int):
        return self._cursor.fetchmany(n)

    def fetchall(self):
        return self._cursor.fetchall()

    def next_result(self) -> bool:
        return False

    def close(self) -> None:
        self._cursor.close()


class SqliteCommand(NativeCommand):

    def __init__(self, text: str, command_type: CommandType = CommandType.TEXT, logger: Optional[Logger] = None):
        super().__init__(text, command_type)
        self.logger = logger or logging_getLogger(__name__)
        self._cursor: Optional[sqlite3.Cursor] = None

    def _connection(self) -> SqliteConnection:
        connection = self.require_connection()
        if not isinstance(connection, SqliteConnection):
            raise InvalidOperationError(f"SqliteCommand cannot run on {type(connection).__name__}")
        return connection

    def _execute(self) -> sqlite3.Cursor:
        if self.command_type is CommandType.STORED_PROCEDURE:
            raise sqlite3.NotSupportedError("SQLite does not support stored procedures")
        connection = self._connection()
        params = bind_parameters(self)
        self.logger.debug(f"Executing query: {self.text} | Params: {params or 'None'}")
        try:
            cursor = connection.raw.cursor()
            self._cursor = cursor
            cursor.execute(self.text, params)
        except sqlite3.Error as e:
            if is_broken_error(e):
                connection.mark_broken()
            raise
        return cursor

    def execute_non_query(self) -> int:
        cursor = self._execute()
        return cursor.rowcount

    def execute_scalar(self) -> Any:
        row = self._execute().fetchone()
        return row[0] if row else None

    def execute_reader(self) -> SqliteReader:
        cursor = self._execute()
        self._cursor = None  # owned by the reader from now on
        return SqliteReader(cursor)

    def cancel(self) -> None:
        if self.connection is not None and self.connection.state is ConnectionState.OPEN:
            self._connection().raw.interrupt()

    def dispose(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None


class SqliteDriver(DriverFactory):
    """Blocking SQLite backend built on the standard ``sqlite3`` module."""

    name = "sqlite"
    param_prefix = ":"

    def __init__(
        self,
        timeout: float = 5.0,
        detect_types: int = 0,
        foreign_keys: bool = True,
        logger: Optional[Logger] = None,
    ):
        self.timeout = timeout
        self.detect_types = detect_types
        self.foreign_keys = foreign_keys
        self.logger = logger or logging_getLogger(__name__)

    def create_connection(self) -> SqliteConnection:
        return SqliteConnection(self.timeout, self.detect_types, self.foreign_keys, self.logger)

    def create_command(self, text: str, command_type: CommandType = CommandType.TEXT) -> SqliteCommand:
        return SqliteCommand(text, command_type, self.logger)
