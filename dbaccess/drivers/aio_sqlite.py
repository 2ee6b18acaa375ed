from __future__ import annotations
import asyncio
import sqlite3
from logging import Logger, getLogger as logging_getLogger
from typing import Any, NoReturn, Optional

import aiosqlite
from aiosqlite import Connection as AioConnection, Cursor as AioCursor

from ..exceptions import InvalidOperationError, SynchronousCallError
from .base import (
    BufferedReader,
    CommandType,
    ConnectionState,
    DriverFactory,
    IsolationLevel,
    NativeCommand,
    NativeConnection,
    NativeTransaction,
)
from .sqlite import begin_statement, bind_parameters, is_broken_error


def _async_only(operation: str) -> NoReturn:
    raise SynchronousCallError(f"The aiosqlite driver is async-only; use {operation}_async()")


class AioSqliteConnection(NativeConnection):
    """An ``aiosqlite`` connection handle; every primitive is a coroutine."""

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
        self._conn: Optional[AioConnection] = None
        self._broken = False

    @property
    def state(self) -> ConnectionState:
        if self._broken:
            return ConnectionState.BROKEN
        if self._conn is None:
            return ConnectionState.CLOSED
        return ConnectionState.OPEN

    @property
    def raw(self) -> AioConnection:
        if self._conn is None:
            raise InvalidOperationError("connection is not open")
        return self._conn

    @property
    def database(self) -> str:
        return self.connection_string or ":memory:"

    def mark_broken(self) -> None:
        self._broken = True

    def open(self) -> None:
        _async_only("open")

    def close(self) -> None:
        if self._conn is not None:
            _async_only("dispose")

    def begin_transaction(self, isolation_level: IsolationLevel) -> NativeTransaction:
        _async_only("begin_transaction")

    async def open_async(self) -> None:
        if self._conn is not None:
            return
        path = self.database
        self._conn = await aiosqlite.connect(
            path,
            timeout=self.timeout,
            detect_types=self.detect_types,
            isolation_level=None,
            uri=path.startswith("file:"),
        )
        if self.foreign_keys:
            await self.execute_statement("PRAGMA foreign_keys = ON")
        self.logger.debug(f"Opened SQLite database (aiosqlite): {path}")

    async def execute_statement(self, statement: str) -> None:
        cursor = await self.raw.execute(statement)
        await cursor.close()

    async def begin_transaction_async(self, isolation_level: IsolationLevel) -> AioSqliteTransaction:
        await self.execute_statement(begin_statement(isolation_level))
        return AioSqliteTransaction(self)

    async def dispose_async(self) -> None:
        if self._conn is None:
            return
        try:
            await self._conn.close()
        finally:
            self._conn = None
            self.logger.debug(f"Closed SQLite database (aiosqlite): {self.database}")


class AioSqliteTransaction(NativeTransaction):

    def __init__(self, connection: AioSqliteConnection):
        self.connection = connection

    def commit(self) -> None:
        _async_only("commit")

    def rollback(self) -> None:
        _async_only("rollback")

    async def commit_async(self) -> None:
        await self.connection.execute_statement("COMMIT")

    async def rollback_async(self) -> None:
        await self.connection.execute_statement("ROLLBACK")


class AioSqliteCommand(NativeCommand):

    def __init__(self, text: str, command_type: CommandType = CommandType.TEXT, logger: Optional[Logger] = None):
        super().__init__(text, command_type)
        self.logger = logger or logging_getLogger(__name__)
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def _connection(self) -> AioSqliteConnection:
        connection = self.require_connection()
        if not isinstance(connection, AioSqliteConnection):
            raise InvalidOperationError(f"AioSqliteCommand cannot run on {type(connection).__name__}")
        return connection

    async def _execute(self) -> AioCursor:
        if self.command_type is CommandType.STORED_PROCEDURE:
            raise sqlite3.NotSupportedError("SQLite does not support stored procedures")
        connection = self._connection()
        params = bind_parameters(self)
        self._loop = asyncio.get_running_loop()
        self.logger.debug(f"Executing query: {self.text} | Params: {params or 'None'}")
        try:
            return await connection.raw.execute(self.text, params)
        except sqlite3.Error as e:
            if is_broken_error(e):
                connection.mark_broken()
            raise

    def execute_non_query(self) -> int:
        _async_only("execute_non_query")

    def execute_scalar(self) -> Any:
        _async_only("execute_scalar")

    def execute_reader(self) -> BufferedReader:
        _async_only("execute_reader")

    async def execute_non_query_async(self) -> int:
        cursor = await self._execute()
        try:
            return cursor.rowcount
        finally:
            await cursor.close()

    async def execute_scalar_async(self) -> Any:
        cursor = await self._execute()
        try:
            row = await cursor.fetchone()
        finally:
            await cursor.close()
        return row[0] if row else None

    async def execute_reader_async(self) -> BufferedReader:
        cursor = await self._execute()
        try:
            rows = await cursor.fetchall()
            description = cursor.description
        finally:
            await cursor.close()
        return BufferedReader([(description, rows)])

    def cancel(self) -> None:
        connection = self.connection
        if self._loop is None or not isinstance(connection, AioSqliteConnection):
            return
        if connection.state is ConnectionState.OPEN:
            raw = connection.raw
            self._loop.call_soon_threadsafe(lambda: asyncio.ensure_future(raw.interrupt()))


class AioSqliteDriver(DriverFactory):
    """Natively asynchronous SQLite backend built on ``aiosqlite``."""

    name = "aiosqlite"
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

    def create_connection(self) -> AioSqliteConnection:
        return AioSqliteConnection(self.timeout, self.detect_types, self.foreign_keys, self.logger)

    def create_command(self, text: str, command_type: CommandType = CommandType.TEXT) -> AioSqliteCommand:
        return AioSqliteCommand(text, command_type, self.logger)
