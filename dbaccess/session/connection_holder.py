from __future__ import annotations
from logging import Logger, getLogger as logging_getLogger
from typing import Callable, Optional

from ..drivers.base import ConnectionState, DriverFactory, NativeConnection
from ..exceptions import DisposedError, MissingCollaboratorError, UsageError


class ConnectionHolder:
    """
    Owns the single native connection of a session.

    The handle is created lazily on first use. ``ensure_open`` recreates it
    only when it is missing or reports ``BROKEN``; a handle that is merely
    closed is reopened in place so backend-side session state tied to it
    survives. The connection string is fetched from ``connection_string_provider``
    every time a handle is created.
    """

    def __init__(
        self,
        driver: DriverFactory,
        connection_string_provider: Callable[[], str],
        logger: Optional[Logger] = None,
    ) -> None:
        if driver is None:
            raise MissingCollaboratorError("driver")
        if connection_string_provider is None:
            raise MissingCollaboratorError("connection_string_provider")
        self.driver = driver
        self.connection_string_provider = connection_string_provider
        self.logger = logger or logging_getLogger(__name__)
        self._connection: Optional[NativeConnection] = None
        self._disposed = False

    @property
    def connection(self) -> Optional[NativeConnection]:
        """The current handle, without opening or recreating it."""
        return self._connection

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def is_ready(self) -> bool:
        return self._connection is not None and self._connection.state is not ConnectionState.BROKEN

    def _check_disposed(self) -> None:
        if self._disposed:
            raise DisposedError(type(self).__name__)

    def _discard(self) -> None:
        stale, self._connection = self._connection, None
        if stale is None:
            return
        try:
            stale.dispose()
        except Exception as e:
            self.logger.warning(f"Failed to dispose broken connection: {e}")

    async def _discard_async(self) -> None:
        stale, self._connection = self._connection, None
        if stale is None:
            return
        try:
            await stale.dispose_async()
        except Exception as e:
            self.logger.warning(f"Failed to dispose broken connection: {e}")

    def _create(self) -> NativeConnection:
        connection = self.driver.create_connection()
        connection.connection_string = self.connection_string_provider()
        self._connection = connection
        self.logger.debug(f"Created {type(connection).__name__} with {self.driver!r}")
        return connection

    def ensure_open(self) -> NativeConnection:
        """Return the session's connection, guaranteed open."""
        self._check_disposed()
        if not self.is_ready:
            self._discard()
            self._create()
        connection = self._connection
        if connection.state is not ConnectionState.OPEN:
            connection.open()
            self.logger.debug("Connection opened")
        return connection

    async def ensure_open_async(self) -> NativeConnection:
        self._check_disposed()
        if not self.is_ready:
            await self._discard_async()
            self._create()
        connection = self._connection
        if connection.state is not ConnectionState.OPEN:
            await connection.open_async()
            self.logger.debug("Connection opened")
        return connection

    def dispose(self) -> None:
        """Release the handle. A driver refusing the blocking call leaves the holder live for dispose_async()."""
        if self._disposed:
            return
        self._disposed = True
        connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            connection.dispose()
        except UsageError:
            self._disposed = False
            self._connection = connection
            raise

    async def dispose_async(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        connection, self._connection = self._connection, None
        if connection is not None:
            await connection.dispose_async()

    def __repr__(self):
        state = "disposed" if self._disposed else (self._connection.state.value if self._connection else "empty")
        return f"ConnectionHolder({self.driver!r}, {state})"
