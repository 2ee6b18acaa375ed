from .base import (
    BufferedReader,
    CommandType,
    ConnectionState,
    DataReader,
    DriverFactory,
    IsolationLevel,
    NativeCommand,
    NativeConnection,
    NativeTransaction,
    Parameter,
    ParameterDirection,
)
from .connection_string import (
    ConnectionStringBuilder,
    client_identity,
    prepare_connection_string,
    use_identity,
)
from .sqlite import SqliteDriver
from .aio_sqlite import AioSqliteDriver
from .registry import Backend, DriverRegistry, default_registry

__all__ = (
    "BufferedReader",
    "CommandType",
    "ConnectionState",
    "DataReader",
    "DriverFactory",
    "IsolationLevel",
    "NativeCommand",
    "NativeConnection",
    "NativeTransaction",
    "Parameter",
    "ParameterDirection",
    "ConnectionStringBuilder",
    "client_identity",
    "prepare_connection_string",
    "use_identity",
    "SqliteDriver",
    "AioSqliteDriver",
    "Backend",
    "DriverRegistry",
    "default_registry",
)
