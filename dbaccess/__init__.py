from .session import Session, Transaction, LegacyConnection
from .execution import (
    sql,
    procedure,
    SqlText,
    StoredProcedure,
    Fetch,
    FetchAll,
    FetchOne,
    FetchMany,
    DictRows,
)
from .result import Error, ErrorType, Result, Success, Failure
from .classify import (
    ErrorClassifier,
    DefaultClassifier,
    SqliteClassifier,
    PostgresClassifier,
    MySqlClassifier,
    MsSqlClassifier,
    OracleClassifier,
)
from .drivers import (
    Backend,
    DriverRegistry,
    default_registry,
    IsolationLevel,
    SqliteDriver,
    AioSqliteDriver,
    use_identity,
)
from .cancellation import CancellationToken
from .log import SqlCallEvent, ErrorEvent
from .features import LogFeature, HistoryFeature, HistoryDumpGenerator
from .exceptions import (
    DBAccessError,
    UsageError,
    DisposedError,
    InvalidOperationError,
    TransactionActiveError,
    ExecutionError,
)

__all__ = (
    "Session",
    "Transaction",
    "LegacyConnection",
    "sql",
    "procedure",
    "SqlText",
    "StoredProcedure",
    "Fetch",
    "FetchAll",
    "FetchOne",
    "FetchMany",
    "DictRows",
    "Error",
    "ErrorType",
    "Result",
    "Success",
    "Failure",
    "ErrorClassifier",
    "DefaultClassifier",
    "SqliteClassifier",
    "PostgresClassifier",
    "MySqlClassifier",
    "MsSqlClassifier",
    "OracleClassifier",
    "Backend",
    "DriverRegistry",
    "default_registry",
    "IsolationLevel",
    "SqliteDriver",
    "AioSqliteDriver",
    "use_identity",
    "CancellationToken",
    "SqlCallEvent",
    "ErrorEvent",
    "LogFeature",
    "HistoryFeature",
    "HistoryDumpGenerator",
    "DBAccessError",
    "UsageError",
    "DisposedError",
    "InvalidOperationError",
    "TransactionActiveError",
    "ExecutionError",
)
