from .commands import (
    CommandFactory,
    SqlText,
    StoredProcedure,
    construct_command,
    procedure,
    read_output_parameters,
    sql,
)
from .envelope import ExecutionEnvelope
from .fetch_types import (
    Consumer,
    DictRows,
    Fetch,
    FetchAll,
    FetchMany,
    FetchOne,
)
from .reader import consume, drain, read_all

__all__ = (
    "CommandFactory", "SqlText", "StoredProcedure", "construct_command", "procedure",
    "read_output_parameters", "sql", "ExecutionEnvelope", "Consumer", "DictRows", "Fetch",
    "FetchAll", "FetchMany", "FetchOne", "consume", "drain", "read_all",
)
