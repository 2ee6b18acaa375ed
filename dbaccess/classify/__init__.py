from .base import ErrorClassifier, DefaultClassifier, TableClassifier, classify
from .sqlite import SqliteClassifier
from .postgres import PostgresClassifier
from .mysql import MySqlClassifier
from .mssql import MsSqlClassifier
from .oracle import OracleClassifier

__all__ = (
    "ErrorClassifier",
    "DefaultClassifier",
    "TableClassifier",
    "classify",
    "SqliteClassifier",
    "PostgresClassifier",
    "MySqlClassifier",
    "MsSqlClassifier",
    "OracleClassifier",
)
