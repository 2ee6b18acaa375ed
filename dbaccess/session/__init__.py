"""
Sessions: the execution orchestrator and its lifecycle collaborators.

    from dbaccess.session import Session

    with Session(SqliteDriver(), "app.db", SqliteClassifier()) as session:
        with session.begin_transaction() as txn:
            session.execute_non_query(sql("INSERT INTO t (v) VALUES (:v)", v=1))
            txn.commit()
"""

from .session import Session                    # High-level orchestrator
from .session_base import SessionBase           # Lifecycle and command helpers

from .connection_holder import ConnectionHolder
from .transaction import Transaction, TransactionHolder
from .events import EventHost, EventHandler
from .features import Feature, FeatureHost
from .legacy import LegacyConnection

__all__ = [
    # Main entry points
    "Session",
    "Transaction",
    "LegacyConnection",

    # Advanced / extension points
    "SessionBase",
    "ConnectionHolder",
    "TransactionHolder",
    "EventHost",
    "EventHandler",
    "Feature",
    "FeatureHost",
]
