from __future__ import annotations
from logging import Logger, getLogger as logging_getLogger
from typing import Callable, Optional, Type

from ..drivers.base import NativeTransaction
from ..exceptions import DisposedError, InvalidOperationError, MissingCollaboratorError


class TransactionHolder:
    """
    Wraps one native transaction.

    Commits or rolls back at most once. Disposing a holder that was never
    committed rolls it back; rollback failures are logged and swallowed
    since rollback only ever runs on a cleanup path.
    """

    def __init__(self, native: NativeTransaction, logger: Optional[Logger] = None) -> None:
        if native is None:
            raise MissingCollaboratorError("native transaction")
        self.native = native
        self.logger = logger or logging_getLogger(__name__)
        self._committed = False
        self._rolled_back = False
        self._disposed = False

    @property
    def committed(self) -> bool:
        return self._committed

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def is_active(self) -> bool:
        return not self._disposed

    def _check_commit(self) -> None:
        if self._disposed:
            raise DisposedError(type(self).__name__)
        if self._committed:
            raise InvalidOperationError("transaction already committed")
        if self._rolled_back:
            raise InvalidOperationError("transaction already rolled back")

    def commit(self) -> None:
        self._check_commit()
        self.native.commit()
        self._committed = True
        self.logger.info("COMMIT transaction")

    async def commit_async(self) -> None:
        self._check_commit()
        await self.native.commit_async()
        self._committed = True
        self.logger.info("COMMIT transaction")

    def _should_roll_back(self) -> bool:
        return not (self._disposed or self._committed or self._rolled_back)

    def rollback(self) -> None:
        if not self._should_roll_back():
            return
        self._rolled_back = True
        try:
            self.native.rollback()
            self.logger.info("ROLLBACK transaction")
        except Exception as e:
            self.logger.error(f"Failed to rollback transaction: {e}")

    async def rollback_async(self) -> None:
        if not self._should_roll_back():
            return
        self._rolled_back = True
        try:
            await self.native.rollback_async()
            self.logger.info("ROLLBACK transaction")
        except Exception as e:
            self.logger.error(f"Failed to rollback transaction: {e}")

    def dispose(self) -> None:
        if self._disposed:
            return
        self.rollback()
        self._disposed = True
        try:
            self.native.dispose()
        except Exception as e:
            self.logger.warning(f"Failed to dispose native transaction: {e}")

    async def dispose_async(self) -> None:
        if self._disposed:
            return
        await self.rollback_async()
        self._disposed = True
        try:
            await self.native.dispose_async()
        except Exception as e:
            self.logger.warning(f"Failed to dispose native transaction: {e}")


class Transaction:
    """
    The caller's handle on the session's active transaction.

    Use it as a (async) context manager; leaving the block without calling
    ``commit()`` rolls the transaction back:

        with session.begin_transaction() as txn:
            session.execute_non_query(sql("INSERT INTO t (v) VALUES (:v)", v=1))
            txn.commit()

    Disposing the handle releases the session's transaction slot through the
    ``release`` callback, so a new transaction can begin.
    """

    def __init__(self, holder: TransactionHolder, release: Callable[[TransactionHolder], None]) -> None:
        self._holder = holder
        self._release = release
        self._disposed = False

    @property
    def holder(self) -> TransactionHolder:
        return self._holder

    @property
    def committed(self) -> bool:
        return self._holder.committed

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _check_disposed(self) -> None:
        if self._disposed:
            raise DisposedError(type(self).__name__)

    def commit(self) -> None:
        self._check_disposed()
        self._holder.commit()

    async def commit_async(self) -> None:
        self._check_disposed()
        await self._holder.commit_async()

    def rollback(self) -> None:
        self._check_disposed()
        self._holder.rollback()

    async def rollback_async(self) -> None:
        self._check_disposed()
        await self._holder.rollback_async()

    def dispose(self) -> None:
        self._check_disposed()
        self._disposed = True
        try:
            self._holder.dispose()
        finally:
            self._release(self._holder)

    async def dispose_async(self) -> None:
        self._check_disposed()
        self._disposed = True
        try:
            await self._holder.dispose_async()
        finally:
            self._release(self._holder)

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type: Optional[Type[BaseException]], exc_val: Optional[BaseException], exc_tb) -> None:
        if not self._disposed:
            self.dispose()

    async def __aenter__(self) -> Transaction:
        return self

    async def __aexit__(self, exc_type: Optional[Type[BaseException]], exc_val: Optional[BaseException], exc_tb) -> None:
        if not self._disposed:
            await self.dispose_async()

    def __repr__(self):
        if self._disposed:
            state = "disposed"
        elif self._holder.committed:
            state = "committed"
        else:
            state = "active"
        return f"Transaction({state})"
