# tests/session/test_session_async.py
import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock
from ...session import Session
from ...cancellation import CancellationToken
from ...classify.mssql import MsSqlClassifier
from ...execution.commands import sql, StoredProcedure
from ...execution.fetch_types import FetchOne
from ...exceptions import DisposedError, TransactionActiveError
from ...log import ErrorEvent
from ...result import ErrorType, Success
from ..fakes import CONNECTION_STRING, FakeDbError


class TestAsyncOperations:

    @pytest.mark.asyncio
    async def test_non_query(self, session, driver):
        driver.script("UPDATE", result=4)
        assert await session.execute_non_query_async(sql("UPDATE")) == Success(4)
        assert driver.connections[0].opens == 1

    @pytest.mark.asyncio
    async def test_scalar(self, session, driver):
        driver.script("SELECT max(id) FROM t", result=99)
        result = await session.execute_scalar_async(sql("SELECT max(id) FROM t"))
        assert result.value == 99

    @pytest.mark.asyncio
    async def test_reader_drains_before_after_call(self, session, driver):
        driver.script("report", result_sets=[(None, [(1,)]), (None, [(2,)])], outputs={"@rows": 2})
        factory = StoredProcedure("report", outputs={"rows": "int"})
        seen = []
        result = await session.execute_reader_async(
            factory, FetchOne(), lambda cmd: seen.append(session.get_parameter_value(cmd, "rows"))
        )
        assert result.value == (1,)
        assert seen == [2]
        assert driver.last_command.reader.closed is True

    @pytest.mark.asyncio
    async def test_bind(self, session, driver):
        driver.script("next_id", outputs={"@id": 7})
        factory = StoredProcedure("next_id", outputs={"id": "int"})
        result = await session.execute_and_bind_async(factory, lambda cmd: session.get_parameter_value(cmd, "id"))
        assert result.value == 7

    @pytest.mark.asyncio
    async def test_failure_publishes_error_event(self, driver):
        session = Session(driver, CONNECTION_STRING, MsSqlClassifier())
        events = []
        session.add_event(events.append)
        driver.script("INSERT", error=FakeDbError(2601, "duplicate key row"))
        result = await session.execute_non_query_async(sql("INSERT"))
        assert result.error.type is ErrorType.CONFLICT
        assert len(events) == 1 and isinstance(events[0], ErrorEvent)
        assert driver.last_command.disposals == 1
        await session.dispose_async()

    @pytest.mark.asyncio
    async def test_transaction_attached(self, session, driver):
        txn = await session.begin_transaction_async()
        async with txn:
            await session.execute_non_query_async(sql("a"))
            await txn.commit_async()
        native = driver.connections[0].transactions[0]
        assert driver.last_command.executed_transaction is native
        assert native.commits == 1
        assert session.in_transaction is False

    @pytest.mark.asyncio
    async def test_second_transaction_rejected(self, session):
        await session.begin_transaction_async()
        with pytest.raises(TransactionActiveError):
            await session.begin_transaction_async()

    @pytest.mark.asyncio
    async def test_async_context_manager(self, driver):
        async with Session(driver, CONNECTION_STRING) as session:
            await session.execute_non_query_async(sql("x"))
        assert session.disposed is True
        with pytest.raises(DisposedError):
            await session.execute_scalar_async(sql("x"))

    @pytest.mark.asyncio
    async def test_concurrent_sessions_are_independent(self, driver):
        first = Session(driver, CONNECTION_STRING)
        second = Session(driver, CONNECTION_STRING)
        results = await asyncio.gather(
            first.execute_non_query_async(sql("x")),
            second.execute_non_query_async(sql("x")),
        )
        assert all(r.is_success for r in results)
        assert len(driver.connections) == 2
        await first.dispose_async()
        await second.dispose_async()


class TestCancellation:

    @pytest.mark.asyncio
    async def test_cancelled_before_call(self, session, driver):
        """A token cancelled up front stops the call before it reaches the driver."""
        events = []
        session.add_event(events.append)
        token = CancellationToken()
        token.cancel()
        with pytest.raises(asyncio.CancelledError):
            await session.execute_non_query_async(sql("x"), cancellation=token)
        assert events == []
        assert driver.last_command.executions == 0
        assert driver.last_command.disposals == 1

    def test_cancelled_before_blocking_call(self, session, driver):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(asyncio.CancelledError):
            session.execute_scalar(sql("x"), cancellation=token)
        assert driver.last_command.executions == 0

    @pytest.mark.asyncio
    async def test_cancel_during_call_is_forwarded(self, session, driver):
        token = CancellationToken()
        command = driver.create_command("slow")
        driver.commands.remove(command)

        def run():
            token.cancel()
            return 1

        command.execute_non_query_async = AsyncMock(side_effect=run)
        result = await session.execute_non_query_async(lambda s: command, cancellation=token)
        assert result == Success(1)
        assert command.cancels == 1

    @pytest.mark.asyncio
    async def test_cancel_after_call_not_forwarded(self, session, driver):
        token = CancellationToken()
        await session.execute_non_query_async(sql("x"), cancellation=token)
        token.cancel()
        assert driver.last_command.cancels == 0

    @pytest.mark.asyncio
    async def test_task_cancellation_propagates(self, session, driver):
        started = asyncio.Event()
        command = driver.create_command("hang")

        async def hang():
            started.set()
            await asyncio.sleep(10)

        command.execute_scalar_async = hang
        events = MagicMock()
        session.add_event(events)
        task = asyncio.ensure_future(session.execute_scalar_async(lambda s: command))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        events.assert_not_called()
        assert command.disposals == 1
