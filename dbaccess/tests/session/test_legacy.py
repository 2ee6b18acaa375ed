# tests/session/test_legacy.py
import pytest
from ...session import LegacyConnection, Session
from ...classify.mssql import MsSqlClassifier
from ...execution.commands import sql, StoredProcedure
from ...execution.fetch_types import DictRows
from ...exceptions import (
    BusinessError,
    ConflictError,
    ExecutionError,
    MissingCollaboratorError,
    TimeoutExpiredError,
)
from ..fakes import CONNECTION_STRING, FakeDbError


@pytest.fixture
def legacy(driver):
    connection = LegacyConnection(Session(driver, CONNECTION_STRING, MsSqlClassifier()))
    yield connection
    connection.dispose()


class TestLegacyConnection:

    def test_requires_session(self):
        with pytest.raises(MissingCollaboratorError):
            LegacyConnection(None)

    def test_returns_plain_values(self, legacy, driver):
        driver.script("UPDATE", result=2)
        driver.script("SELECT 1", result=1)
        assert legacy.execute_non_query(sql("UPDATE")) == 2
        assert legacy.execute_scalar(sql("SELECT 1")) == 1

    def test_failure_raises_mapped_exception(self, legacy, driver):
        driver.script("INSERT", error=FakeDbError(2627, "duplicate"))
        with pytest.raises(ConflictError) as excinfo:
            legacy.execute_non_query(sql("INSERT"))
        assert excinfo.value.error.code == "2627"
        assert isinstance(excinfo.value, ExecutionError)

    def test_timeout_raises(self, legacy, driver):
        driver.script("slow", error=FakeDbError(-2, "Timeout expired"))
        with pytest.raises(TimeoutExpiredError):
            legacy.execute_scalar(sql("slow"))

    def test_events_still_published(self, legacy, driver):
        events = []
        legacy.session.add_event(events.append)
        driver.script("bad", error=FakeDbError(50000, "custom"))
        legacy.execute_non_query(sql("ok"))
        with pytest.raises(BusinessError):
            legacy.execute_non_query(sql("bad"))
        assert [e.is_error for e in events] == [False, True]

    def test_output_parameters_read_back(self, legacy, driver):
        driver.script("count_users", outputs={"@total": 12})
        factory = StoredProcedure("count_users", outputs={"total": "int"})
        legacy.execute_non_query(factory)
        assert factory.output == {"total": 12}

    def test_get_reader_reads_outputs_after_drain(self, legacy, driver):
        driver.script(
            "list_users",
            result_sets=[((("id",), ("name",)), [(1, "ann")]), (None, [])],
            outputs={"@total": 1},
        )
        factory = StoredProcedure("list_users", outputs={"total": "int"})
        rows = legacy.get_reader(factory, DictRows())
        assert rows == [{"id": 1, "name": "ann"}]
        assert factory.output == {"total": 1}

    @pytest.mark.asyncio
    async def test_async_calls(self, legacy, driver):
        driver.script("SELECT", result_sets=[(None, [(1,), (2,)])])
        driver.script("DELETE", error=FakeDbError(547, "FK"))
        assert await legacy.get_reader_async(sql("SELECT")) == [(1,), (2,)]
        with pytest.raises(BusinessError):
            await legacy.execute_non_query_async(sql("DELETE"))

    def test_context_manager_disposes_session(self, driver):
        with LegacyConnection(Session(driver, CONNECTION_STRING)) as legacy:
            legacy.execute_non_query(sql("x"))
        assert legacy.session.disposed is True
