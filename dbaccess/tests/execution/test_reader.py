# tests/execution/test_reader.py
import pytest
from unittest.mock import MagicMock
from ...drivers.base import BufferedReader
from ...execution.reader import consume, drain, read_all
from ...execution.fetch_types import FetchOne
from ...execution.commands import construct_command, read_output_parameters, sql, StoredProcedure
from ...exceptions import MissingCollaboratorError


class FlakyReader(BufferedReader):

    def next_result(self) -> bool:
        raise RuntimeError("connection reset")


class TestConsume:

    def test_consumer_object(self):
        reader = BufferedReader([(None, [(1,)])])
        assert consume(FetchOne(), reader) == (1,)

    def test_callable(self):
        reader = BufferedReader([(None, [(1,), (2,)])])
        assert consume(lambda r: len(r.fetchall()), reader) == 2

    def test_rejects_other_objects(self):
        with pytest.raises(TypeError):
            consume(42, BufferedReader([]))


class TestDrain:

    def test_skips_remaining_sets(self):
        reader = BufferedReader([(None, []), (None, []), (None, [])])
        assert drain(reader) == 2
        assert reader.next_result() is False

    def test_failure_is_logged(self):
        logger = MagicMock()
        assert drain(FlakyReader([(None, [])]), logger) == 0
        logger.warning.assert_called_once()


class TestReadAll:

    def test_closes_reader(self):
        reader = BufferedReader([(None, [(1,)]), (None, [(2,)])])
        assert read_all(reader, FetchOne()) == (1,)
        assert reader.closed is True

    def test_closes_reader_on_consumer_error(self):
        reader = BufferedReader([(None, [(1,)])])

        def consumer(r):
            raise ValueError("mapping failed")

        with pytest.raises(ValueError):
            read_all(reader, consumer)
        assert reader.closed is True


class TestCommandFactories:

    def test_construct_command_rejects_none(self, session):
        with pytest.raises(MissingCollaboratorError):
            construct_command(None, session)

    def test_factory_returning_none(self, session):
        with pytest.raises(MissingCollaboratorError):
            construct_command(lambda s: None, session)

    def test_factory_must_be_callable(self, session):
        with pytest.raises(TypeError):
            construct_command("SELECT 1", session)

    def test_sql_adds_prefixed_parameters(self, session):
        command = construct_command(sql("SELECT * FROM t WHERE id = @id", id=3), session)
        assert [(p.name, p.value) for p in command.parameters] == [("@id", 3)]

    def test_stored_procedure_output(self, session):
        factory = StoredProcedure("proc", {"a": 1}, outputs={"total": "int"})
        command = construct_command(factory, session)
        command.get_parameter("@total").value = 9
        read_output_parameters(factory, session, command)
        assert factory.output == {"total": 9}

    def test_read_output_parameters_without_hook(self, session):
        read_output_parameters(sql("x"), session, MagicMock())
