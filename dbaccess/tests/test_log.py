# tests/test_log.py
import pytest
from datetime import timedelta
from ..log import ErrorEvent, SqlCallEvent
from ..result import Error


class TestSqlCallEvent:

    def test_start(self):
        event = SqlCallEvent.start("SELECT 1")
        assert event.text == "SELECT 1"
        assert event.duration is None
        assert event.finished is False
        assert event.is_error is False

    def test_finish_stamps_duration_once(self):
        event = SqlCallEvent.start("SELECT 1")
        assert event.finish() is event
        duration = event.duration
        assert duration >= timedelta(0)
        event.finish()
        assert event.duration == duration

    def test_read_only_after_finish(self):
        event = SqlCallEvent.start("SELECT 1").finish()
        with pytest.raises(AttributeError):
            event.text = "DROP TABLE users"

    def test_to_dict(self):
        event = SqlCallEvent.start("SELECT 1").finish()
        data = event.to_dict()
        assert data["text"] == "SELECT 1"
        assert data["is_error"] is False
        assert data["duration"] >= 0
        assert data["start_time"] == event.start_time.isoformat()

    def test_str(self):
        event = SqlCallEvent.start("SELECT 1").finish()
        assert "SELECT 1" in str(event)
        assert "Duration:" in str(event)


class TestErrorEvent:

    def test_copies_call(self):
        call = SqlCallEvent.start("INSERT").finish()
        error = Error.conflict(2627, "dup")
        event = ErrorEvent(call, error, KeyError("x"))
        assert event.text == call.text
        assert event.start_time == call.start_time
        assert event.duration == call.duration
        assert event.is_error is True
        assert event.error is error
        assert event.finished is True

    def test_to_dict_and_str(self):
        event = ErrorEvent(SqlCallEvent.start("INSERT").finish(), Error.conflict(2627, "dup"))
        assert event.to_dict()["error"] == {"type": "conflict", "code": "2627", "message": "dup"}
        assert str(event).endswith("Error: conflict[2627]: dup")
