# tests/features/test_buffer.py
import pytest
from ...features.buffer import EventBuffer, validate_non_neg_int, validate_none_or_non_neg_int


class TestValidators:

    def test_accepts(self):
        assert validate_none_or_non_neg_int(None) is None
        assert validate_none_or_non_neg_int(0) == 0
        assert validate_non_neg_int(3) == 3

    @pytest.mark.parametrize("value", [-1, 1.5, "2", True])
    def test_rejects(self, value):
        with pytest.raises(ValueError):
            validate_none_or_non_neg_int(value)

    def test_none_rejected_when_required(self):
        with pytest.raises(ValueError):
            validate_non_neg_int(None)


class TestEventBuffer:

    def test_append_signals_full(self):
        buffer = EventBuffer(max_length=2, tolerance=1)
        assert buffer.append("a") is False
        assert buffer.append("b") is True
        assert buffer.full

    def test_tolerance(self):
        buffer = EventBuffer(max_length=1, tolerance=1)
        buffer.append("a")
        assert buffer.tolerable()
        buffer.append("b")
        assert not buffer.tolerable()
        with pytest.raises(OverflowError):
            buffer.append("c")

    def test_unlimited_tolerance(self):
        buffer = EventBuffer(max_length=1, tolerance=None)
        for i in range(10):
            buffer.append(i)
        assert len(buffer) == 10

    def test_flush(self):
        buffer = EventBuffer(max_length=3)
        buffer.append("a")
        buffer.append("b")
        assert buffer.flush() == ("a", "b")
        assert len(buffer) == 0

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            EventBuffer(max_length=-1)
        with pytest.raises(ValueError):
            EventBuffer(max_length=1, tolerance=-2)
