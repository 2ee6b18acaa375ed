from __future__ import annotations
from typing import Any, Optional


def validate_none_or_non_neg_int(value: Optional[int], name: str = "value") -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer or None")
    return value


def validate_non_neg_int(value: int, name: str = "value") -> int:
    ivalue = validate_none_or_non_neg_int(value, name)
    if ivalue is None:
        raise ValueError(f"{name} must be a non-negative integer")
    return ivalue


class EventBuffer(list):
    """
    A capacity-limited list of history entries.

    ``append`` returns True once the buffer holds ``max_length`` entries, the
    signal for the owner to move them out. Up to ``tolerance`` more entries
    are accepted past that point (unlimited when ``tolerance`` is None);
    beyond it ``append`` raises ``OverflowError``.

    Example:
        >>> buffer = EventBuffer(max_length=2, tolerance=1)
        >>> buffer.append("a")
        False
        >>> buffer.append("b")
        True
        >>> buffer.flush()
        ('a', 'b')
    """

    def __init__(self, max_length: int = 1, tolerance: Optional[int] = 0):
        super().__init__()
        self.max_length = max_length
        self.tolerance = tolerance

    @property
    def max_length(self) -> int:
        return self._max_length

    @max_length.setter
    def max_length(self, value: int) -> None:
        self._max_length = validate_non_neg_int(value, "max_length")

    @property
    def tolerance(self) -> Optional[int]:
        return self._tolerance

    @tolerance.setter
    def tolerance(self, value: Optional[int]) -> None:
        self._tolerance = validate_none_or_non_neg_int(value, "tolerance")

    @property
    def full(self) -> bool:
        return len(self) >= self.max_length

    def tolerable(self) -> bool:
        """True while one more entry still fits within ``max_length + tolerance``."""
        if self.tolerance is None:
            return True
        return len(self) < self.max_length + self.tolerance

    def append(self, item: Any) -> bool:
        if not self.tolerable():
            raise OverflowError("Event buffer is full")
        super().append(item)
        return self.full

    def flush(self) -> tuple:
        """Remove and return every entry, oldest first."""
        output = tuple(self)
        self.clear()
        return output
