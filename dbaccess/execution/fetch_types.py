from typing import Any, Dict, List, Optional, Union

from ..drivers.base import DataReader


# === Consumers ===

class Consumer:
    """
    Base class for the bundled result-set consumers.

    A consumer turns the reader's current result set into a domain value via
    ``consume(reader)``. Any object with that method, or a plain callable
    taking the reader, can be handed to ``Session.execute_reader``.
    """
    type: str

    def consume(self, reader: DataReader) -> Any:
        raise NotImplementedError

    def __call__(self, reader: DataReader) -> Any:
        return self.consume(reader)


class FetchOne(Consumer):
    """First row of the result set, or None."""
    def __init__(self): self.type = "fetchone"
    def consume(self, reader: DataReader) -> Optional[tuple]: return reader.fetchone()
    def __repr__(self): return "FetchOne()"
    def __eq__(self, value): return isinstance(value, FetchOne)
    def __hash__(self): return hash(self.type)


class FetchAll(Consumer):
    def __init__(self): self.type = "fetchall"
    def consume(self, reader: DataReader) -> List[tuple]: return list(reader.fetchall())
    def __repr__(self): return "FetchAll()"
    def __eq__(self, value): return isinstance(value, FetchAll)
    def __hash__(self): return hash(self.type)


class FetchMany(Consumer):
    def __init__(self, n: Optional[int] = None):
        if n is None or n < 1:
            raise ValueError("FetchMany requires a positive integer n >= 1.")
        self.n = n
        self.type = "fetchmany"
    def consume(self, reader: DataReader) -> List[tuple]: return list(reader.fetchmany(self.n))
    def __repr__(self): return f"FetchMany(n={self.n})"
    def __eq__(self, value): return isinstance(value, FetchMany) and self.n == value.n
    def __hash__(self): return hash((self.type, self.n))


class DictRows(Consumer):
    """All rows as dicts keyed by column name."""

    def __init__(self, limit: Optional[int] = None):
        if limit is not None and limit < 1:
            raise ValueError("DictRows limit must be a positive integer or None.")
        self.limit = limit
        self.type = "dictrows"

    def consume(self, reader: DataReader) -> List[Dict[str, Any]]:
        columns = reader.columns
        rows = reader.fetchall() if self.limit is None else reader.fetchmany(self.limit)
        return [dict(zip(columns, row)) for row in rows]

    def __repr__(self): return f"DictRows(limit={self.limit})"
    def __eq__(self, value): return isinstance(value, DictRows) and self.limit == value.limit
    def __hash__(self): return hash((self.type, self.limit))


# === Utility Functions ===

def _fetch_num_arg(arg: int) -> Union[FetchOne, FetchMany]:
    if arg < 1:
        raise ValueError(f"Invalid integer argument for Fetch: {arg}")
    return FetchOne() if arg == 1 else FetchMany(arg)


def Fetch(arg: Optional[Union[str, int, Consumer]] = None) -> Consumer:
    """
    Build a consumer from a short specification.

    Args:
        arg: ``None`` or ``"all"``/``"fetchall"`` for every row, ``"one"``/``"fetchone"``
            or ``1`` for the first row, any other positive integer (or its string form)
            for that many rows, ``"dict"``/``"dicts"`` for dict rows. A ``Consumer`` is
            returned unchanged.

    Raises:
        ValueError: If a string or integer specification is invalid.
        TypeError: If the argument type is not supported.
    """
    if arg is None: return FetchAll()
    if isinstance(arg, Consumer): return arg
    if isinstance(arg, bool): raise TypeError("Invalid argument type: bool")
    if isinstance(arg, str):
        spec = arg.replace("_", "").replace(" ", "").lower()
        if spec in ("one", "fetchone"): return FetchOne()
        if spec in ("all", "fetchall"): return FetchAll()
        if spec in ("dict", "dicts", "dictrows"): return DictRows()
        try: return _fetch_num_arg(int(spec))
        except ValueError: pass
        raise ValueError(f"Invalid string argument for Fetch: {arg}")
    if isinstance(arg, int): return _fetch_num_arg(arg)
    raise TypeError(f"Invalid argument type: {type(arg).__name__}")
