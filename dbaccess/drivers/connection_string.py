from __future__ import annotations
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import DriverFactory

APPLICATION_NAME = "Application Name"

client_identity: ContextVar[Optional[str]] = ContextVar("client_identity", default=None)


@contextmanager
def use_identity(name: Optional[str]) -> Iterator[None]:
    """Set the caller identity stamped into connection strings created inside the block."""
    token = client_identity.set(name)
    try:
        yield
    finally:
        client_identity.reset(token)


class ConnectionStringBuilder:
    """
    Ordered ``key=value;`` mapping with case-insensitive keys.

    The original casing of the first occurrence of a key is kept when the
    string is rebuilt.
    """

    def __init__(self, connection_string: str = ""):
        self._items: dict[str, tuple[str, str]] = {}
        if connection_string:
            self.parse(connection_string)

    def parse(self, connection_string: str) -> ConnectionStringBuilder:
        self._items.clear()
        for part in connection_string.split(";"):
            if not part.strip():
                continue
            key, sep, value = part.partition("=")
            if not sep:
                raise ValueError(f"Invalid connection string segment: {part!r}")
            self[key.strip()] = value.strip()
        return self

    def __getitem__(self, key: str) -> str:
        return self._items[key.lower()][1]

    def __setitem__(self, key: str, value: str) -> None:
        original = self._items.get(key.lower(), (key, ""))[0]
        self._items[key.lower()] = (original, value)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._items

    def __len__(self) -> int:
        return len(self._items)

    def to_string(self) -> str:
        return ";".join(f"{key}={value}" for key, value in self._items.values())

    __str__ = to_string

    def __repr__(self):
        return f"ConnectionStringBuilder({self.to_string()!r})"


def prepare_connection_string(
    driver: "DriverFactory",
    connection_string: str,
    identity: Optional[str] = None,
) -> str:
    """
    Stamp the caller identity into the ``Application Name`` of a connection string.

    Strings of five characters or fewer and drivers without a builder are
    returned unchanged. An existing application name is extended with a space
    and the identity.
    """
    if not connection_string or len(connection_string) <= 5:
        return connection_string

    builder = driver.create_connection_string_builder()
    if builder is None:
        return connection_string
    builder.parse(connection_string)

    name = identity if identity is not None else client_identity.get()
    if name:
        if APPLICATION_NAME in builder:
            builder[APPLICATION_NAME] = f"{builder[APPLICATION_NAME]} {name}"
        else:
            builder[APPLICATION_NAME] = name
    return builder.to_string()
