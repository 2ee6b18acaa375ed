"""
Backend registry.

A ``Backend`` bundles the collaborators one database product contributes:
its driver factory, its error classifier and its parameter-name prefix.
Registries are plain objects handed to ``Session.from_registry``; there is
no process-wide registration, so every test (or tenant) can build its own.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..classify.base import ErrorClassifier
from ..classify.sqlite import SqliteClassifier
from ..exceptions import UnknownBackendError
from .aio_sqlite import AioSqliteDriver
from .base import DriverFactory
from .sqlite import SqliteDriver


@dataclass(frozen=True)
class Backend:
    name: str
    driver: DriverFactory
    classifier: ErrorClassifier
    param_prefix: Optional[str] = field(default=None)

    @property
    def prefix(self) -> str:
        return self.driver.param_prefix if self.param_prefix is None else self.param_prefix


class DriverRegistry:
    """Name → Backend lookup, populated explicitly by its owner."""

    def __init__(self, backends: Optional[List[Backend]] = None):
        self._backends: Dict[str, Backend] = {}
        for backend in backends or ():
            self.register(backend)

    def register(self, backend: Backend, *aliases: str) -> None:
        for name in (backend.name, *aliases):
            self._backends[name.lower()] = backend

    def unregister(self, name: str) -> None:
        self._backends.pop(name.lower(), None)

    def get(self, name: str) -> Backend:
        try:
            return self._backends[name.lower()]
        except KeyError:
            raise UnknownBackendError(f"Unknown database backend: {name}") from None

    def names(self) -> List[str]:
        return sorted(self._backends)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._backends

    def __len__(self) -> int:
        return len(self._backends)


def default_registry() -> DriverRegistry:
    """A fresh registry holding the bundled SQLite backends."""
    registry = DriverRegistry()
    registry.register(Backend("sqlite", SqliteDriver(), SqliteClassifier()), "sqlite3")
    registry.register(Backend("aiosqlite", AioSqliteDriver(), SqliteClassifier()))
    return registry
