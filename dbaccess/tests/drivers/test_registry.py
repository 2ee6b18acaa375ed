# tests/drivers/test_registry.py
import pytest
from ...drivers import AioSqliteDriver, Backend, DriverRegistry, SqliteDriver, default_registry
from ...classify import MsSqlClassifier, SqliteClassifier
from ...exceptions import UnknownBackendError
from ..fakes import FakeDriver


class TestDriverRegistry:

    def test_default_registry(self):
        registry = default_registry()
        assert registry.names() == ["aiosqlite", "sqlite", "sqlite3"]
        assert isinstance(registry.get("sqlite").driver, SqliteDriver)
        assert isinstance(registry.get("aiosqlite").driver, AioSqliteDriver)
        assert isinstance(registry.get("sqlite").classifier, SqliteClassifier)

    def test_alias_resolves_to_same_backend(self):
        registry = default_registry()
        assert registry.get("sqlite3") is registry.get("sqlite")

    def test_lookup_is_case_insensitive(self):
        registry = default_registry()
        assert "SQLite" in registry
        assert registry.get("SQLITE").name == "sqlite"

    def test_unknown_backend(self):
        with pytest.raises(UnknownBackendError):
            DriverRegistry().get("db2")

    def test_register_and_unregister(self):
        backend = Backend("mssql", FakeDriver(), MsSqlClassifier())
        registry = DriverRegistry([backend])
        assert len(registry) == 1
        registry.unregister("mssql")
        assert "mssql" not in registry
        registry.unregister("mssql")

    def test_registries_are_independent(self):
        first, second = default_registry(), default_registry()
        first.register(Backend("fake", FakeDriver(), MsSqlClassifier()))
        assert "fake" in first
        assert "fake" not in second


class TestBackend:

    def test_prefix_defaults_to_driver(self):
        assert Backend("fake", FakeDriver(), MsSqlClassifier()).prefix == "@"

    def test_prefix_override(self):
        assert Backend("fake", FakeDriver(), MsSqlClassifier(), param_prefix="$").prefix == "$"
