# tests/session/test_connection_holder.py
import pytest
from unittest.mock import AsyncMock, MagicMock
from ...session.connection_holder import ConnectionHolder
from ...drivers.base import ConnectionState
from ...exceptions import DisposedError, MissingCollaboratorError, SynchronousCallError
from ..fakes import FakeDriver


def make_holder(driver=None, provider=None):
    return ConnectionHolder(driver or FakeDriver(), provider or (lambda: "Data Source=x"))


class TestConnectionHolderInit:

    def test_missing_driver_raises(self):
        """A None driver is a usage error raised immediately."""
        with pytest.raises(MissingCollaboratorError):
            ConnectionHolder(None, lambda: "x")

    def test_missing_provider_raises(self):
        with pytest.raises(MissingCollaboratorError):
            ConnectionHolder(FakeDriver(), None)

    def test_no_connection_until_first_use(self):
        """The native handle is created lazily."""
        driver = FakeDriver()
        holder = make_holder(driver)
        assert holder.connection is None
        assert driver.connections == []


class TestEnsureOpen:

    def test_creates_and_opens(self):
        driver = FakeDriver()
        holder = make_holder(driver, lambda: "Data Source=db1")
        conn = holder.ensure_open()
        assert conn is driver.connections[0]
        assert conn.state is ConnectionState.OPEN
        assert conn.connection_string == "Data Source=db1"
        assert conn.opens == 1

    def test_second_call_returns_identical_handle(self):
        """Calling twice without closing neither reopens nor recreates."""
        driver = FakeDriver()
        holder = make_holder(driver)
        first = holder.ensure_open()
        second = holder.ensure_open()
        assert first is second
        assert first.opens == 1
        assert len(driver.connections) == 1

    def test_closed_handle_is_reopened_in_place(self):
        """A closed-but-not-broken handle is reopened, not replaced."""
        driver = FakeDriver()
        holder = make_holder(driver)
        first = holder.ensure_open()
        first.close()
        second = holder.ensure_open()
        assert second is first
        assert second.opens == 2
        assert len(driver.connections) == 1

    def test_broken_handle_is_recreated(self):
        """A broken handle is disposed and replaced by a new instance."""
        driver = FakeDriver()
        holder = make_holder(driver)
        first = holder.ensure_open()
        first.set_state(ConnectionState.BROKEN)
        second = holder.ensure_open()
        assert second is not first
        assert first.disposals == 1
        assert second.state is ConnectionState.OPEN
        assert len(driver.connections) == 2

    def test_connection_string_recomputed_on_recreate(self):
        """The provider is consulted every time a handle is created."""
        provider = MagicMock(side_effect=["Data Source=a", "Data Source=b"])
        holder = make_holder(FakeDriver(), provider)
        first = holder.ensure_open()
        first.set_state(ConnectionState.BROKEN)
        second = holder.ensure_open()
        assert first.connection_string == "Data Source=a"
        assert second.connection_string == "Data Source=b"
        assert provider.call_count == 2

    def test_open_failure_propagates(self):
        driver = FakeDriver()
        holder = make_holder(driver)
        holder.ensure_open().close()
        driver.connections[0].open_error = OSError("network down")
        with pytest.raises(OSError):
            holder.ensure_open()

    def test_disposed_holder_fails_fast(self):
        holder = make_holder()
        holder.dispose()
        with pytest.raises(DisposedError):
            holder.ensure_open()

    @pytest.mark.asyncio
    async def test_ensure_open_async(self):
        driver = FakeDriver()
        holder = make_holder(driver)
        conn = await holder.ensure_open_async()
        assert conn.state is ConnectionState.OPEN
        assert await holder.ensure_open_async() is conn


class TestDispose:

    def test_dispose_closes_connection_once(self):
        driver = FakeDriver()
        holder = make_holder(driver)
        conn = holder.ensure_open()
        holder.dispose()
        holder.dispose()
        assert conn.disposals == 1
        assert holder.disposed is True
        assert holder.connection is None

    def test_dispose_without_connection(self):
        holder = make_holder()
        holder.dispose()
        assert holder.disposed is True

    @pytest.mark.asyncio
    async def test_dispose_async_is_idempotent(self):
        driver = FakeDriver()
        holder = make_holder(driver)
        conn = holder.ensure_open()
        await holder.dispose_async()
        await holder.dispose_async()
        assert conn.disposals == 1

    @pytest.mark.asyncio
    async def test_refused_blocking_dispose_keeps_handle_for_async(self):
        """An async-only driver rejects dispose(); the handle must still be released by dispose_async()."""
        holder = make_holder()
        conn = holder.ensure_open()
        conn.dispose = MagicMock(side_effect=SynchronousCallError("use dispose_async()"))
        conn.dispose_async = AsyncMock()
        with pytest.raises(SynchronousCallError):
            holder.dispose()
        assert holder.disposed is False
        assert holder.connection is conn
        await holder.dispose_async()
        conn.dispose_async.assert_awaited_once()
        assert holder.disposed is True
        assert holder.connection is None
