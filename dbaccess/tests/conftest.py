# tests/conftest.py
import pytest
from .fakes import CONNECTION_STRING, FakeDriver
from ..session import Session


@pytest.fixture
def driver():
    """A fresh scriptable fake driver."""
    return FakeDriver()


@pytest.fixture
def session(driver):
    """A Session over the fake driver, disposed after the test."""
    s = Session(driver, CONNECTION_STRING)
    yield s
    s.dispose()
