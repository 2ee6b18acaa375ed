"""
Command factories.

Every Session operation takes a command factory: an object with
``construct_command(session)`` (and optionally
``read_output_parameters(session, command)``), or a plain callable
``(session) -> NativeCommand``. The factory runs outside the failure
boundary, so an exception it raises reaches the caller unclassified.

    session.execute_scalar(sql("SELECT count(*) FROM users WHERE active = :active", active=1))
    session.execute_non_query(procedure("archive_orders", before="2024-01-01"))
"""
from __future__ import annotations
from typing import Any, Callable, Dict, Optional, Protocol, TYPE_CHECKING, Union, runtime_checkable

from ..drivers.base import NativeCommand
from ..exceptions import MissingCollaboratorError

if TYPE_CHECKING:
    from ..session.session_base import SessionBase


@runtime_checkable
class CommandFactory(Protocol):

    def construct_command(self, session: "SessionBase") -> NativeCommand:
        ...


@runtime_checkable
class ReadsOutputParameters(Protocol):

    def read_output_parameters(self, session: "SessionBase", command: NativeCommand) -> None:
        ...


CommandFactoryLike = Union[CommandFactory, Callable[["SessionBase"], NativeCommand]]


def construct_command(factory: CommandFactoryLike, session: "SessionBase") -> NativeCommand:
    if factory is None:
        raise MissingCollaboratorError("command factory")
    method = getattr(factory, "construct_command", None)
    if callable(method):
        command = method(session)
    elif callable(factory):
        command = factory(session)
    else:
        raise TypeError(f"Command factory must be callable or define construct_command(session), got {type(factory).__name__}")
    if command is None:
        raise MissingCollaboratorError("command")
    return command


def read_output_parameters(factory: CommandFactoryLike, session: "SessionBase", command: NativeCommand) -> None:
    hook = getattr(factory, "read_output_parameters", None)
    if callable(hook):
        hook(session, command)


class SqlText:
    """Parameterized SQL text; keyword values become named input parameters."""

    def __init__(self, text: str, params: Optional[Dict[str, Any]] = None):
        self.text = text
        self.params = dict(params or {})

    def construct_command(self, session: "SessionBase") -> NativeCommand:
        command = session.get_sql_command(self.text)
        for name, value in self.params.items():
            session.add_in_parameter(command, name, value)
        return command

    def __repr__(self):
        return f"SqlText({self.text!r}, {self.params!r})"


class StoredProcedure:
    """
    A stored-procedure call.

    ``outputs`` maps output parameter names to their db type; after a
    successful call their values are collected into ``self.output``.
    """

    def __init__(
        self,
        name: str,
        params: Optional[Dict[str, Any]] = None,
        outputs: Optional[Dict[str, Optional[str]]] = None,
    ):
        self.name = name
        self.params = dict(params or {})
        self.outputs = dict(outputs or {})
        self.output: Dict[str, Any] = {}

    def construct_command(self, session: "SessionBase") -> NativeCommand:
        command = session.get_stored_proc_command(self.name)
        for name, value in self.params.items():
            session.add_in_parameter(command, name, value)
        for name, db_type in self.outputs.items():
            session.add_out_parameter(command, name, db_type)
        return command

    def read_output_parameters(self, session: "SessionBase", command: NativeCommand) -> None:
        self.output = {name: session.get_parameter_value(command, name) for name in self.outputs}

    def __repr__(self):
        return f"StoredProcedure({self.name!r}, {self.params!r}, outputs={list(self.outputs)!r})"


def sql(text: str, **params: Any) -> SqlText:
    return SqlText(text, params)


def procedure(name: str, **params: Any) -> StoredProcedure:
    return StoredProcedure(name, params)
