from __future__ import annotations
from logging import Logger
from typing import TYPE_CHECKING

from ..exceptions import MissingCollaboratorError
from ..log import SqlCallEvent

if TYPE_CHECKING:
    from ..session.session_base import SessionBase


class LogFeature:
    """Writes every published call to a logger: errors at ERROR, everything else at INFO."""

    def __init__(self, logger: Logger, session: "SessionBase") -> None:
        if logger is None:
            raise MissingCollaboratorError("logger")
        if session is None:
            raise MissingCollaboratorError("session")
        self.logger = logger
        self.session = session
        self._subscribed = True
        session.add_event(self.handle)

    def handle(self, event: SqlCallEvent) -> None:
        if event.is_error:
            self.logger.error(str(event))
        else:
            self.logger.info(str(event))

    def dispose(self) -> None:
        if not self._subscribed:
            return
        self._subscribed = False
        self.session.remove_event(self.handle)

    def __repr__(self):
        return f"LogFeature({self.logger.name!r})"
