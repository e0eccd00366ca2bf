from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fourinarow.types import MoveMessage

if TYPE_CHECKING:
    from fourinarow.session.connection import ConnectionManager
    from fourinarow.session.state import SessionStateMachine

logger = logging.getLogger(__name__)


class MoveSubmitter:
    """Sends moves only while a game is in progress.

    Moves outside ``playing`` are dropped silently. Column range is left to the server.
    """

    def __init__(self, machine: SessionStateMachine, connection: ConnectionManager) -> None:
        self._machine = machine
        self._connection = connection

    def submit_move(self, column: int) -> bool:
        if not self._machine.is_playing:
            logger.debug("Ignoring move to column %d while %s", column, self._machine.status)
            return False
        return self._connection.send(MoveMessage(column=column))
