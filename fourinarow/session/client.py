"""High-level session object used by the terminal client."""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING, Any

from fourinarow.session.connection import ConnectionManager
from fourinarow.session.framer import get_framer
from fourinarow.session.moves import MoveSubmitter
from fourinarow.session.state import SessionStateMachine
from fourinarow.session.store import GameStateStore
from fourinarow.session.transport import WebSocketTransport
from fourinarow.settings import get_settings

if TYPE_CHECKING:
    from collections.abc import Callable

    from fourinarow.session.framer import Framer
    from fourinarow.session.scheduler import Scheduler
    from fourinarow.session.transport import Transport
    from fourinarow.settings import Settings
    from fourinarow.types import SessionStatus

logger = logging.getLogger(__name__)


class GameSession:
    """Wires the framer, connection manager, state machine, store and move gate.

    Presentation code reads ``status`` and ``store`` (or subscribes to them) and
    calls ``submit_move``; it never touches the connection directly.

    Example:
        async with GameSession() as session:
            session.connect("alice")
            ...
            session.submit_move(3)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport_factory: Callable[[], Transport] | None = None,
        scheduler: Scheduler | None = None,
        framer: Framer | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        if transport_factory is None:
            transport_factory = partial(
                WebSocketTransport, heartbeat_timeout=self.settings.heartbeat_timeout
            )

        self.machine = SessionStateMachine()
        self.store = GameStateStore()
        self.connection = ConnectionManager(
            self.machine,
            self.store,
            framer=framer or get_framer(self.settings.framing),
            transport_factory=transport_factory,
            scheduler=scheduler,
            max_reconnect_attempts=self.settings.reconnect_attempts,
            reconnect_interval=self.settings.reconnect_interval,
            heartbeat_interval=self.settings.heartbeat_interval,
        )
        self.moves = MoveSubmitter(self.machine, self.connection)
        self.username: str | None = None

    @property
    def status(self) -> SessionStatus:
        return self.machine.status

    def connect(self, username: str, endpoint: str | None = None) -> bool:
        """Start a new session as ``username``, discarding any previous one.

        Returns False (and changes nothing) if the username is blank.
        """
        identity = (username or "").strip()
        if identity:
            self.store.reset()
        if not self.connection.connect(endpoint or self.settings.ws_url, identity):
            return False
        self.username = identity
        return True

    def disconnect(self) -> None:
        self.connection.disconnect()

    def submit_move(self, column: int) -> bool:
        return self.moves.submit_move(column)

    async def __aenter__(self) -> GameSession:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.disconnect()
