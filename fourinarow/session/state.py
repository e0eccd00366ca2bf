"""Session lifecycle state machine."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from fourinarow.types import SessionStatus

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class SessionEvent(StrEnum):
    CONNECT_REQUESTED = "connect-requested"
    SOCKET_OPEN = "socket-open"
    SOCKET_CLOSE = "socket-close"
    START = "start"
    END = "end"
    RECONNECT_EXHAUSTED = "reconnect-exhausted"
    TEARDOWN = "teardown"


_CONNECTED = (SessionStatus.CONNECTED_WAITING, SessionStatus.PLAYING, SessionStatus.ENDED)

# (current, event) -> next. Pairs not listed are ignored.
TRANSITIONS: dict[tuple[SessionStatus, SessionEvent], SessionStatus] = {
    **{
        (status, SessionEvent.CONNECT_REQUESTED): SessionStatus.CONNECTING
        for status in SessionStatus
    },
    **{(status, SessionEvent.TEARDOWN): SessionStatus.DISCONNECTED for status in SessionStatus},
    **{(status, SessionEvent.SOCKET_CLOSE): SessionStatus.CONNECTING for status in _CONNECTED},
    (SessionStatus.CONNECTING, SessionEvent.SOCKET_CLOSE): SessionStatus.CONNECTING,
    (SessionStatus.CONNECTING, SessionEvent.SOCKET_OPEN): SessionStatus.CONNECTED_WAITING,
    (SessionStatus.CONNECTING, SessionEvent.RECONNECT_EXHAUSTED): SessionStatus.DISCONNECTED,
    (SessionStatus.CONNECTED_WAITING, SessionEvent.START): SessionStatus.PLAYING,
    (SessionStatus.PLAYING, SessionEvent.END): SessionStatus.ENDED,
}


class SessionStateMachine:
    """Owns the current ``SessionStatus``; the only writer of it.

    Every change goes through ``handle`` with a named event. Listeners are called
    with ``(old, new)`` after each change that actually moves the status.
    """

    def __init__(self, initial: SessionStatus = SessionStatus.DISCONNECTED) -> None:
        self._status = initial
        self._listeners: list[Callable[[SessionStatus, SessionStatus], None]] = []

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def is_playing(self) -> bool:
        return self._status is SessionStatus.PLAYING

    def add_listener(self, listener: Callable[[SessionStatus, SessionStatus], None]) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[SessionStatus, SessionStatus], None]) -> None:
        self._listeners.remove(listener)

    def handle(self, event: SessionEvent) -> bool:
        """Apply ``event``. Returns True if the status changed."""
        old = self._status
        new = TRANSITIONS.get((old, event))
        if new is None:
            logger.debug("Ignoring event %s in state %s", event, old)
            return False
        if new is old:
            return False

        self._status = new
        logger.info("Session %s -> %s (%s)", old, new, event)
        for listener in list(self._listeners):
            try:
                listener(old, new)
            except Exception:
                logger.exception("Status listener failed")
        return True
