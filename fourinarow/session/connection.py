"""Connection lifecycle: open, reconnect, heartbeat and message dispatch."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from fourinarow.session.framer import BraceBoundaryFramer
from fourinarow.session.scheduler import LoopScheduler
from fourinarow.session.state import SessionEvent
from fourinarow.session.transport import WebSocketTransport
from fourinarow.shared.exceptions import ReconnectExhaustedError
from fourinarow.types import (
    EndMessage,
    MoveMessage,
    PingMessage,
    PongMessage,
    StartMessage,
    StateMessage,
    UnknownMessage,
    encode_message,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from fourinarow.session.framer import Framer
    from fourinarow.session.scheduler import Scheduler, TimerHandle
    from fourinarow.session.state import SessionStateMachine
    from fourinarow.session.store import GameStateStore
    from fourinarow.session.transport import Transport
    from fourinarow.types import Message

logger = logging.getLogger(__name__)

MAX_RECONNECT_ATTEMPTS = 10
RECONNECT_INTERVAL = 3.0
HEARTBEAT_INTERVAL = 45.0


def build_connect_url(endpoint: str, identity: str) -> str:
    """Append the username query parameter to the WebSocket endpoint."""
    separator = "&" if "?" in endpoint else "?"
    return f"{endpoint}{separator}{urlencode({'username': identity})}"


@dataclass
class ConnectionAttemptState:
    attempts: int = 0
    last_connect_at: float | None = None
    heartbeat: TimerHandle | None = None
    reconnect: TimerHandle | None = None
    exhausted: bool = False


class _GenerationListener:
    """Forwards transport events tagged with the generation that opened the transport."""

    def __init__(self, manager: ConnectionManager, generation: int) -> None:
        self._manager = manager
        self._generation = generation

    def on_open(self) -> None:
        self._manager._handle_open(self._generation)

    def on_message(self, raw: str) -> None:
        self._manager._handle_message(self._generation, raw)

    def on_error(self, error: Exception) -> None:
        self._manager._handle_error(self._generation, error)

    def on_close(self, reason: str) -> None:
        self._manager._handle_close(self._generation, reason)


class ConnectionManager:
    """Exclusive owner of the transport channel.

    Each transport and each timer is tied to the generation that was current when
    it was created. ``connect``, ``disconnect`` and every new transport bump the
    generation, so events from a superseded channel or timer are ignored.
    """

    def __init__(
        self,
        machine: SessionStateMachine,
        store: GameStateStore,
        *,
        framer: Framer | None = None,
        transport_factory: Callable[[], Transport] | None = None,
        scheduler: Scheduler | None = None,
        max_reconnect_attempts: int = MAX_RECONNECT_ATTEMPTS,
        reconnect_interval: float = RECONNECT_INTERVAL,
        heartbeat_interval: float = HEARTBEAT_INTERVAL,
    ) -> None:
        self._machine = machine
        self._store = store
        self._framer = framer or BraceBoundaryFramer()
        self._transport_factory = transport_factory or WebSocketTransport
        self._scheduler = scheduler or LoopScheduler()
        self.max_reconnect_attempts = max_reconnect_attempts
        self.reconnect_interval = reconnect_interval
        self.heartbeat_interval = heartbeat_interval

        self.attempt_state = ConnectionAttemptState()
        self._generation = 0
        self._transport: Transport | None = None
        self._url: str | None = None
        self._give_up_listeners: list[Callable[[ReconnectExhaustedError], None]] = []

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def url(self) -> str | None:
        return self._url

    @property
    def is_open(self) -> bool:
        return self._transport is not None and self._transport.is_open

    @property
    def exhausted(self) -> bool:
        return self.attempt_state.exhausted

    def add_give_up_listener(self, listener: Callable[[ReconnectExhaustedError], None]) -> None:
        self._give_up_listeners.append(listener)

    def connect(self, endpoint: str, identity: str) -> bool:
        """Start a fresh connection for ``identity``.

        Returns False without side effects when the identity is empty.
        """
        identity = (identity or "").strip()
        if not identity:
            logger.warning("Not connecting: username is empty")
            return False

        self._teardown()
        self.attempt_state = ConnectionAttemptState()
        self._url = build_connect_url(endpoint, identity)
        logger.info("Connecting to %s", self._url)
        self._machine.handle(SessionEvent.CONNECT_REQUESTED)
        self._open_transport()
        return True

    def disconnect(self) -> None:
        """Close the channel for good; no reconnect follows."""
        self._teardown()
        self._machine.handle(SessionEvent.TEARDOWN)

    def send(self, message: Message) -> bool:
        """Write ``message`` if the channel is open; otherwise drop it."""
        if self._transport is None or not self._transport.is_open:
            logger.debug("Dropping outbound %s message: not connected", message.type)
            return False
        self._transport.send_text(encode_message(message))
        return True

    def _teardown(self) -> None:
        self._generation += 1
        self._cancel_timers()
        if self._transport is not None:
            transport, self._transport = self._transport, None
            transport.close()

    def _cancel_timers(self) -> None:
        state = self.attempt_state
        if state.heartbeat is not None:
            state.heartbeat.cancel()
            state.heartbeat = None
        if state.reconnect is not None:
            state.reconnect.cancel()
            state.reconnect = None

    def _open_transport(self) -> None:
        if self._url is None:
            raise RuntimeError("No endpoint to open; call connect() first")
        self._generation += 1
        self.attempt_state.reconnect = None
        self.attempt_state.last_connect_at = self._scheduler.time()
        self._transport = self._transport_factory()
        self._transport.open(self._url, _GenerationListener(self, self._generation))

    def _schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        generation = self._generation

        def fire() -> None:
            if generation != self._generation:
                logger.debug("Ignoring timer from stale generation %d", generation)
                return
            callback()

        return self._scheduler.call_later(delay, fire)

    def _is_stale(self, generation: int, event: str) -> bool:
        if generation != self._generation:
            logger.debug("Ignoring %s from stale generation %d", event, generation)
            return True
        return False

    def _handle_open(self, generation: int) -> None:
        if self._is_stale(generation, "open"):
            return
        logger.info("Connected to %s", self._url)
        self.attempt_state.attempts = 0
        self._machine.handle(SessionEvent.SOCKET_OPEN)
        self._start_heartbeat()

    def _handle_close(self, generation: int, reason: str) -> None:
        if self._is_stale(generation, "close"):
            return
        state = self.attempt_state
        self._transport = None
        if state.heartbeat is not None:
            state.heartbeat.cancel()
            state.heartbeat = None
        logger.info("Connection closed: %s", reason or "no reason given")
        self._machine.handle(SessionEvent.SOCKET_CLOSE)

        if state.attempts >= self.max_reconnect_attempts:
            state.exhausted = True
            self._machine.handle(SessionEvent.RECONNECT_EXHAUSTED)
            error = ReconnectExhaustedError(attempts=state.attempts)
            logger.error("%s", error)
            for listener in list(self._give_up_listeners):
                try:
                    listener(error)
                except Exception:
                    logger.exception("Give-up listener failed")
            return

        state.attempts += 1
        logger.warning(
            "Reconnecting in %.1fs (attempt %d/%d)",
            self.reconnect_interval,
            state.attempts,
            self.max_reconnect_attempts,
        )
        state.reconnect = self._schedule(self.reconnect_interval, self._open_transport)

    def _handle_error(self, generation: int, error: Exception) -> None:
        if self._is_stale(generation, "error"):
            return
        # The close event that follows drives recovery
        logger.error("Transport error: %s", error)

    def _handle_message(self, generation: int, raw: str) -> None:
        if self._is_stale(generation, "message"):
            return
        logger.debug("Raw message: %s", raw)
        for message in self._framer.frame(raw):
            self._dispatch(message)

    def _dispatch(self, message: Message) -> None:
        if isinstance(message, PingMessage):
            self.send(PongMessage())
        elif isinstance(message, PongMessage):
            logger.debug("Pong received")
        elif isinstance(message, StartMessage):
            self._machine.handle(SessionEvent.START)
        elif isinstance(message, StateMessage):
            self._store.apply_state(message.board, message.turn)
        elif isinstance(message, EndMessage):
            self._store.apply_end(message.winner)
            self._machine.handle(SessionEvent.END)
        elif isinstance(message, MoveMessage):
            logger.debug("Ignoring inbound move message")
        elif isinstance(message, UnknownMessage):
            logger.info("Ignoring unknown message type %r", message.type)

    def _start_heartbeat(self) -> None:
        self.attempt_state.heartbeat = self._schedule(self.heartbeat_interval, self._heartbeat)

    def _heartbeat(self) -> None:
        if self._transport is None or not self._transport.is_open:
            self.attempt_state.heartbeat = None
            return
        logger.debug("Sending heartbeat probe")
        self._transport.probe()
        self._start_heartbeat()
