"""Session transport layer: framing, connection lifecycle and session state."""

from __future__ import annotations

from .client import GameSession
from .connection import ConnectionAttemptState, ConnectionManager
from .framer import BraceBoundaryFramer, Framer, NewlineDelimitedFramer, get_framer
from .moves import MoveSubmitter
from .scheduler import LoopScheduler, Scheduler
from .state import SessionEvent, SessionStateMachine
from .store import GameSnapshot, GameStateStore
from .transport import Transport, TransportListener, WebSocketTransport

__all__ = [
    "BraceBoundaryFramer",
    "ConnectionAttemptState",
    "ConnectionManager",
    "Framer",
    "GameSession",
    "GameSnapshot",
    "GameStateStore",
    "LoopScheduler",
    "MoveSubmitter",
    "NewlineDelimitedFramer",
    "Scheduler",
    "SessionEvent",
    "SessionStateMachine",
    "Transport",
    "TransportListener",
    "WebSocketTransport",
    "get_framer",
]
