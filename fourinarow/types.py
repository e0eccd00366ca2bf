from __future__ import annotations

import json
import logging
from enum import IntEnum, StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from fourinarow.shared.exceptions import MessageDecodeError

logger = logging.getLogger(__name__)

ROWS = 6
COLUMNS = 7

# Winner value the server sends when the board fills up without a line
DRAW = "Draw"


class Cell(IntEnum):
    """Board cell as encoded on the wire."""

    EMPTY = 0
    PLAYER_ONE = 1
    PLAYER_TWO = 2


# Row-major, row 0 is the top row
Board = tuple[tuple[Cell, ...], ...]


def empty_board(rows: int = ROWS, columns: int = COLUMNS) -> Board:
    """Build an all-empty board."""
    return tuple(tuple(Cell.EMPTY for _ in range(columns)) for _ in range(rows))


class SessionStatus(StrEnum):
    """Lifecycle of one game session as seen by the client."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED_WAITING = "connected-waiting"
    PLAYING = "playing"
    ENDED = "ended"


class _Message(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class PingMessage(_Message):
    """Application-level liveness request; answered with a pong."""

    type: Literal["ping"] = "ping"


class PongMessage(_Message):
    """Acknowledgement of a ping. No payload."""

    type: Literal["pong"] = "pong"


class StartMessage(_Message):
    """Both players are paired and the game begins.

    ``start`` and ``start_game`` are treated as the same event.
    """

    type: Literal["start", "start_game"] = "start"
    players: tuple[str, ...] = ()


class StateMessage(_Message):
    """Authoritative board snapshot and whose turn it is."""

    type: Literal["state"] = "state"
    board: Board
    turn: int


class EndMessage(_Message):
    """The game is over. ``winner`` is a username or ``DRAW``."""

    type: Literal["end"] = "end"
    winner: str

    @property
    def is_draw(self) -> bool:
        return self.winner == DRAW


class MoveMessage(_Message):
    """Drop a disc into ``column``. Sent by the client only."""

    type: Literal["move"] = "move"
    column: int


class UnknownMessage(_Message):
    """A message whose ``type`` this client does not understand, kept verbatim."""

    type: str
    payload: dict[str, Any] = Field(default_factory=dict)


KnownMessage = Annotated[
    PingMessage | PongMessage | StartMessage | StateMessage | EndMessage | MoveMessage,
    Field(discriminator="type"),
]

Message = (
    PingMessage
    | PongMessage
    | StartMessage
    | StateMessage
    | EndMessage
    | MoveMessage
    | UnknownMessage
)

KNOWN_TYPES = frozenset({"ping", "pong", "start", "start_game", "state", "end", "move"})

_known_adapter: TypeAdapter[Any] = TypeAdapter(KnownMessage)


def decode_message(data: Any) -> Message:
    """Decode one parsed JSON value into a message variant.

    Raises:
        MessageDecodeError: If the value is not an object, has no string ``type``,
            or a known variant is missing required fields.
    """
    if not isinstance(data, dict):
        raise MessageDecodeError(f"Expected a JSON object, got {type(data).__name__}")

    kind = data.get("type")
    if not isinstance(kind, str):
        raise MessageDecodeError("Message has no 'type' field", raw=json.dumps(data))

    if kind not in KNOWN_TYPES:
        return UnknownMessage(type=kind, payload=data)

    try:
        return _known_adapter.validate_python(data)
    except ValidationError as e:
        raise MessageDecodeError(f"Invalid '{kind}' message: {e}", raw=json.dumps(data)) from e


def decode_json(raw: str) -> Message:
    """Parse and decode one JSON document."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MessageDecodeError(f"Invalid JSON: {e.msg}", raw=raw) from e
    return decode_message(data)


def encode_message(message: Message) -> str:
    """Serialize an outbound message to its wire form."""
    if isinstance(message, UnknownMessage):
        return json.dumps(message.payload)
    return message.model_dump_json()
