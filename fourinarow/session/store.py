"""Latest authoritative game state."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fourinarow.types import Board, empty_board

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameSnapshot:
    board: Board
    turn: int
    winner: str | None = None


class GameStateStore:
    """Holds the board and turn exactly as the server last sent them.

    Snapshots replace the previous state wholesale; nothing is merged or validated.
    """

    def __init__(self) -> None:
        self._snapshot = GameSnapshot(board=empty_board(), turn=0)
        self._state_listeners: list[Callable[[GameSnapshot], None]] = []
        self._end_listeners: list[Callable[[str], None]] = []

    @property
    def snapshot(self) -> GameSnapshot:
        return self._snapshot

    @property
    def board(self) -> Board:
        return self._snapshot.board

    @property
    def turn(self) -> int:
        return self._snapshot.turn

    @property
    def winner(self) -> str | None:
        return self._snapshot.winner

    def add_state_listener(self, listener: Callable[[GameSnapshot], None]) -> None:
        self._state_listeners.append(listener)

    def add_end_listener(self, listener: Callable[[str], None]) -> None:
        self._end_listeners.append(listener)

    def apply_state(self, board: Board, turn: int) -> None:
        self._snapshot = GameSnapshot(board=board, turn=turn, winner=self._snapshot.winner)
        logger.debug("Board replaced, turn=%d", turn)
        self._notify(self._state_listeners, self._snapshot)

    def apply_end(self, winner: str) -> None:
        """Record the winner; board and turn stay as they were for display."""
        self._snapshot = GameSnapshot(
            board=self._snapshot.board, turn=self._snapshot.turn, winner=winner
        )
        logger.info("Game over, winner: %s", winner)
        self._notify(self._end_listeners, winner)

    def reset(self) -> None:
        self._snapshot = GameSnapshot(board=empty_board(), turn=0)

    @staticmethod
    def _notify(listeners: list, payload: object) -> None:
        for listener in list(listeners):
            try:
                listener(payload)
            except Exception:
                logger.exception("Game state listener failed")
