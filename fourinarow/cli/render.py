"""Rich renderables for the board and the leaderboard."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich import box
from rich.table import Table
from rich.text import Text

from fourinarow.types import COLUMNS, Cell
from fourinarow.utils.console import DIM, GOLD, RED, YELLOW

if TYPE_CHECKING:
    from fourinarow.leaderboard import LeaderboardEntry
    from fourinarow.session.store import GameSnapshot

DISC = "●"
HOLE = "○"

CELL_STYLES = {
    Cell.EMPTY: DIM,
    Cell.PLAYER_ONE: YELLOW,
    Cell.PLAYER_TWO: RED,
}


def cell_text(cell: Cell) -> Text:
    return Text(HOLE if cell is Cell.EMPTY else DISC, style=CELL_STYLES[cell])


def turn_label(turn: int) -> Text:
    """``Turn: Player N`` with the disc color of that player."""
    label = Text(f"🎯 Turn: Player {turn} ", style=f"bold {GOLD}")
    if turn in (Cell.PLAYER_ONE, Cell.PLAYER_TWO):
        label.append_text(cell_text(Cell(turn)))
    return label


def render_board(snapshot: GameSnapshot) -> Table:
    """Grid of discs with 1-based column numbers in the header."""
    width = max((len(row) for row in snapshot.board), default=COLUMNS)
    table = Table(
        title=turn_label(snapshot.turn),
        box=box.ROUNDED,
        show_lines=False,
        padding=(0, 1),
    )
    for column in range(width):
        table.add_column(str(column + 1), justify="center")
    for row in snapshot.board:
        table.add_row(*(cell_text(cell) for cell in row))
    return table


def render_leaderboard(entries: list[LeaderboardEntry]) -> Table:
    table = Table(title="🏆 Leaderboard", box=box.SIMPLE_HEAVY)
    table.add_column("#", style=DIM, justify="right")
    table.add_column("Player")
    table.add_column("Wins", justify="right", style=f"bold {GOLD}")
    for rank, entry in enumerate(entries, start=1):
        table.add_row(str(rank), entry.username, str(entry.wins))
    return table
