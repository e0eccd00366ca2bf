from __future__ import annotations

import io

from rich.console import Console

from fourinarow.cli.render import DISC, HOLE, cell_text, render_board, render_leaderboard
from fourinarow.leaderboard import LeaderboardEntry
from fourinarow.session.store import GameSnapshot
from fourinarow.types import Cell, empty_board


def _plain(renderable) -> str:
    out = io.StringIO()
    Console(file=out, width=80, color_system=None).print(renderable)
    return out.getvalue()


def test_cell_text():
    assert cell_text(Cell.EMPTY).plain == HOLE
    assert cell_text(Cell.PLAYER_ONE).plain == DISC
    assert cell_text(Cell.PLAYER_TWO).plain == DISC
    assert cell_text(Cell.PLAYER_ONE).style != cell_text(Cell.PLAYER_TWO).style


def test_board_has_one_based_headers_and_discs():
    rows = [list(row) for row in empty_board()]
    rows[5][0] = Cell.PLAYER_ONE
    rows[5][1] = Cell.PLAYER_TWO
    board = tuple(tuple(row) for row in rows)

    table = render_board(GameSnapshot(board=board, turn=2))
    assert [column.header for column in table.columns] == ["1", "2", "3", "4", "5", "6", "7"]
    assert table.row_count == 6

    text = _plain(table)
    assert "Turn: Player 2" in text
    assert text.count(DISC) == 3  # two on the board, one in the turn label
    assert text.count(HOLE) == 40


def test_board_before_first_state():
    text = _plain(render_board(GameSnapshot(board=empty_board(), turn=0)))
    assert "Turn: Player 0" in text
    assert DISC not in text
    assert text.count(HOLE) == 42


def test_leaderboard_ranks():
    table = render_leaderboard(
        [LeaderboardEntry(username="bob", wins=5), LeaderboardEntry(username="alice", wins=2)]
    )
    text = _plain(table)
    assert table.row_count == 2
    assert text.index("bob") < text.index("alice")
    assert "Leaderboard" in text
