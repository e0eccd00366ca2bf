"""Interactive game loop for ``fourinarow play``."""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from typing import TYPE_CHECKING

from fourinarow.cli.render import render_board
from fourinarow.shared.exceptions import PreconditionError
from fourinarow.types import DRAW, SessionStatus
from fourinarow.utils.console import console as default_console

if TYPE_CHECKING:
    from fourinarow.session.client import GameSession
    from fourinarow.session.store import GameSnapshot
    from fourinarow.shared.exceptions import ReconnectExhaustedError
    from fourinarow.utils.console import GameConsole

logger = logging.getLogger(__name__)

QUIT_COMMANDS = frozenset({"q", "quit", "exit"})


def start_stdin_reader(queue: asyncio.Queue[str | None]) -> threading.Thread:
    """Feed stdin lines into ``queue`` from a daemon thread; ``None`` marks EOF.

    A daemon thread is used so a pending ``readline`` never blocks shutdown.
    """
    loop = asyncio.get_running_loop()

    def run() -> None:
        for line in sys.stdin:
            loop.call_soon_threadsafe(queue.put_nowait, line)
        loop.call_soon_threadsafe(queue.put_nowait, None)

    thread = threading.Thread(target=run, name="fourinarow-stdin", daemon=True)
    thread.start()
    return thread


def parse_column(line: str) -> int | None:
    """Convert a 1-based column typed by the user to the 0-based wire value."""
    try:
        return int(line.strip()) - 1
    except ValueError:
        return None


async def play_session(
    session: GameSession,
    username: str,
    lines: asyncio.Queue[str | None],
    *,
    console: GameConsole = default_console,
) -> int:
    """Run one interactive session until the user quits or reconnects are exhausted.

    Returns the process exit code: 0 on quit, 1 when the connection was given up.
    """
    exit_code = 0
    done = asyncio.Event()

    def on_status(old: SessionStatus, new: SessionStatus) -> None:
        if new is SessionStatus.CONNECTING and old is not SessionStatus.DISCONNECTED:
            console.warning("Connection lost, reconnecting...")
        elif new is SessionStatus.CONNECTED_WAITING:
            console.info("⏳ Waiting for another player to join...")
        elif new is SessionStatus.PLAYING:
            console.success("🎮 Game started!")
            console.info("Type a column number (1-7) to drop a disc, q to quit.")

    def on_state(snapshot: GameSnapshot) -> None:
        console.render(render_board(snapshot))

    def on_end(winner: str) -> None:
        if winner == DRAW:
            console.success("🏁 Game over! It's a draw.")
        elif winner == session.username:
            console.success("🏁 Game over! You won!")
        else:
            console.success(f"🏁 Game over! Winner: {winner}")

    def on_give_up(error: ReconnectExhaustedError) -> None:
        nonlocal exit_code
        console.render_exception(error)
        exit_code = 1
        done.set()

    session.machine.add_listener(on_status)
    session.store.add_state_listener(on_state)
    session.store.add_end_listener(on_end)
    session.connection.add_give_up_listener(on_give_up)

    if not session.connect(username):
        console.render_exception(PreconditionError("Enter a username first!"))
        return 2

    console.dim_info("Connecting as", session.username or username)

    async def read_commands() -> None:
        while True:
            line = await lines.get()
            if line is None or line.strip().lower() in QUIT_COMMANDS:
                done.set()
                return
            if not line.strip():
                continue
            column = parse_column(line)
            if column is None:
                console.warning(f"Not a column number: {line.strip()!r}")
            elif not session.submit_move(column):
                console.warning("You can't move right now.")

    reader = asyncio.create_task(read_commands())
    try:
        await done.wait()
    finally:
        reader.cancel()
        session.disconnect()
    return exit_code
