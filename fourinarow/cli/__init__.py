"""fourinarow CLI - play 4-in-a-Row against another player from the terminal."""

from __future__ import annotations

import asyncio
import logging
import sys

import typer

from fourinarow.leaderboard import fetch_leaderboard
from fourinarow.session.client import GameSession
from fourinarow.settings import get_settings
from fourinarow.shared.exceptions import FourInARowError
from fourinarow.utils.console import console

from .play import play_session, start_stdin_reader
from .render import render_leaderboard

app = typer.Typer(
    name="fourinarow",
    help="🎮 Terminal client for 4-in-a-Row",
    add_completion=False,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)


def configure_logging(verbose: bool) -> None:
    """Send library logs to the configured stream; quiet unless --verbose."""
    stream = sys.stdout if get_settings().log_stream == "stdout" else sys.stderr
    logging.basicConfig(
        stream=stream,
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s] %(asctime)s - %(name)s - %(message)s",
        force=True,
    )
    # websockets logs every frame at debug level
    logging.getLogger("websockets").setLevel(logging.INFO if verbose else logging.WARNING)


@app.command()
def play(
    username: str | None = typer.Option(None, "--username", "-u", help="Name to play as"),
    backend_url: str | None = typer.Option(
        None, "--backend-url", help="Game server base URL (default: FOURINAROW_BACKEND_URL)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    """Join the matchmaking queue and play a game."""
    configure_logging(verbose)
    settings = get_settings()
    if backend_url:
        settings = settings.model_copy(update={"backend_url": backend_url})

    while not (username and username.strip()):
        username = typer.prompt("Enter your username")

    console.header("4-in-a-Row")

    async def run() -> int:
        lines: asyncio.Queue[str | None] = asyncio.Queue()
        start_stdin_reader(lines)
        session = GameSession(settings)
        return await play_session(session, username, lines)

    try:
        exit_code = asyncio.run(run())
    except KeyboardInterrupt:
        exit_code = 130
    raise typer.Exit(exit_code)


@app.command()
def leaderboard(
    backend_url: str | None = typer.Option(
        None, "--backend-url", help="Game server base URL (default: FOURINAROW_BACKEND_URL)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    """Show the top players."""
    configure_logging(verbose)
    settings = get_settings()
    url = backend_url or settings.backend_url

    try:
        entries = asyncio.run(fetch_leaderboard(url, timeout=settings.request_timeout))
    except FourInARowError as e:
        console.render_exception(e)
        raise typer.Exit(1) from e

    if not entries:
        console.info("No data yet")
        return
    console.render(render_leaderboard(entries))


def main() -> None:
    app()


__all__ = ["app", "main"]
