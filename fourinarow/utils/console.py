"""Console design system for the terminal client.

Color Palette:
- Gold: headers and the turn indicator
- Muted Red / Yellow: player discs, errors and warnings
- Muted Green: success messages
- Bright Black: secondary/dimmed information
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from rich.console import RenderableType

GOLD = "rgb(192,150,12)"
RED = "rgb(220,50,47)"
GREEN = "rgb(133,153,0)"
DIM = "bright_black"
YELLOW = "yellow"
TEXT = "bright_white"
SECONDARY = "rgb(108,113,196)"


class GameConsole:
    """Output helpers shared by all CLI commands."""

    def __init__(self) -> None:
        self._stdout_console = Console(stderr=False)
        self._stderr_console = Console(stderr=True)

    def _pick(self, stderr: bool) -> Console:
        return self._stderr_console if stderr else self._stdout_console

    def header(self, title: str, icon: str = "🎮", stderr: bool = False) -> None:
        """Print a header panel with gold border."""
        self._pick(stderr).print(Panel.fit(f"{icon} [bold]{title}[/bold]", border_style=GOLD))

    def success(self, message: str, stderr: bool = False) -> None:
        self._pick(stderr).print(f"[{GREEN}]✅ {message}[/{GREEN}]")

    def error(self, message: str, stderr: bool = True) -> None:
        self._pick(stderr).print(f"[{RED} not bold]❌ {message}[/{RED} not bold]")

    def warning(self, message: str, stderr: bool = True) -> None:
        self._pick(stderr).print(f"⚠️  [{YELLOW} not bold]{message}[/{YELLOW} not bold]")

    def info(self, message: str, stderr: bool = False) -> None:
        self._pick(stderr).print(f"[{TEXT} not bold]{message}[/{TEXT} not bold]")

    def dim_info(self, label: str, value: str, stderr: bool = False) -> None:
        """Print dimmed info with a label.

        Args:
            label: The label text
            value: The value text
            stderr: If True, output to stderr, otherwise stdout (default)
        """
        self._pick(stderr).print(
            f"[{DIM} not bold][default]{label}[/default][/{DIM} not bold] [default]{value}[/default]"  # noqa: E501
        )

    def render(self, renderable: RenderableType, stderr: bool = False) -> None:
        self._pick(stderr).print(renderable)

    def key_value_table(
        self, data: dict[str, str | int | float], show_header: bool = False, stderr: bool = True
    ) -> None:
        table = Table(show_header=show_header, box=None, padding=(0, 1))
        table.add_column("Key", style=DIM, no_wrap=True)
        table.add_column("Value")

        for key, value in data.items():
            table.add_row(key, str(value))

        self._pick(stderr).print(table)

    def command_example(
        self, command: str, description: str | None = None, stderr: bool = True
    ) -> None:
        """Print a command example with highlighting.

        Args:
            command: The command to show
            description: Optional description after the command
            stderr: If True, output to stderr (default), otherwise stdout
        """
        console = self._pick(stderr)
        if description:
            console.print(
                f"  [{SECONDARY}]{command}[/{SECONDARY}]  "
                f"[bright_black]# {description}[/bright_black]"
            )
        else:
            console.print(f"  [{SECONDARY}]{command}[/{SECONDARY}]")

    def render_exception(self, error: BaseException, *, stderr: bool = True) -> None:
        """Render exceptions consistently.

        - Shows exception type and message
        - Shows status and response text for request errors
        - Displays structured hints if present on the exception
        """
        from fourinarow.shared.exceptions import RequestError  # lazy import
        from fourinarow.shared.hints import render_hints

        ex_type = type(error).__name__
        message = getattr(error, "message", "") or str(error) or ex_type
        self.error(f"{ex_type}: {message}", stderr=stderr)

        if isinstance(error, RequestError):
            details: dict[str, str | int | float] = {}
            if error.status_code is not None:
                details["Status"] = error.status_code
            if error.response_text:
                trimmed = error.response_text[:500]
                details["Response"] = trimmed + ("..." if len(error.response_text) > 500 else "")
            if details:
                self.key_value_table(details, stderr=stderr)

        hints = getattr(error, "hints", None)
        if hints:
            render_hints(hints, design=self, stderr=stderr)


console = GameConsole()
