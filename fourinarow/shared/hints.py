from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable
logger = logging.getLogger(__name__)


@dataclass
class Hint:
    """Structured hint for user guidance.

    Attributes:
        title: Short title describing the hint.
        message: Main explanatory message.
        tips: Optional list of short actionable tips.
        command_examples: Optional list of command examples to show.
        code: Optional machine-readable code (e.g., "RECONNECT_EXHAUSTED").
        context: Optional context tags (e.g., ["network", "session"]).
    """

    title: str
    message: str
    tips: list[str] | None = None
    command_examples: list[str] | None = None
    code: str | None = None
    context: list[str] | None = None


USERNAME_REQUIRED = Hint(
    title="Username required",
    message="A non-empty username is needed to join a game.",
    tips=[
        "Pass --username NAME",
        "Whitespace-only names are rejected",
    ],
    command_examples=["fourinarow play --username alice"],
    code="USERNAME_REQUIRED",
    context=["session"],
)

RECONNECT_EXHAUSTED = Hint(
    title="Connection lost",
    message="Gave up after the maximum number of reconnect attempts.",
    tips=[
        "Check that the game server is running",
        "Verify FOURINAROW_BACKEND_URL",
        "Raise FOURINAROW_RECONNECT_ATTEMPTS for flaky networks",
    ],
    command_examples=["fourinarow play --backend-url http://localhost:9090"],
    code="RECONNECT_EXHAUSTED",
    context=["network", "session"],
)

BACKEND_UNREACHABLE = Hint(
    title="Server unreachable",
    message="Could not reach the game server.",
    tips=[
        "Check the host and port",
        "Check your network connection",
    ],
    command_examples=None,
    code="BACKEND_UNREACHABLE",
    context=["network"],
)

INVALID_MESSAGE = Hint(
    title="Invalid message",
    message="The server sent a message that could not be decoded.",
    tips=[
        "Make sure client and server speak the same protocol version",
    ],
    command_examples=None,
    code="INVALID_MESSAGE",
    context=["protocol"],
)

INVALID_CONFIG = Hint(
    title="Invalid configuration",
    message="Configuration is missing or malformed.",
    tips=[
        "Check FOURINAROW_* environment variables",
        "Check your .env file",
    ],
    command_examples=None,
    code="INVALID_CONFIG",
    context=["config"],
)


def render_hints(
    hints: Iterable[Hint] | None, *, design: Any | None = None, stderr: bool = True
) -> None:
    """Render a collection of hints using the console helper.

    Every line of a hint goes to the same stream (stderr by default).
    If the console is unavailable this is a no-op to keep library use headless.
    """
    if not hints:
        return

    if design is None:
        try:
            from fourinarow.utils.console import console as design  # lazy import
        except ImportError:
            return

    for hint in hints:
        if hint.title and hint.title != hint.message:
            design.warning(f"{hint.title}: {hint.message}", stderr=stderr)
        else:
            design.warning(hint.message, stderr=stderr)

        if hint.tips:
            for tip in hint.tips:
                design.info(f"  • {tip}", stderr=stderr)

        if hint.command_examples:
            for cmd in hint.command_examples:
                design.command_example(cmd, stderr=stderr)
