from __future__ import annotations

from .console import GameConsole, console

__all__ = [
    "GameConsole",
    "console",
]
