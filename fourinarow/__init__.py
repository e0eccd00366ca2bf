"""fourinarow.

Real-time terminal client for 4-in-a-Row.
"""

from __future__ import annotations

from .session import GameSession
from .types import Cell, SessionStatus
from .version import __version__

__all__ = [
    "Cell",
    "GameSession",
    "SessionStatus",
    "__version__",
]
