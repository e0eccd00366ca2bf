"""Timer scheduling for reconnects and heartbeats."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable


@runtime_checkable
class TimerHandle(Protocol):
    def cancel(self) -> None: ...


@runtime_checkable
class Scheduler(Protocol):
    """Minimal ``call_later`` interface so timers can run on a fake clock in tests."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""
        ...

    def time(self) -> float:
        """Current time on the scheduler's clock, in seconds."""
        ...


class LoopScheduler:
    """Schedules callbacks on an asyncio event loop.

    The loop is resolved lazily so the scheduler can be built before the loop runs.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self.loop.call_later(delay, callback)

    def time(self) -> float:
        return self.loop.time()
