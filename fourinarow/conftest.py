"""Shared fakes for session tests: a manual clock and scripted transports."""

from __future__ import annotations

import heapq
import itertools
from typing import TYPE_CHECKING, Any

import pytest

from fourinarow.session.connection import ConnectionManager
from fourinarow.session.state import SessionStateMachine
from fourinarow.session.store import GameStateStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from fourinarow.session.transport import TransportListener


class ManualTimer:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Fake clock: timers fire only when the test advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, ManualTimer]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        heapq.heappush(self._queue, (timer.when, next(self._seq), timer))
        return timer

    def time(self) -> float:
        return self.now

    @property
    def pending(self) -> list[ManualTimer]:
        return [timer for _, _, timer in self._queue if not timer.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, timer = heapq.heappop(self._queue)
            self.now = when
            if not timer.cancelled:
                timer.callback()
        self.now = target


class FakeTransport:
    """Records traffic; the test drives lifecycle events explicitly."""

    def __init__(self) -> None:
        self.url: str | None = None
        self.listener: TransportListener | None = None
        self.sent: list[str] = []
        self.probes = 0
        self.closed = False
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self, url: str, listener: TransportListener) -> None:
        self.url = url
        self.listener = listener

    def send_text(self, data: str) -> None:
        self.sent.append(data)

    def probe(self) -> None:
        self.probes += 1

    def close(self) -> None:
        self.closed = True
        self._open = False

    # Test helpers
    def accept(self) -> None:
        self._open = True
        assert self.listener is not None
        self.listener.on_open()

    def receive(self, raw: str) -> None:
        assert self.listener is not None
        self.listener.on_message(raw)

    def drop(self, reason: str = "gone") -> None:
        self._open = False
        assert self.listener is not None
        self.listener.on_close(reason)

    def fail(self, error: Exception | None = None) -> None:
        assert self.listener is not None
        self.listener.on_error(error or ConnectionRefusedError("refused"))
        self.drop("refused")


class TransportFactory:
    def __init__(self) -> None:
        self.created: list[FakeTransport] = []

    def __call__(self) -> FakeTransport:
        transport = FakeTransport()
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def transports() -> TransportFactory:
    return TransportFactory()


@pytest.fixture
def machine() -> SessionStateMachine:
    return SessionStateMachine()


@pytest.fixture
def store() -> GameStateStore:
    return GameStateStore()


@pytest.fixture
def manager(
    machine: SessionStateMachine,
    store: GameStateStore,
    transports: TransportFactory,
    scheduler: ManualScheduler,
) -> ConnectionManager:
    return ConnectionManager(
        machine,
        store,
        transport_factory=transports,
        scheduler=scheduler,
    )


@pytest.fixture
def connected(manager: ConnectionManager, transports: TransportFactory) -> Any:
    """A manager whose first transport has opened."""
    assert manager.connect("ws://localhost:9090/ws", "alice")
    transports.last.accept()
    return manager
