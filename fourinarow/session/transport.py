"""Socket-like channels the connection manager drives.

A transport opens one connection, reports its lifecycle to a listener, and is
discarded after it closes. Reconnecting means building a new transport.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from fourinarow.shared.exceptions import TransportError

if TYPE_CHECKING:
    from collections.abc import Coroutine

logger = logging.getLogger(__name__)

DEFAULT_OPEN_TIMEOUT = 10.0
DEFAULT_CLOSE_TIMEOUT = 5.0
DEFAULT_HEARTBEAT_TIMEOUT = 60.0


@runtime_checkable
class TransportListener(Protocol):
    """Receives lifecycle events from a transport, in order."""

    def on_open(self) -> None: ...

    def on_message(self, raw: str) -> None: ...

    def on_error(self, error: Exception) -> None: ...

    def on_close(self, reason: str) -> None: ...


@runtime_checkable
class Transport(Protocol):
    """One bidirectional text channel.

    ``open`` starts connecting and returns immediately; the outcome arrives on the
    listener. Every transport that was opened reports exactly one ``on_close``.
    """

    @property
    def is_open(self) -> bool: ...

    def open(self, url: str, listener: TransportListener) -> None: ...

    def send_text(self, data: str) -> None: ...

    def probe(self) -> None:
        """Send a transport-level liveness probe (not an application message)."""
        ...

    def close(self) -> None: ...


class WebSocketTransport:
    """Transport backed by a ``websockets`` client connection.

    Outbound text goes through a queue drained by a single writer task so frames
    leave in the order they were sent. ``probe`` sends a WebSocket ping and closes
    the connection if the pong does not arrive within ``heartbeat_timeout``.
    """

    def __init__(
        self,
        *,
        heartbeat_timeout: float = DEFAULT_HEARTBEAT_TIMEOUT,
        open_timeout: float = DEFAULT_OPEN_TIMEOUT,
        close_timeout: float = DEFAULT_CLOSE_TIMEOUT,
    ) -> None:
        self._heartbeat_timeout = heartbeat_timeout
        self._open_timeout = open_timeout
        self._close_timeout = close_timeout
        self._ws: Any | None = None
        self._listener: TransportListener | None = None
        self._outbox: asyncio.Queue[str] = asyncio.Queue()
        self._main_task: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._closing = False
        self._close_reported = False

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._closing

    def open(self, url: str, listener: TransportListener) -> None:
        if self._main_task is not None:
            raise RuntimeError("WebSocketTransport can only be opened once")
        self._listener = listener
        self._main_task = asyncio.get_running_loop().create_task(self._run(url, listener))
        # A task cancelled before its first step never enters _run's finally block
        self._main_task.add_done_callback(lambda _: self._report_close("cancelled"))

    def send_text(self, data: str) -> None:
        if not self.is_open:
            logger.debug("Dropping outbound frame, socket not open")
            return
        self._outbox.put_nowait(data)

    def probe(self) -> None:
        if self._ws is None or self._closing:
            return
        self._spawn(self._probe(self._ws))

    def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        if self._ws is not None:
            self._spawn(self._ws.close())
        elif self._main_task is not None:
            # Still connecting
            self._main_task.cancel()

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, url: str, listener: TransportListener) -> None:
        reason = "connection closed"
        try:
            async with websockets.connect(
                url,
                ping_interval=None,  # heartbeats are driven by the connection manager
                open_timeout=self._open_timeout,
                close_timeout=self._close_timeout,
            ) as ws:
                self._ws = ws
                if self._closing:
                    return
                listener.on_open()
                writer = asyncio.get_running_loop().create_task(self._write_pump(ws))
                try:
                    async for raw in ws:
                        if isinstance(raw, bytes):
                            raw = raw.decode("utf-8", errors="replace")
                        listener.on_message(raw)
                finally:
                    writer.cancel()
                reason = _close_reason(ws)
        except ConnectionClosed as e:
            reason = str(e)
        except (OSError, TimeoutError, WebSocketException) as e:
            listener.on_error(TransportError(f"WebSocket connection to {url} failed: {e}"))
            reason = str(e) or type(e).__name__
        except asyncio.CancelledError:
            reason = "cancelled"
            raise
        finally:
            self._report_close(reason)

    def _report_close(self, reason: str) -> None:
        self._ws = None
        self._closing = True
        if self._close_reported or self._listener is None:
            return
        self._close_reported = True
        self._listener.on_close(reason)

    async def _write_pump(self, ws: Any) -> None:
        while True:
            data = await self._outbox.get()
            try:
                await ws.send(data)
            except ConnectionClosed:
                logger.debug(
                    "Socket closed while writing, dropping %d queued frames", self._outbox.qsize()
                )
                return

    async def _probe(self, ws: Any) -> None:
        try:
            waiter = await ws.ping()
            await asyncio.wait_for(waiter, self._heartbeat_timeout)
            logger.debug("Heartbeat probe answered")
        except TimeoutError:
            logger.warning(
                "Heartbeat probe unanswered after %.1fs, closing connection",
                self._heartbeat_timeout,
            )
            await ws.close(code=1011, reason="heartbeat timeout")
        except ConnectionClosed:
            logger.debug("Socket closed before heartbeat probe was answered")


def _close_reason(ws: Any) -> str:
    code = getattr(ws, "close_code", None)
    reason = getattr(ws, "close_reason", None)
    if code is None:
        return "connection closed"
    return f"{code} {reason}".strip() if reason else str(code)
