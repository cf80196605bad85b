"""WebSocket transport built on the ``websockets`` asyncio client.

One reader task per transport owns the socket: it connects, reports
``handle_open``, delivers frames in arrival order and always finishes with
``handle_close``, whether the hub hung up, the caller asked to close, the
connect failed or the idle timeout fired.  Sends and close requests are
marshalled onto the reader's event loop, so they may be issued from any
thread.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from loguru import logger
from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException

from fhircast.settings import FhircastSettings, get_settings

if TYPE_CHECKING:
    from websockets.asyncio.client import ClientConnection

    from fhircast.transport.base import TransportListener


class WebSocketTransport:
    """Single-session WebSocket transport.

    ``start`` must be called from a running event loop; the reader task is
    created on that loop.
    """

    def __init__(self, endpoint: str, settings: FhircastSettings | None = None) -> None:
        self.endpoint = endpoint
        self._settings = settings or get_settings()
        self._listener: TransportListener | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._reader: asyncio.Task[None] | None = None
        self._websocket: ClientConnection | None = None
        self._pending: set[asyncio.Task[None]] = set()
        self._closing = False

    # -- Transport protocol ----------------------------------------------------

    def bind(self, listener: TransportListener) -> None:
        self._listener = listener

    def start(self) -> None:
        if self._listener is None:
            msg = "bind a listener before starting the transport"
            raise RuntimeError(msg)
        if self._reader is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._reader = self._loop.create_task(self._run(), name=f"fhircast-reader {self.endpoint}")

    def send(self, text: str) -> None:
        if self._loop is None:
            msg = "transport has not been started"
            raise RuntimeError(msg)
        self._loop.call_soon_threadsafe(self._schedule_send, text)

    def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._close_now)

    # -- Extras ----------------------------------------------------------------

    async def wait_closed(self) -> None:
        """Wait until the reader task has delivered ``handle_close``."""
        if self._reader is not None:
            await asyncio.wait({self._reader})

    # -- Reader ----------------------------------------------------------------

    async def _run(self) -> None:
        assert self._listener is not None  # noqa: S101
        listener = self._listener
        settings = self._settings
        try:
            async with connect(
                self.endpoint,
                open_timeout=settings.open_timeout,
                close_timeout=settings.close_timeout,
                ping_interval=settings.ping_interval,
                ping_timeout=settings.ping_timeout,
                max_size=settings.max_frame_size,
            ) as websocket:
                self._websocket = websocket
                if self._closing:
                    return
                logger.info("Connected to {}", self.endpoint)
                listener.handle_open()
                await self._read(websocket, listener)
        except (OSError, TimeoutError, WebSocketException) as exc:
            logger.warning("WebSocket session to {} ended abnormally: {!r}", self.endpoint, exc)
        finally:
            self._websocket = None
            logger.info("Disconnected from {}", self.endpoint)
            listener.handle_close()

    async def _read(self, websocket: ClientConnection, listener: TransportListener) -> None:
        idle_timeout = self._settings.idle_timeout
        while True:
            try:
                async with asyncio.timeout(idle_timeout):
                    data = await websocket.recv()
            except TimeoutError:
                logger.warning("No frame from {} for {}s, closing", self.endpoint, idle_timeout)
                return
            except ConnectionClosedOK:
                return
            listener.handle_message(data)

    # -- Loop-side helpers -----------------------------------------------------

    def _track(self, task: asyncio.Task[None]) -> None:
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _schedule_send(self, text: str) -> None:
        websocket = self._websocket
        if websocket is None:
            logger.warning("Dropping frame for {}: socket is not open", self.endpoint)
            return
        self._track(asyncio.ensure_future(self._send(websocket, text)))

    async def _send(self, websocket: ClientConnection, text: str) -> None:
        try:
            await websocket.send(text)
        except ConnectionClosed as exc:
            logger.warning("Failed to send frame to {}: {!r}", self.endpoint, exc)

    def _close_now(self) -> None:
        if self._websocket is not None:
            self._track(asyncio.ensure_future(self._websocket.close()))
        elif self._reader is not None and not self._reader.done():
            # Still connecting.
            self._reader.cancel()
