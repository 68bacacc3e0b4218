"""WebSocket transport, built on the ``websockets`` package.

The serving side uses the threaded server: every connection is handled by
its own thread, which reads frames and hands them to the :class:`Events`
recipient one at a time. A slow procedure therefore only holds up the
connection that invoked it. The calling side uses the asyncio client.
"""

from __future__ import annotations

import threading
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK
from websockets.sync.server import serve

from .base import (
    Channel,
    Connection,
    Events,
    Listener,
    TransportConnectionError,
    TransportPortError,
)


class WebSocketConnection(Connection):
    """Serving-side handle wrapping a ``websockets`` server connection."""

    def __init__(self, websocket):
        self.websocket = websocket

        try:
            host, port = websocket.remote_address[:2]
        except (TypeError, ValueError):
            self._address = '?'
        else:
            self._address = f"{host}:{port}"

    @property
    def address(self) -> str:
        return self._address

    def send(self, frame: str) -> None:
        try:
            self.websocket.send(frame)
        except ConnectionClosed as exc:
            raise TransportConnectionError(f"connection to {self.address} is closed") from exc

    def close(self) -> None:
        self.websocket.close()


class WebSocketListener(Listener):
    """Accept WebSocket connections at a ``ws://host:port`` *location*.

    A port of 0 picks any free port; :attr:`location` reports the one
    actually bound once :func:`start` has been called.
    """

    def __init__(self, location: str, events: Events):
        parts = urlsplit(location)

        if parts.scheme != 'ws':
            raise ValueError(f"not a WebSocket location: {location!r}")

        self._parts = parts
        self.host = parts.hostname or '0.0.0.0'
        self.port = parts.port if parts.port is not None else 80
        self.events = events

        self.server = None
        self.thread: Optional[threading.Thread] = None

    @property
    def location(self) -> str:
        netloc = f"{self.host}:{self.port}"
        return urlunsplit(('ws', netloc, self._parts.path, '', ''))

    def start(self) -> None:
        try:
            self.server = serve(self._handler, self.host, self.port)
        except OSError as exc:
            raise TransportPortError(f"cannot listen on {self.host}:{self.port}: {exc}") from exc

        self.port = self.server.socket.getsockname()[1]
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()

    def close(self) -> None:
        server = self.server
        self.server = None

        if server is not None:
            server.shutdown()

        if self.thread is not None:
            self.thread.join(timeout=5)
            self.thread = None

    def _handler(self, websocket) -> None:
        """Main method for a connection thread: announce the connection,
        relay its frames, then retire it as closed or failed.
        """

        connection = WebSocketConnection(websocket)
        self.events.on_open(connection)

        try:
            for frame in websocket:
                if isinstance(frame, bytes):
                    frame = frame.decode('utf-8', errors='replace')
                self.events.on_message(connection, frame)
        except ConnectionClosedOK:
            self.events.on_close(connection)
        except Exception as exc:
            self.events.on_error(connection, exc)
        else:
            self.events.on_close(connection)


class WebSocketChannel(Channel):
    """Calling-side WebSocket connection to *location*."""

    def __init__(self, location: str):
        self.location = location
        self.websocket = None

    async def open(self) -> None:
        try:
            self.websocket = await websockets.connect(self.location)
        except (OSError, websockets.InvalidHandshake) as exc:
            raise TransportConnectionError(f"cannot connect to {self.location}: {exc}") from exc

    async def close(self) -> None:
        websocket = self.websocket
        self.websocket = None

        if websocket is not None:
            await websocket.close()

    async def send(self, frame: str) -> None:
        if self.websocket is None:
            raise TransportConnectionError(f"not connected to {self.location}")

        try:
            await self.websocket.send(frame)
        except ConnectionClosed as exc:
            raise TransportConnectionError(f"connection to {self.location} is closed") from exc

    async def recv(self) -> Optional[str]:
        if self.websocket is None:
            return None

        try:
            frame = await self.websocket.recv()
        except ConnectionClosed:
            return None

        if isinstance(frame, bytes):
            frame = frame.decode('utf-8', errors='replace')

        return frame
