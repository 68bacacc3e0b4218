"""ZeroMQ transport: ROUTER on the serving side, DEALER on the calling side.

Each DEALER peer is one connection, identified by the routing identity the
ROUTER socket assigns to it. ZeroMQ has no notion of a connect event that
reaches the application, so a DEALER announces itself with an empty
greeting frame as soon as it connects; the ROUTER treats the first frame
from an unknown identity as the connect event. With ROUTER_MANDATORY set a
send to a peer that has gone away fails outright, which is reported as an
error event for that connection.

Every peer gets its own worker thread, which handles that peer's frames
one at a time. A slow procedure therefore only holds up the connection
that invoked it, as with the WebSocket transport.
"""

from __future__ import annotations

import asyncio
import queue
import threading
from typing import Dict, Optional
from urllib.parse import urlsplit

import zmq
import zmq.asyncio
from loguru import logger

from .base import (
    Channel,
    Connection,
    Events,
    Listener,
    TransportConnectionError,
    TransportPortError,
)


minimum_port = 10079
maximum_port = 13679
zmq_context = zmq.Context()

GREETING = b''


class ZmqConnection(Connection):
    """Serving-side handle for one DEALER peer, and the worker thread that
    processes the frames it sends.
    """

    def __init__(self, listener: 'ZmqListener', identity: bytes):
        self.listener = listener
        self.identity = identity

        self.inbox = queue.SimpleQueue()
        self.thread: Optional[threading.Thread] = None

    @property
    def address(self) -> str:
        return self.identity.hex()

    def send(self, frame: str) -> None:
        self.listener._enqueue(self.identity, frame.encode())

    def close(self) -> None:
        self.listener._enqueue(self.identity, None)

    def start(self) -> None:
        name = f"blip.ZmqConnection:{self.address}"
        self.thread = threading.Thread(target=self.run, name=name, daemon=True)
        self.thread.start()

    def stop(self) -> None:
        """Ask the worker thread to exit once the frames already queued
        have been handled.
        """

        self.inbox.put(None)

    def deliver(self, frame: str) -> None:
        self.inbox.put(frame)

    def run(self) -> None:
        while True:
            frame = self.inbox.get()

            if frame is None:
                break

            try:
                self.listener.events.on_message(self, frame)
            except Exception:
                logger.exception("Unhandled error processing frame from {}", self.address)


class ZmqListener(Listener):
    """Receive frames via a ZeroMQ ROUTER socket bound at a ``tcp://``
    *location*. A port of 0 selects the first free port in the default
    range. Inbound frames are handed to the worker thread of the peer
    that sent them.
    """

    poll_interval = 1000

    def __init__(self, location: str, events: Events):
        parts = urlsplit(location)

        if parts.scheme != 'tcp':
            raise ValueError(f"not a ZeroMQ tcp location: {location!r}")

        self.host = parts.hostname or '*'
        self.port = parts.port or 0
        self.events = events

        self.socket = None
        self.shutdown = False
        self.thread: Optional[threading.Thread] = None

        # Only the poll thread touches the ROUTER socket; everything else
        # reaches it through this queue, with a signal over the inproc
        # socket pair to wake the poller.

        self._outbox = queue.SimpleQueue()
        self._signal_rx = None
        self._signal_tx = None
        self._signal_lock = threading.Lock()

        self._peers: Dict[bytes, ZmqConnection] = {}

    @property
    def location(self) -> str:
        return f"tcp://{self.host}:{self.port}"

    def start(self) -> None:
        self.socket = zmq_context.socket(zmq.ROUTER)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.setsockopt(zmq.ROUTER_MANDATORY, 1)

        if self.port == 0:
            self.port = self._bind_any()
        else:
            try:
                self.socket.bind(self.location)
            except zmq.ZMQError as exc:
                self.socket.close()
                raise TransportPortError(f"port already in use: {self.port}") from exc

        internal = f"inproc://blip.ZmqListener:signal:{id(self)}"
        self._signal_rx = zmq_context.socket(zmq.PAIR)
        self._signal_rx.bind(internal)
        self._signal_tx = zmq_context.socket(zmq.PAIR)
        self._signal_tx.connect(internal)

        self.shutdown = False
        self.thread = threading.Thread(target=self.run, daemon=True)
        self.thread.start()

    def _bind_any(self) -> int:
        for port in range(minimum_port, maximum_port + 1):
            try:
                self.socket.bind(f"tcp://{self.host}:{port}")
            except zmq.ZMQError:
                # Assume this port is in use.
                continue
            return port

        self.socket.close()
        raise TransportPortError(f"no ports available in range {minimum_port}:{maximum_port}")

    def close(self) -> None:
        self.shutdown = True

        if self.thread is not None:
            self.thread.join(timeout=5)
            self.thread = None

        for socket in (self.socket, self._signal_rx, self._signal_tx):
            if socket is not None:
                socket.close()

        self.socket = None
        self._signal_rx = None
        self._signal_tx = None

    def _enqueue(self, identity: bytes, data: Optional[bytes]) -> None:
        if self.shutdown or self._signal_tx is None:
            raise TransportConnectionError('listener is closed')

        self._outbox.put((identity, data))

        with self._signal_lock:
            self._signal_tx.send(b'')

    def _retire(self, identity: bytes, error: Optional[Exception] = None) -> None:
        """Forget the peer with *identity*, stop its worker, and report it
        as closed, or as failed if there is an *error*.
        """

        connection = self._peers.pop(identity, None)
        if connection is None:
            return

        connection.stop()

        if error is None:
            self.events.on_close(connection)
        else:
            self.events.on_error(connection, error)

    def _outgoing(self) -> None:
        """Clear one signal and handle one queued item: a frame to send,
        or a None payload asking for the peer to be dropped.
        """

        self._signal_rx.recv(flags=zmq.NOBLOCK)
        identity, data = self._outbox.get(block=False)

        if data is None:
            self._retire(identity)
            return

        try:
            self.socket.send_multipart((identity, data))
        except zmq.ZMQError as exc:
            logger.warning("Error sending data to {}: {}", identity.hex(), exc)
            self._retire(identity, exc)

    def _incoming(self, parts) -> None:
        if len(parts) != 2:
            logger.warning("Dropped malformed ZeroMQ message with {} parts", len(parts))
            return

        identity, data = parts

        connection = self._peers.get(identity)
        if connection is None:
            connection = ZmqConnection(self, identity)
            self._peers[identity] = connection
            connection.start()
            self.events.on_open(connection)

        if data == GREETING:
            return

        connection.deliver(data.decode('utf-8', errors='replace'))

    def run(self) -> None:
        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self._signal_rx, zmq.POLLIN)

        while not self.shutdown:
            for active, _flag in poller.poll(self.poll_interval):
                if active == self._signal_rx:
                    self._outgoing()
                elif active == self.socket:
                    parts = self.socket.recv_multipart()
                    self._incoming(parts)

        # Any peers still known at shutdown are retired as closed.

        for identity in list(self._peers.keys()):
            self._retire(identity)



_async_context = None


def async_context() -> zmq.asyncio.Context:
    global _async_context

    if _async_context is None:
        _async_context = zmq.asyncio.Context()

    return _async_context


class ZmqChannel(Channel):
    """Calling-side DEALER connection to a ``tcp://`` *location*."""

    def __init__(self, location: str):
        self.location = location
        self.socket = None

    async def open(self) -> None:
        socket = async_context().socket(zmq.DEALER)
        socket.setsockopt(zmq.LINGER, 0)

        try:
            socket.connect(self.location)
        except zmq.ZMQError as exc:
            socket.close()
            raise TransportConnectionError(f"cannot connect to {self.location}: {exc}") from exc

        self.socket = socket
        await socket.send(GREETING)

    async def close(self) -> None:
        socket = self.socket
        self.socket = None

        if socket is not None:
            socket.close()

    async def send(self, frame: str) -> None:
        if self.socket is None:
            raise TransportConnectionError(f"not connected to {self.location}")

        try:
            await self.socket.send(frame.encode())
        except zmq.ZMQError as exc:
            raise TransportConnectionError(f"cannot send to {self.location}: {exc}") from exc

    async def recv(self) -> Optional[str]:
        socket = self.socket
        if socket is None:
            return None

        try:
            data = await socket.recv()
        except (asyncio.CancelledError, zmq.ZMQError):
            # Closing the socket cancels a pending receive; that is the
            # normal end of the conversation, anything else is not.
            if self.socket is None:
                return None
            raise

        return data.decode('utf-8', errors='replace')
