"""Transport interface.

This is the (small) contract that transport implementations should follow.
It lives outside :mod:`blip.protocol` so the protocol remains transport-agnostic.
A transport moves text frames; it knows nothing about what is inside them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""


class TransportPortError(TransportError):
    """No suitable port could be bound or connected."""


class Connection(ABC):
    """Serving-side handle for one connected peer.

    Handles are owned by the transport. They are hashable by identity, so
    they can be kept in a set for as long as the peer is connected.
    """

    @abstractmethod
    def send(self, frame: str) -> None:
        """Send one text frame to the peer. Raises on failure."""

    @abstractmethod
    def close(self) -> None:
        """Disconnect the peer; the listener reports the close event."""

    @property
    def address(self) -> str:
        """Human-readable peer address, for diagnostics."""
        return '?'

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.address}>"


class Events(ABC):
    """What a listener reports about its connections.

    Every connection is announced with :func:`on_open` before any of its
    messages, and retired with exactly one of :func:`on_close` or
    :func:`on_error`.
    """

    @abstractmethod
    def on_open(self, connection: Connection) -> None:
        """A peer connected."""

    @abstractmethod
    def on_message(self, connection: Connection, frame: str) -> None:
        """A peer sent a text frame."""

    @abstractmethod
    def on_close(self, connection: Connection) -> None:
        """A peer disconnected cleanly."""

    @abstractmethod
    def on_error(self, connection: Connection, error: BaseException) -> None:
        """A peer's connection failed."""


class Listener(ABC):
    """Serving-side transport: accepts connections, reports :class:`Events`."""

    @abstractmethod
    def start(self) -> None:
        """Bind and begin accepting connections in the background."""

    @abstractmethod
    def close(self) -> None:
        """Stop accepting connections and drop the existing ones."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Where this listener can be reached, port resolved."""


class Channel(ABC):
    """Calling-side transport: one duplex connection to a server."""

    @abstractmethod
    async def open(self) -> None:
        """Establish the connection."""

    @abstractmethod
    async def close(self) -> None:
        """Tear down the connection."""

    @abstractmethod
    async def send(self, frame: str) -> None:
        """Send one text frame."""

    @abstractmethod
    async def recv(self) -> Optional[str]:
        """Receive the next text frame; None once the connection is closed."""
