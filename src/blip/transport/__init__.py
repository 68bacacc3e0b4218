"""Transport layer implementations.

The backend is chosen by the scheme of the location: ``ws://`` selects the
WebSocket transport, ``tcp://`` the ZeroMQ transport.
"""

from urllib.parse import urlsplit

from .base import (
    Channel,
    Connection,
    Events,
    Listener,
    TransportError,
    TransportConnectionError,
    TransportPortError,
)


def _backend(location):
    scheme = urlsplit(str(location)).scheme

    if scheme == 'ws':
        from . import websocket
        return websocket.WebSocketListener, websocket.WebSocketChannel

    if scheme == 'tcp':
        from . import zmq
        return zmq.ZmqListener, zmq.ZmqChannel

    raise ValueError(f"unknown transport for location: {location!r}")


def listener(location, events):
    """Return an unstarted :class:`Listener` for *location*."""

    listener_class, _channel_class = _backend(location)
    return listener_class(location, events)


def channel(location):
    """Return an unopened :class:`Channel` to *location*."""

    _listener_class, channel_class = _backend(location)
    return channel_class(location)
