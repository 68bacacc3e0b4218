""" The broadcast bus tracks every live connection on the serving side and
    fans publish frames out to all of them.
"""

import threading

from loguru import logger

from .protocol import Publish


class Bus:
    """ Set of live connections, and the :func:`publish` method that sends
        to them. Connections are added and removed by the transport event
        handlers; publishing works from a snapshot of the set, so it is
        safe to connect and disconnect while a broadcast is in progress.
    """

    def __init__(self):
        self._connections = set()
        self._lock = threading.Lock()


    def __contains__(self, connection):
        with self._lock:
            return connection in self._connections


    def __len__(self):
        with self._lock:
            return len(self._connections)


    def add(self, connection):
        with self._lock:
            self._connections.add(connection)

        logger.debug("Connection opened: {}", connection)


    def remove(self, connection):
        """ Stop tracking *connection*. Returns True if it was tracked.
        """

        with self._lock:
            try:
                self._connections.remove(connection)
            except KeyError:
                return False

        logger.debug("Connection closed: {}", connection)
        return True


    def clear(self):
        """ Stop tracking all connections, and return the ones that were
            tracked.
        """

        with self._lock:
            connections = list(self._connections)
            self._connections.clear()

        return connections


    def snapshot(self):
        with self._lock:
            return list(self._connections)


    def publish(self, topic, *arguments):
        """ Broadcast the *arguments* on *topic* to every connection. The
            frame is serialized once and the same text is sent to each
            recipient. A failure to send to one connection is logged and
            does not prevent delivery to the rest. Returns the number of
            connections the frame was successfully sent to.
        """

        message = Publish(topic, arguments)
        frame = message.encode()

        delivered = 0

        for connection in self.snapshot():
            try:
                connection.send(frame)
            except Exception as e:
                address = getattr(connection, 'address', repr(connection))
                logger.warning("Error sending data to {}: {}", address, e)
                continue

            delivered += 1

        return delivered


# end of class Bus


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
