""" The serving side of Blip. A :class:`Server` owns its own procedure
    registry, dispatch engine, and broadcast bus; nothing is shared between
    two :class:`Server` instances in the same process.
"""

from loguru import logger

from . import config
from . import transport
from .bus import Bus
from .dispatch import Router
from .registry import Registry


class Server(transport.Events):
    """ Super lightweight RPC / PUBSUB server. Procedures are registered by
        name with :func:`register`, and invoked by clients sending request
        frames; :func:`publish` sends a topic update to every connected
        client. The *location* is where to listen, for example
        ``ws://0.0.0.0:9224`` or ``tcp://*:10080``; it defaults to
        :func:`blip.config.location`. The listener is started immediately
        unless *start* is False.

        :ivar registry: The :class:`blip.registry.Registry` of procedures.
        :ivar router: The :class:`blip.dispatch.Router` handling requests.
        :ivar bus: The :class:`blip.bus.Bus` of connected clients.
    """

    def __init__(self, location=None, start=True):

        if location is None:
            location = config.location()

        self.registry = Registry()
        self.router = Router(self.registry)
        self.bus = Bus()

        self.listener = transport.listener(location, self)

        if start:
            self.start()


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.close()


    @property
    def location(self):
        """ Location of this server as a string, with the actual port number
            if the server was asked to pick one.
        """

        return self.listener.location


    def start(self):
        self.listener.start()
        logger.debug("Blip server listening on {}", self.location)


    def close(self):
        """ Tear down the listener and disconnect every client.
        """

        for connection in self.bus.clear():
            try:
                connection.close()
            except Exception as e:
                logger.debug("Error closing {}: {}", connection, e)

        self.listener.close()


    # Procedure registry.

    def register(self, target, function, types=None):
        """ Register *function* as the procedure invoked for *target*. This
            will overwrite an existing procedure with the same name without
            warning. See :class:`blip.registry.Procedure` for the meaning of
            *types*.
        """

        return self.registry.register(target, function, types)


    def procedure(self, target=None, types=None):
        """ Decorator form of :func:`register`. The target defaults to the
            name of the decorated function.
        """

        def decorator(function):
            name = target
            if name is None:
                name = function.__name__
            self.register(name, function, types)
            return function

        return decorator


    def unregister(self, target):
        """ Remove the procedure registered for *target*. Returns True if
            it was removed, False if there was nothing to remove.
        """

        return self.registry.unregister(target)


    # Broadcast.

    def publish(self, topic, *arguments):
        """ Publish the *arguments* to a *topic*. This will be sent to all
            connected clients.
        """

        return self.bus.publish(topic, *arguments)


    # Transport events.

    def on_open(self, connection):
        self.bus.add(connection)


    def on_message(self, connection, frame):
        self.router.handle(connection, frame)


    def on_close(self, connection):
        self.bus.remove(connection)


    def on_error(self, connection, error):
        logger.debug("Connection error from {}: {}", connection, error)
        self.bus.remove(connection)


# end of class Server


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
