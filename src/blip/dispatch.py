""" The dispatch engine for the serving side. A :class:`Router` takes one
    inbound frame at a time from a connection, invokes the procedure it
    names, and sends the response back to that same connection. The router
    keeps no state between frames; the procedures themselves live in the
    :class:`blip.registry.Registry` it is given.
"""

from loguru import logger

from . import protocol
from .protocol import Request, Response
from .registry import Registry


class Router:
    """ Route requests arriving on any connection to the procedures in
        *registry*. Multiple threads may call :func:`handle` at the same
        time; nothing here is shared between calls except the registry,
        which does its own locking.
    """

    def __init__(self, registry=None):

        if registry is None:
            registry = Registry()

        self.registry = registry


    def handle(self, connection, frame):
        """ All inbound frames are filtered through this method. A frame
            that is not a valid request, or that names a target with no
            registered procedure, is logged and dropped: without a valid
            request there is nothing to correlate a response with, and an
            unknown target is deliberately not answered. Everything else
            results in exactly one response to *connection*.

            Returns the :class:`Response` sent, or None if the frame was
            dropped.
        """

        try:
            request = protocol.parse(frame)
        except protocol.ValidationFailed as e:
            logger.warning("Dropped bad Blip request from {}: {}", _address(connection), e)
            return None

        if isinstance(request, Request):
            pass
        else:
            logger.warning("Dropped unexpected {} frame from {}", type(request).__name__, _address(connection))
            return None

        procedure = self.registry.get(request.target)

        if procedure is None:
            logger.warning("Missing RPC registered handler for target '{}' from {}", request.target, _address(connection))
            return None

        response = self.invoke(procedure, request)
        self.reply(connection, response)
        return response


    def invoke(self, procedure, request):
        """ Bind the request arguments, call the procedure, and build the
            :class:`Response`. Any exception raised along the way, including
            a failure to bind the arguments, becomes a failure response.
        """

        try:
            result = procedure.invoke(request.arguments)
        except Exception as e:
            return Response.failure(request.call, e)

        response = Response.succeeded(request.call, result)

        # The result has to survive serialization; if it doesn't, the
        # caller still gets an answer, just not the one they hoped for.

        try:
            response.encode()
        except (TypeError, ValueError, OverflowError) as e:
            error = TypeError("result of '%s' is not JSON serializable: %s" % (request.target, e))
            response = Response.failure(request.call, error)

        return response


    def reply(self, connection, response):
        """ Send the *response* to *connection*. A send failure is logged
            and otherwise ignored, there is no retry.
        """

        try:
            connection.send(response.encode())
        except Exception as e:
            logger.warning("Error sending data to {}: {}", _address(connection), e)


# end of class Router



def _address(connection):
    return getattr(connection, 'address', repr(connection))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
