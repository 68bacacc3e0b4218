""" The calling side of Blip. A :class:`Client` connects to a server, calls
    its procedures, and listens for the topics it publishes. The client is
    built on asyncio: every method other than the coroutines returns
    immediately, and all completion is reported through callbacks invoked
    from the event loop.
"""

import asyncio

from loguru import logger

from . import config
from . import protocol
from . import transport
from .calls import CallTable
from .topics import TopicRegistry


class Client:
    """ Create a new Blip client that communicates with the server at
        *location*, for example ``ws://127.0.0.1:9224``; the default is
        :func:`blip.config.location`. A *timeout* in seconds, if given,
        replaces the configured default for calls that do not specify
        their own.

        Typical use::

            client = blip.Client('ws://127.0.0.1:9224')
            await client.connect()
            client.subscribe('Test.Settings', print)
            client.call('Test.Increment', [26], print)
            await client.run()
    """

    def __init__(self, location=None, timeout=None, channel=None):

        if location is None:
            location = config.location()

        if channel is None:
            channel = transport.channel(location)

        self.location = location
        self.timeout = timeout
        self.channel = channel

        self.calls = CallTable(self._send)
        self.topics = TopicRegistry()

        self._sending = set()


    async def __aenter__(self):
        await self.connect()
        return self


    async def __aexit__(self, *exc_info):
        await self.close()


    async def connect(self):
        await self.channel.open()
        logger.debug("Blip client connected to {}", self.location)


    async def close(self):
        """ Close the connection. Pending calls are discarded without
            invoking their callbacks; subscriptions are kept.
        """

        self.calls.clear()
        await self.channel.close()


    async def run(self):
        """ Receive and handle frames until the connection closes.
        """

        while True:
            frame = await self.channel.recv()

            if frame is None:
                break

            self.on_incoming(frame)


    def on_incoming(self, frame):
        """ Handle one inbound text *frame*: a publish is delivered to the
            topic subscribers, a response to the callbacks of its pending
            call. Anything else is logged and dropped.
        """

        try:
            message = protocol.parse(frame)
        except protocol.ValidationFailed as e:
            logger.warning("Blip: malformed server packet: {}", e)
            return

        if isinstance(message, protocol.Publish):
            self.topics.deliver(message.topic, message.arguments)
        elif isinstance(message, protocol.Response):
            self.calls.complete(message)
        else:
            logger.warning("Blip: malformed server packet: unexpected request")


    def _send(self, frame):
        """ Hand *frame* to the channel without waiting for it to go out.
            Failures are logged when the send task completes.
        """

        task = asyncio.ensure_future(self.channel.send(frame))
        self._sending.add(task)
        task.add_done_callback(self._sent)


    def _sent(self, task):
        self._sending.discard(task)

        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            logger.warning("Blip: error sending data to {}: {}", self.location, error)


    def call(self, target, arguments=None, on_success=None, on_failure=None, timeout=None):
        """ Call a remote procedure on the server. The *arguments* are a
            list of values to be passed to the remote procedure. *on_success*
            is invoked with the result if the call succeeds; *on_failure*
            is invoked with a dictionary of the error Message and Stacktrace
            if it fails, and defaults to logging the failure. If there is no
            response within *timeout* seconds the call is discarded without
            invoking either callback.

            Returns the correlation id of the call.
        """

        if timeout is None:
            timeout = self.timeout

        return self.calls.call(target, arguments, on_success, on_failure, timeout)


    def subscribe(self, topic, handler):
        """ Subscribe *handler* to updates published on *topic*; it will be
            invoked with the published arguments.
        """

        self.topics.subscribe(topic, handler)


    def unsubscribe(self, selector=None):
        """ Clear subscriptions: all of a particular topic if *selector* is a
            topic name, every subscription of a handler if *selector* is a
            handler, or all of them if no *selector* is provided.
        """

        self.topics.unsubscribe(selector)


# end of class Client


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
