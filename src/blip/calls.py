""" The calling side's table of outstanding RPC calls. Every call gets a
    locally unique correlation id, a pair of callbacks, and a timer; the
    entry is retired exactly once, by whichever comes first of the matching
    response and the timer.
"""

import asyncio
import itertools

from loguru import logger

from . import config
from .protocol import Request, fields
from .topics import apply


class PendingCall:
    """ Bookkeeping for one call awaiting its response.
    """

    def __init__(self, id, target, on_success, on_failure, timer=None):
        self.id = id
        self.target = target
        self.on_success = on_success
        self.on_failure = on_failure
        self.timer = timer


    def __repr__(self):
        return "PendingCall(%r, %r)" % (self.id, self.target)


# end of class PendingCall



class CallTable:
    """ Issue requests and route their responses to the right callbacks.
        Outbound frames are handed to *send*, a callable accepting one text
        frame; it must not block. Timers are armed with the *loop*'s
        ``call_later()``, which is looked up lazily from the running asyncio
        event loop if not provided.

        This class is not thread-safe: it is meant to be driven from a
        single event loop, as the rest of the calling side is.
    """

    prefix = 'rpc_'

    def __init__(self, send, loop=None):
        self.send = send
        self.loop = loop
        self.pending = dict()
        self._ticker = itertools.count(1)


    def __contains__(self, id):
        return id in self.pending


    def __len__(self):
        return len(self.pending)


    def _id_next(self):
        return self.prefix + str(next(self._ticker))


    def _schedule(self, delay, callback, *args):
        loop = self.loop

        if loop is None:
            loop = asyncio.get_running_loop()

        return loop.call_later(delay, callback, *args)


    def call(self, target, arguments=None, on_success=None, on_failure=None, timeout=None):
        """ Call the remote procedure registered as *target* with the
            positional *arguments* (a list or tuple). When the response
            arrives *on_success* or *on_failure* is invoked with the result
            spread as positional arguments. If no response arrives within
            *timeout* seconds (default :func:`blip.config.timeout`) the call
            is discarded, and neither callback is invoked.

            Returns the correlation id of the call.
        """

        if arguments is None:
            arguments = list()

        if isinstance(arguments, (list, tuple)):
            pass
        else:
            raise TypeError('arguments need to be encapsulated in a list')

        if on_failure is None:
            on_failure = _default_failure(target)

        if timeout is None:
            timeout = config.timeout()

        id = self._id_next()
        request = Request(target, id, arguments)
        frame = request.encode()

        timer = self._schedule(timeout, self._expire, id)
        self.pending[id] = PendingCall(id, target, on_success, on_failure, timer)

        try:
            self.send(frame)
        except Exception:
            self._claim(id)
            timer.cancel()
            raise

        return id


    def _claim(self, id):
        """ Remove and return the pending entry for *id*, or None if it has
            already been claimed by a response or a timeout.
        """

        return self.pending.pop(id, None)


    def _expire(self, id):
        pending = self._claim(id)

        if pending is None:
            return

        logger.warning("Blip: RPC call '{}' ({}) timed out", pending.target, id)


    def complete(self, response):
        """ Route an inbound :class:`blip.protocol.Response` to the callbacks
            of its pending call. Returns True if a callback was invoked.
        """

        pending = self._claim(response.target)

        if pending is None:
            logger.warning("Blip: no handler for '{}'", response.target)
            return False

        if pending.timer is not None:
            pending.timer.cancel()

        success = response.success
        description = "RPC callback for '%s'" % (pending.target)

        if success is True:
            apply(pending.on_success, response.result, description)
        elif success is False:
            apply(pending.on_failure, response.result, description)
        else:
            logger.warning("Blip: malformed server response. Missing success condition")
            return False

        return True


    def clear(self):
        """ Discard every pending call, cancelling their timers. No
            callbacks are invoked.
        """

        pending = list(self.pending.values())
        self.pending.clear()

        for entry in pending:
            if entry.timer is not None:
                entry.timer.cancel()

        return len(pending)


# end of class CallTable



def _default_failure(target):

    def failure(*arguments):
        message = None
        if arguments and isinstance(arguments[0], dict):
            message = arguments[0].get(fields.MESSAGE)
        if message is None:
            message = arguments
        logger.error("Blip: Unhandled RPC call '{}' failed: {}", target, message)

    return failure


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
