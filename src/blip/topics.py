""" The calling side's topic registry: which handlers want to hear about
    which published topics.
"""

from loguru import logger


def apply(handler, arguments, description='handler'):
    """ Invoke *handler* with *arguments* spread as positional arguments.
        A list or tuple is spread as-is; any other value, including None, is
        passed as the sole argument. An exception raised by the handler is
        logged and swallowed. Returns True if the handler completed.
    """

    if handler is None:
        return False

    if isinstance(arguments, (list, tuple)):
        pass
    else:
        arguments = (arguments,)

    try:
        handler(*arguments)
    except Exception:
        logger.exception("Blip: error invoking {}", description)
        return False

    return True



class TopicRegistry:
    """ Per-topic ordered lists of handlers. The same handler may be
        subscribed to the same topic more than once; each subscription
        fires independently.

        Like the rest of the calling side, this class expects to be used
        from a single thread, typically the one running the event loop.
    """

    def __init__(self):
        self.handlers = dict()


    def __contains__(self, topic):
        return topic in self.handlers


    def subscribe(self, topic, handler):
        """ Append *handler* to the list of handlers for *topic*.
        """

        if topic is None or not isinstance(topic, str) or topic.strip() == '':
            raise ValueError('cannot subscribe to null or whitespace topic')

        if callable(handler):
            pass
        else:
            raise TypeError('handler must be callable')

        try:
            handlers = self.handlers[topic]
        except KeyError:
            handlers = list()
            self.handlers[topic] = handlers

        handlers.append(handler)


    def unsubscribe(self, selector=None):
        """ Clear subscriptions. A topic string as the *selector* removes
            every handler for that topic; a handler removes every occurrence
            of that handler across all topics; no selector removes
            everything.
        """

        if selector is None:
            self.handlers = dict()

        elif isinstance(selector, str):
            self.handlers.pop(selector, None)

        elif callable(selector):
            for topic in list(self.handlers.keys()):
                handlers = [handler for handler in self.handlers[topic] if handler != selector]

                if handlers:
                    self.handlers[topic] = handlers
                else:
                    del self.handlers[topic]

        else:
            raise TypeError('selector must be a topic name, a handler, or None')


    def deliver(self, topic, arguments):
        """ Invoke every handler subscribed to *topic*, in subscription
            order, with the published *arguments*. Returns the number of
            handlers that completed without raising.
        """

        try:
            handlers = self.handlers[topic]
        except KeyError:
            return 0

        # Iterate over a copy; a handler is allowed to subscribe or
        # unsubscribe while being invoked.

        completed = 0
        description = "subscription handler for '%s'" % (topic)

        for handler in list(handlers):
            if apply(handler, arguments, description):
                completed += 1

        return completed


# end of class TopicRegistry


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
