""" Run a demonstration Blip server:

        python -m blip --location ws://0.0.0.0:9224

    The server offers a handful of procedures under the Test. prefix, and
    publishes to Test.Settings whenever Test.Hello is called.
"""

import argparse
import sys
import threading

from loguru import logger

from . import config
from .server import Server


class Service:
    """ Demonstrates procedures bound to an instance.
    """

    def compute_names(self):
        return ['Bob', 'Sally', 'Lizzy']


    def error(self):
        raise RuntimeError('Intentional Test Error')


# end of class Service



def increment(a: int) -> int:
    """ Add one to a number and return the result.
    """

    return a + 1



def setup(server):
    """ Register the demonstration procedures with *server*.
    """

    def hello():
        server.publish('Test.Settings', 1, 2, ['Hello', 'Subscribers', 'Here', 'Are', 'Settings'])
        return 'Hello World'

    service = Service()

    server.register('Test.Hello', hello)
    server.register('Test.Increment', increment)
    server.register('Test.Service.Names', service.compute_names)
    server.register('Test.ThrowError', service.error)



def main(arguments=None):

    parser = argparse.ArgumentParser(description='Run a demonstration Blip server.')
    parser.add_argument('--location', default=None, help='where to listen, for example ws://0.0.0.0:9224 or tcp://*:10080 (default: %s)' % (config.location()))
    parser.add_argument('--verbose', action='store_true', help='log debug messages')

    arguments = parser.parse_args(arguments)

    logger.remove()
    logger.add(sys.stderr, level='DEBUG' if arguments.verbose else 'INFO')

    server = Server(arguments.location)
    setup(server)

    logger.info("Blip demonstration server on {}", server.location)

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        server.close()

    return 0


if __name__ == '__main__':
    sys.exit(main())

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
