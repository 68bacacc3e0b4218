import socket

import pytest
from loguru import logger


class FakeConnection:
    """ Stand-in for a transport connection: remembers every frame sent to
        it, and can be told to fail instead.
    """

    def __init__(self, name='fake', broken=False):
        self.name = name
        self.broken = broken
        self.sent = list()
        self.closed = False

    @property
    def address(self):
        return self.name

    def send(self, frame):
        if self.broken:
            raise ConnectionError('send to %s failed' % (self.name))
        self.sent.append(frame)

    def close(self):
        self.closed = True


class FakeTimer:

    def __init__(self, delay, callback, args):
        self.delay = delay
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.callback(*self.args)


class FakeLoop:
    """ Just enough of an asyncio event loop for :class:`blip.CallTable`:
        timers are recorded, and only fire when a test says so.
    """

    def __init__(self):
        self.timers = list()

    def call_later(self, delay, callback, *args):
        timer = FakeTimer(delay, callback, args)
        self.timers.append(timer)
        return timer


@pytest.fixture
def messages():
    """ Capture the text of every log message emitted during a test.
    """

    captured = list()
    sink = logger.add(lambda message: captured.append(message.record['message']), level='DEBUG')

    yield captured

    logger.remove(sink)


@pytest.fixture
def connection():
    return FakeConnection


@pytest.fixture
def loop():
    return FakeLoop()


@pytest.fixture
def free_port():
    """ Return a TCP port number that was free a moment ago.
    """

    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(('127.0.0.1', 0))
    port = probe.getsockname()[1]
    probe.close()
    return port


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    import blip

    for name in ('BLIP_LOCATION', 'BLIP_TIMEOUT'):
        monkeypatch.delenv(name, raising=False)

    blip.config.reset()
    yield
    blip.config.reset()

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
