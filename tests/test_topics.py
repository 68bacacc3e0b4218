import pytest

from blip import TopicRegistry
from blip.topics import apply


class Recorder:

    def __init__(self, name='recorder', log=None):
        self.name = name
        self.log = log if log is not None else list()

    def __call__(self, *arguments):
        self.log.append((self.name, arguments))


def test_deliver():
    topics = TopicRegistry()
    handler = Recorder()

    topics.subscribe('Test.Settings', handler)
    assert topics.deliver('Test.Settings', [1, 2, ['a', 'b']]) == 1

    assert handler.log == [('recorder', (1, 2, ['a', 'b']))]


def test_deliver_without_subscribers():
    topics = TopicRegistry()
    assert topics.deliver('nobody', [1]) == 0


def test_duplicate_subscription():
    topics = TopicRegistry()
    handler = Recorder()

    topics.subscribe('X', handler)
    topics.subscribe('X', handler)
    topics.deliver('X', ['once'])

    assert handler.log == [('recorder', ('once',)), ('recorder', ('once',))]


def test_subscription_order():
    topics = TopicRegistry()
    log = list()

    first = Recorder('first', log)
    second = Recorder('second', log)

    topics.subscribe('X', first)
    topics.subscribe('X', second)
    topics.subscribe('X', first)
    topics.deliver('X', [])

    assert [name for name, arguments in log] == ['first', 'second', 'first']


@pytest.mark.parametrize('topic', (None, '', ' ', '   \t'))
def test_subscribe_blank_topic(topic):
    topics = TopicRegistry()

    with pytest.raises(ValueError):
        topics.subscribe(topic, Recorder())


def test_subscribe_non_callable():
    topics = TopicRegistry()

    with pytest.raises(TypeError):
        topics.subscribe('X', 'not callable')


def test_unsubscribe_topic():
    topics = TopicRegistry()
    handler = Recorder()

    topics.subscribe('X', handler)
    topics.subscribe('Y', handler)
    topics.unsubscribe('X')

    topics.deliver('X', [1])
    topics.deliver('Y', [2])

    assert handler.log == [('recorder', (2,))]


def test_unsubscribe_handler():
    topics = TopicRegistry()
    log = list()
    removed = Recorder('removed', log)
    kept = Recorder('kept', log)

    topics.subscribe('X', removed)
    topics.subscribe('X', kept)
    topics.subscribe('X', removed)
    topics.subscribe('Y', removed)

    topics.unsubscribe(removed)

    topics.deliver('X', [])
    topics.deliver('Y', [])

    assert log == [('kept', ())]
    assert 'Y' not in topics


def test_unsubscribe_everything():
    topics = TopicRegistry()
    handler = Recorder()

    topics.subscribe('X', handler)
    topics.subscribe('Y', handler)
    topics.unsubscribe()

    topics.deliver('X', [])
    topics.deliver('Y', [])

    assert handler.log == []


def test_unsubscribe_bad_selector():
    topics = TopicRegistry()

    with pytest.raises(TypeError):
        topics.unsubscribe(42)


def test_failing_handler_does_not_interrupt(messages):
    topics = TopicRegistry()
    handler = Recorder()

    def explode(*arguments):
        raise RuntimeError('handler failure')

    topics.subscribe('X', explode)
    topics.subscribe('X', handler)

    assert topics.deliver('X', [1]) == 1
    assert handler.log == [('recorder', (1,))]
    assert any("subscription handler for 'X'" in message for message in messages)


def test_unsubscribe_during_delivery():
    topics = TopicRegistry()
    handler = Recorder()

    def unsubscriber(*arguments):
        topics.unsubscribe(handler)

    topics.subscribe('X', unsubscriber)
    topics.subscribe('X', handler)

    # The delivery already underway still reaches everyone subscribed when
    # it began; the next one does not.

    topics.deliver('X', [1])
    topics.deliver('X', [2])

    assert handler.log == [('recorder', (1,))]


def test_apply_wrapping():
    received = list()

    def handler(*arguments):
        received.append(arguments)

    apply(handler, [1, 2])
    apply(handler, (3,))
    apply(handler, 'text')
    apply(handler, {'Message': 'x'})
    apply(handler, None)

    assert received == [(1, 2), (3,), ('text',), ({'Message': 'x'},), (None,)]
    assert apply(None, [1]) == False


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
