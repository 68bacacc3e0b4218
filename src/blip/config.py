""" Default settings for Blip servers and clients. Each setting can be
    overridden by an environment variable. The environment is consulted
    the first time a setting is requested, and the answer is cached
    thereafter. Call :func:`reset` to discard the cached values.
"""

import os


defaults = dict()
defaults['BLIP_LOCATION'] = 'ws://127.0.0.1:9224'
defaults['BLIP_TIMEOUT'] = '60'

_cache = dict()


def _get(name):

    try:
        return _cache[name]
    except KeyError:
        pass

    try:
        value = os.environ[name]
    except KeyError:
        value = defaults[name]

    value = value.strip()
    if value == '':
        value = defaults[name]

    _cache[name] = value
    return value



def location():
    """ Return the default location where a server listens, and where a
        client connects, for example ``ws://127.0.0.1:9224``.
    """

    return _get('BLIP_LOCATION')



def timeout():
    """ Return the default timeout, in seconds, for an RPC call to be
        answered before the pending call is discarded.
    """

    value = _get('BLIP_TIMEOUT')

    try:
        value = float(value)
    except ValueError:
        raise ValueError('BLIP_TIMEOUT must be a number of seconds, not ' + repr(value))

    if value <= 0:
        raise ValueError('BLIP_TIMEOUT must be positive')

    return value



def reset():
    _cache.clear()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
