''' Wrapper module to select the most performant available library to handle
    the equivalent of :func:`json.loads` and :func:`json.dumps`. Blip frames
    travel as text, so unlike the underlying libraries :func:`dumps` always
    returns a string.
'''

# The business about conditionally importing the libraries is intended to
# avoid importing less efficient libraries if they are not available.

msgspec = None
orjson = None
json = None

try:
    import msgspec
except ImportError:
    pass

if msgspec is None:
    try:
        import orjson
    except ImportError:
        pass

if msgspec is None and orjson is None:
    import json


def _text(encoder):
    def dumps(value):
        return encoder(value).decode()
    return dumps


if msgspec is not None:
    encoder = msgspec.json.Encoder()
    decoder = msgspec.json.Decoder()
    dumps = _text(encoder.encode)
    loads = decoder.decode
    DecodeError = msgspec.DecodeError
elif orjson is not None:
    dumps = _text(orjson.dumps)
    loads = orjson.loads
    DecodeError = orjson.JSONDecodeError
else:
    def dumps(value):
        return json.dumps(value, separators=(',', ':'))
    loads = json.loads
    DecodeError = json.JSONDecodeError

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
