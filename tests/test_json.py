import json

import pytest

import blip


def test_dumps_is_text():
    encoded = blip.json.dumps({'Target': 'c1', 'Success': True, 'Result': 27})
    assert isinstance(encoded, str)

    # Whatever library is doing the work, the output has to be readable by
    # anybody else's JSON decoder; the peers are not necessarily Python.

    assert json.loads(encoded) == {'Target': 'c1', 'Success': True, 'Result': 27}


def test_encode_and_decode():

    input_dictionary = dict()
    input_dictionary['list'] = [1, 2, 3, 'a', 'b', None, 'c', 'z']
    input_dictionary['nested'] = {'one': 1, 'two': [2.5]}
    input_dictionary['none'] = None
    input_dictionary['true'] = True
    input_dictionary['false'] = False

    encoded = blip.json.dumps(input_dictionary)
    decoded = blip.json.loads(encoded)

    assert decoded == input_dictionary


def test_numbers_keep_their_kind():
    """ The argument binding relies on integers decoding as int and
        everything else as float.
    """

    decoded = blip.json.loads('[26, 26.0, -1, 1e3]')
    assert isinstance(decoded[0], int)
    assert isinstance(decoded[1], float)
    assert isinstance(decoded[2], int)
    assert isinstance(decoded[3], float)


def test_tuples_become_lists():
    encoded = blip.json.dumps({'Arguments': (1, 2, ('a', 'b'))})
    assert blip.json.loads(encoded) == {'Arguments': [1, 2, ['a', 'b']]}


def test_unserializable():
    with pytest.raises(TypeError):
        blip.json.dumps({'Result': object()})


def test_bad_input():
    with pytest.raises(blip.json.DecodeError):
        blip.json.loads('{"Target": ')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
