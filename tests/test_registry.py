import ctypes
from typing import Dict, List, Optional, Tuple

import pytest

import blip
from blip.registry import BindingError, Procedure, Registry, UnsupportedSignature, coerce


def increment(a: int) -> int:
    return a + 1


def test_register_and_get():
    registry = Registry()
    procedure = registry.register('increment', increment)

    assert isinstance(procedure, Procedure)
    assert registry.get('increment') is procedure
    assert 'increment' in registry
    assert len(registry) == 1
    assert registry.get('missing') is None


def test_register_overwrites():
    registry = Registry()
    registry.register('target', lambda: 'first')
    registry.register('target', lambda: 'second')

    assert len(registry) == 1
    assert registry.get('target').invoke([]) == 'second'


@pytest.mark.parametrize('target', (None, '', '   ', '\t'))
def test_register_blank_target(target):
    registry = Registry()

    with pytest.raises(ValueError):
        registry.register(target, increment)


def test_register_missing_procedure():
    registry = Registry()

    with pytest.raises(ValueError):
        registry.register('target', None)

    with pytest.raises(TypeError):
        registry.register('target', 'not callable')


def test_register_prebuilt_procedure():
    registry = Registry()
    procedure = Procedure(increment)

    assert registry.register('increment', procedure) is procedure
    assert registry.get('increment') is procedure

    with pytest.raises(ValueError):
        registry.register('increment', procedure, types=[int])

    assert registry.get('increment') is procedure


def test_unregister():
    registry = Registry()
    registry.register('increment', increment)

    assert registry.unregister('increment') == True
    assert registry.unregister('increment') == False
    assert registry.get('increment') is None


def test_targets():
    registry = Registry()
    registry.register('b', increment)
    registry.register('a', increment)

    assert registry.targets() == ['a', 'b']


def test_narrow_numeric_types():

    def takes_c_int(a: ctypes.c_int):
        pass

    def takes_c_float(a: ctypes.c_float):
        pass

    def takes_optional_c_short(a: Optional[ctypes.c_short] = None):
        pass

    def takes_list_of_c_byte(a: List[ctypes.c_byte]):
        pass

    for function in (takes_c_int, takes_c_float, takes_optional_c_short, takes_list_of_c_byte):
        with pytest.raises(UnsupportedSignature):
            Procedure(function)


def test_narrow_numeric_types_by_name():
    """ numpy types are recognized by name; a look-alike class stands in
        for numpy so that numpy isn't required to run the test.
    """

    fake = type('int32', (), {})
    fake.__module__ = 'numpy'

    with pytest.raises(UnsupportedSignature):
        Procedure(lambda a: a, types=[fake])


def test_unsupported_signature_is_type_error():
    assert issubclass(UnsupportedSignature, TypeError)
    assert issubclass(BindingError, TypeError)


def test_keyword_only():

    def required_keyword(a, *, b):
        pass

    def optional_keyword(a, *, b=2):
        return a + b

    with pytest.raises(UnsupportedSignature):
        Procedure(required_keyword)

    procedure = Procedure(optional_keyword)
    assert procedure.invoke([1]) == 3


def test_explicit_types():
    procedure = Procedure(lambda a, b: (a, b), types=[int, str])

    assert procedure.invoke([1.0, 'x']) == (1, 'x')

    with pytest.raises(BindingError):
        procedure.invoke(['x', 'x'])

    with pytest.raises(UnsupportedSignature):
        Procedure(lambda a, b: None, types=[int])


def test_bind_count():
    procedure = Procedure(increment)

    with pytest.raises(BindingError):
        procedure.bind([])

    with pytest.raises(BindingError):
        procedure.bind([1, 2])

    assert procedure.bind([1]) == [1]


def test_bind_defaults():

    def defaults(a, b=10):
        return a + b

    procedure = Procedure(defaults)
    assert procedure.invoke([1]) == 11
    assert procedure.invoke([1, 2]) == 3


def test_bind_variadic():

    def variadic(first: str, *rest: int):
        return [first] + list(rest)

    procedure = Procedure(variadic)
    assert procedure.invoke(['a']) == ['a']
    assert procedure.invoke(['a', 1, 2.0]) == ['a', 1, 2]

    with pytest.raises(BindingError):
        procedure.invoke(['a', 1, 'b'])


def test_bound_method():

    class Service:
        def __init__(self):
            self.offset = 100

        def add(self, a: int) -> int:
            return a + self.offset

    procedure = Procedure(Service().add)
    assert procedure.invoke([1]) == 101

    with pytest.raises(BindingError):
        procedure.invoke(['one'])


def test_callable_instance():

    class Doubler:
        def __call__(self, a: float):
            return a * 2

    procedure = Procedure(Doubler())
    assert procedure.invoke([2]) == 4.0


def test_coroutine_function():

    async def later(a: int):
        return a * 3

    procedure = Procedure(later)
    assert procedure.invoke([3]) == 9


def test_coerce_scalars():
    assert coerce(26, int) == 26
    assert coerce(26.0, int) == 26
    assert isinstance(coerce(26.0, int), int)
    assert coerce(26, float) == 26.0
    assert isinstance(coerce(26, float), float)
    assert coerce(True, bool) is True
    assert coerce('text', str) == 'text'
    assert coerce({'a': 1}, None) == {'a': 1}

    for value, kind in ((26.5, int), (True, int), (False, float), ('26', int), (1, bool), (1, str), (None, int)):
        with pytest.raises(BindingError):
            coerce(value, kind)


def test_coerce_containers():
    assert coerce([1, 2.0], List[int]) == [1, 2]
    assert coerce([1, 2], list) == [1, 2]
    assert coerce([1, 'a'], Tuple[int, str]) == (1, 'a')
    assert coerce([1, 2], Tuple[float, ...]) == (1.0, 2.0)
    assert coerce([1, 2], tuple) == (1, 2)
    assert coerce({'a': 1.0}, Dict[str, int]) == {'a': 1}
    assert coerce({'a': 1}, dict) == {'a': 1}

    with pytest.raises(BindingError):
        coerce({'a': 1}, list)

    with pytest.raises(BindingError):
        coerce([1, 'a'], List[int])

    with pytest.raises(BindingError):
        coerce([1], Tuple[int, str])


def test_coerce_optional():
    assert coerce(None, Optional[int]) is None
    assert coerce(3, Optional[int]) == 3
    assert coerce(3, int | None) == 3
    assert coerce('x', int | str) == 'x'

    with pytest.raises(BindingError):
        coerce('x', Optional[int])


def test_string_annotations():
    """ Annotations that can't be resolved are treated as unconstrained.
    """

    def unresolvable(a: 'NoSuchType'):
        return a

    procedure = Procedure(unresolvable)
    assert procedure.invoke(['anything']) == 'anything'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
