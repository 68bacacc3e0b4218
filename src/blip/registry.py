""" The procedure registry: the serving side's table of named procedures.
    Each registered callable is wrapped in a :class:`Procedure`, which
    records the positional parameters and their expected types once, at
    registration time. Dispatch later binds the generic JSON arguments of
    a request against that fixed description.
"""

import asyncio
import collections.abc
import inspect
import threading
import types
import typing

from loguru import logger


class UnsupportedSignature(TypeError):
    """ Raised at registration time when a procedure cannot be invoked with
        positional JSON arguments, such as a parameter declared with a
        fixed-width numeric type.
    """


class BindingError(TypeError):
    """ Raised at dispatch time when the arguments of a request do not fit
        the parameters of the target procedure.
    """


# Fixed-width numeric types cannot be reliably recovered from JSON numbers:
# a decoded value is a Python int or float, and nothing on the wire says
# whether 300 was meant to fit in a byte. These are matched by name so that
# neither numpy nor ctypes needs to be imported to perform the check.

disallowed_types = frozenset((
    'ctypes.c_byte',
    'ctypes.c_ubyte',
    'ctypes.c_short',
    'ctypes.c_ushort',
    'ctypes.c_int',
    'ctypes.c_uint',
    'ctypes.c_float',
    'numpy.int8',
    'numpy.int16',
    'numpy.int32',
    'numpy.uint8',
    'numpy.uint16',
    'numpy.uint32',
    'numpy.float16',
    'numpy.float32',
))


def _type_name(kind):
    module = getattr(kind, '__module__', None)
    name = getattr(kind, '__qualname__', None)

    if module is None or name is None:
        return None

    return module + '.' + name


def _is_disallowed(kind):
    """ Return True if *kind*, or any type nested within it (the members of
        an Optional, the element type of a list), is a fixed-width numeric
        type.
    """

    if _type_name(kind) in disallowed_types:
        return True

    for nested in typing.get_args(kind):
        if _is_disallowed(nested):
            return True

    return False



def coerce(value, kind):
    """ Convert the decoded JSON *value* to the expected type *kind*, or
        raise :class:`BindingError` if that is not possible. A *kind* of
        None (no annotation), :class:`typing.Any`, or :class:`object`
        accepts anything.
    """

    if kind is None or kind is typing.Any or kind is object or kind is inspect.Parameter.empty:
        return value

    origin = typing.get_origin(kind)
    arguments = typing.get_args(kind)

    if origin is typing.Union or _is_union_type(origin):
        if value is None and type(None) in arguments:
            return None

        for member in arguments:
            if member is type(None):
                continue
            try:
                return coerce(value, member)
            except BindingError:
                continue

        raise BindingError("cannot convert %r to %s" % (value, _describe(kind)))

    if origin is not None:
        return _coerce_generic(value, origin, arguments, kind)

    if kind is bool:
        if isinstance(value, bool):
            return value

    elif kind is int:
        if isinstance(value, bool):
            pass
        elif isinstance(value, int):
            return value
        elif isinstance(value, float) and value.is_integer():
            return int(value)

    elif kind is float:
        if isinstance(value, bool):
            pass
        elif isinstance(value, (int, float)):
            return float(value)

    elif kind is list:
        if isinstance(value, list):
            return value

    elif kind is tuple:
        if isinstance(value, list):
            return tuple(value)

    elif isinstance(kind, type):
        if isinstance(value, kind):
            return value

    else:
        # Something exotic, like a TypeVar or a string forward reference
        # that could not be resolved. Don't guess; let it through.
        return value

    raise BindingError("cannot convert %r to %s" % (value, _describe(kind)))



def _is_union_type(origin):
    return origin is types.UnionType


def _coerce_generic(value, origin, arguments, kind):

    if origin in (list, collections.abc.Sequence, collections.abc.Iterable):
        if isinstance(value, list):
            if arguments:
                return [coerce(element, arguments[0]) for element in value]
            return value

    elif origin is tuple:
        if isinstance(value, list):
            if len(arguments) == 2 and arguments[1] is Ellipsis:
                return tuple(coerce(element, arguments[0]) for element in value)
            if arguments:
                if len(arguments) != len(value):
                    raise BindingError("expected %d elements, not %d" % (len(arguments), len(value)))
                return tuple(coerce(element, member) for element, member in zip(value, arguments))
            return tuple(value)

    elif origin in (dict, collections.abc.Mapping):
        if isinstance(value, dict):
            if len(arguments) == 2:
                return dict((key, coerce(element, arguments[1])) for key, element in value.items())
            return value

    elif isinstance(origin, type):
        if isinstance(value, origin):
            return value

    else:
        return value

    raise BindingError("cannot convert %r to %s" % (value, _describe(kind)))



def _describe(kind):
    try:
        return kind.__name__
    except AttributeError:
        return str(kind)



class Parameter:
    """ Positional parameter descriptor: the *name*, the expected type
        (*kind*, None if unconstrained), and whether a *default* exists.
    """

    def __init__(self, name, kind=None, required=True):
        self.name = name
        self.kind = kind
        self.required = required


    def __repr__(self):
        return "Parameter(%r, %s, required=%r)" % (self.name, _describe(self.kind), self.required)


# end of class Parameter



class Procedure:
    """ Wrap a *function* for invocation with positional JSON arguments.
        The parameter types are taken from *types*, if provided, as a
        sequence aligned with the positional parameters; otherwise they come
        from the function's type hints. :class:`UnsupportedSignature` is
        raised if the function cannot be described this way.
    """

    def __init__(self, function, types=None):

        if callable(function):
            pass
        else:
            raise TypeError('RPC procedure must be callable')

        self.function = function
        self.parameters = list()
        self.variadic = None

        try:
            signature = inspect.signature(function)
        except (TypeError, ValueError):
            # Some builtins have no introspectable signature. Allow any
            # number of unconstrained arguments.
            self.variadic = Parameter('args', None, False)
            return

        hints = self._hints(function)

        for parameter in signature.parameters.values():
            kind = hints.get(parameter.name, None)
            required = parameter.default is inspect.Parameter.empty

            if parameter.kind == parameter.VAR_KEYWORD:
                continue

            if parameter.kind == parameter.KEYWORD_ONLY:
                if required:
                    raise UnsupportedSignature("keyword-only parameter '%s' cannot be bound positionally" % (parameter.name))
                continue

            if parameter.kind == parameter.VAR_POSITIONAL:
                self.variadic = Parameter(parameter.name, kind, False)
                continue

            self.parameters.append(Parameter(parameter.name, kind, required))

        if types is not None:
            types = list(types)
            if len(types) != len(self.parameters):
                raise UnsupportedSignature("%d types supplied for %d parameters" % (len(types), len(self.parameters)))

            for parameter, kind in zip(self.parameters, types):
                parameter.kind = kind

        everything = list(self.parameters)
        if self.variadic is not None:
            everything.append(self.variadic)

        for parameter in everything:
            if _is_disallowed(parameter.kind):
                raise UnsupportedSignature("parameter '%s' has unsupported type %s; fixed-width numeric types cannot be decoded from JSON" % (parameter.name, _describe(parameter.kind)))


    def __repr__(self):
        return "Procedure(%r, %r)" % (self.function, self.parameters)


    @staticmethod
    def _hints(function):
        """ Return resolved type hints for *function*. Hints that cannot be
            resolved (a forward reference to a name that doesn't exist,
            for example) fall back to the raw annotations; string
            annotations left over after that are ignored.
        """

        target = function
        if not inspect.isfunction(target) and not inspect.ismethod(target):
            target = getattr(function, '__call__', function)

        try:
            hints = typing.get_type_hints(target)
        except Exception:
            hints = dict(getattr(target, '__annotations__', {}))

        for name, kind in list(hints.items()):
            if isinstance(kind, str):
                del hints[name]

        hints.pop('return', None)
        return hints


    def bind(self, arguments):
        """ Return a list of positional arguments suitable for invoking the
            wrapped function, converting each decoded JSON value to the
            expected type. :class:`BindingError` is raised on a mismatch.
        """

        arguments = list(arguments)
        required = sum(1 for parameter in self.parameters if parameter.required)
        maximum = len(self.parameters)

        if len(arguments) < required:
            raise BindingError("expected at least %d arguments, received %d" % (required, len(arguments)))

        if self.variadic is None and len(arguments) > maximum:
            raise BindingError("expected at most %d arguments, received %d" % (maximum, len(arguments)))

        bound = list()

        for index, value in enumerate(arguments):
            if index < maximum:
                parameter = self.parameters[index]
            else:
                parameter = self.variadic

            try:
                value = coerce(value, parameter.kind)
            except BindingError as e:
                raise BindingError("argument %d (%s): %s" % (index, parameter.name, e)) from None

            bound.append(value)

        return bound


    def invoke(self, arguments):
        """ Bind the *arguments* and call the wrapped function, returning its
            result. Coroutine functions are run to completion here; the
            caller is a transport thread with no event loop of its own.
        """

        bound = self.bind(arguments)
        result = self.function(*bound)

        if inspect.iscoroutine(result):
            result = asyncio.run(result)

        return result


# end of class Procedure



class Registry:
    """ Thread-safe mapping of target names to :class:`Procedure`
        instances. Registration under an existing name silently replaces
        the earlier procedure.
    """

    def __init__(self):
        self._procedures = dict()
        self._lock = threading.Lock()


    def __contains__(self, target):
        with self._lock:
            return target in self._procedures


    def __len__(self):
        with self._lock:
            return len(self._procedures)


    def get(self, target):
        """ Return the :class:`Procedure` registered as *target*, or None.
        """

        with self._lock:
            return self._procedures.get(target)


    def register(self, target, function, types=None):
        """ Register *function* as the procedure for *target*. This will
            overwrite an existing procedure with the same name without
            warning. A prebuilt :class:`Procedure` may be passed as
            *function*, in which case *types* must be left as None. Returns
            the new :class:`Procedure`.
        """

        if target is None or not isinstance(target, str) or target.strip() == '':
            raise ValueError('RPC target cannot be null or blank')

        if function is None:
            raise ValueError('RPC procedure cannot be null')

        if isinstance(function, Procedure):
            if types is not None:
                raise ValueError('types cannot be applied to an existing Procedure')
            procedure = function
        else:
            procedure = Procedure(function, types)

        with self._lock:
            self._procedures[target] = procedure

        logger.debug("Registered RPC procedure {}", target)
        return procedure


    def targets(self):
        """ Return a sorted list of the registered target names.
        """

        with self._lock:
            targets = list(self._procedures.keys())

        targets.sort()
        return targets


    def unregister(self, target):
        """ Remove the procedure registered as *target*. Returns True if
            there was one to remove, False otherwise.
        """

        with self._lock:
            try:
                del self._procedures[target]
            except KeyError:
                return False

        logger.debug("Unregistered RPC procedure {}", target)
        return True


# end of class Registry


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
