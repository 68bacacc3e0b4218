""" A class representation of the three Blip frames: :class:`Request`,
    :class:`Response`, and :class:`Publish`. Inbound text is classified
    exactly once, by :func:`parse`; everything past that point works with
    one of these classes and never inspects raw field presence again.
"""

from __future__ import annotations

import traceback
from typing import Any, List, Optional, Sequence, Union

from .. import json
from . import fields


class ValidationFailed(ValueError):
    """ Raised by :func:`parse` when an inbound frame cannot be interpreted
        as any of the Blip frame shapes, or when a request is missing the
        fields needed to route and correlate it.
    """


def _blank(value) -> bool:
    if value is None:
        return True

    if isinstance(value, str):
        return value.strip() == ''

    return False


def _arguments(value) -> List[Any]:
    """ Normalize an Arguments field: absent or null becomes the empty list,
        any other non-list value is a validation failure.
    """

    if value is None:
        return list()

    if isinstance(value, (list, tuple)):
        return list(value)

    raise ValidationFailed('Arguments must be a list, not ' + type(value).__name__)


class Message:
    """ Common base for the three frame classes. Subclasses implement
        :func:`to_dict`; :func:`encode` turns that into the text that goes
        on the wire. The encoding is cached, a frame that is sent to many
        peers is only serialized once.
    """

    def __init__(self):
        self._encoded = None


    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()


    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self.to_dict())


    def to_dict(self) -> dict:
        raise NotImplementedError


    def encode(self) -> str:
        encoded = self._encoded

        if encoded is None:
            encoded = json.dumps(self.to_dict())
            self._encoded = encoded

        return encoded


# end of class Message



class Request(Message):
    """ A request to invoke the procedure registered as *target*. The *call*
        is the correlation id chosen by the caller; the response will carry
        it back as its own target.
    """

    def __init__(self, target: str, call: str, arguments: Optional[Sequence] = None):
        Message.__init__(self)

        self.target = target
        self.call = call
        self.arguments = _arguments(arguments)


    def to_dict(self) -> dict:
        request = dict()
        request[fields.TARGET] = self.target
        request[fields.CALL] = self.call
        request[fields.ARGUMENTS] = self.arguments
        return request


    def validate(self) -> None:
        if _blank(self.target):
            raise ValidationFailed('Missing or malformed RPC procedure target argument')

        if _blank(self.call):
            raise ValidationFailed('Missing or malformed RPC response handler id')


# end of class Request



class Response(Message):
    """ The single terminal answer to a :class:`Request`. The *target* is
        the request's call id, not the procedure name. *success* is
        normally a bool; anything else is preserved as-is so that the
        calling side can recognize and report a malformed response.
    """

    def __init__(self, target: str, success: Any, result: Any = None):
        Message.__init__(self)

        self.target = target
        self.success = success
        self.result = result


    def to_dict(self) -> dict:
        response = dict()
        response[fields.TARGET] = self.target
        response[fields.SUCCESS] = self.success
        response[fields.RESULT] = self.result
        return response


    @classmethod
    def succeeded(cls, call: str, result: Any = None) -> 'Response':
        return cls(call, True, result)


    @classmethod
    def failure(cls, call: str, exception: BaseException) -> 'Response':
        """ Build a failed response describing *exception*. When exceptions
            are chained via ``raise ... from ...`` the innermost cause is
            the one reported, it is the one closest to the actual problem.
        """

        exception = innermost(exception)

        message = str(exception)
        if message == '':
            message = type(exception).__name__

        formatted = traceback.format_exception(type(exception), exception, exception.__traceback__)

        result = dict()
        result[fields.MESSAGE] = message
        result[fields.STACKTRACE] = ''.join(formatted)

        return cls(call, False, result)


# end of class Response



class Publish(Message):
    """ A broadcast of *arguments* on a named *topic*.
    """

    def __init__(self, topic: str, arguments: Optional[Sequence] = None):
        Message.__init__(self)

        self.topic = topic
        self.arguments = _arguments(arguments)


    def to_dict(self) -> dict:
        publish = dict()
        publish[fields.TOPIC] = self.topic
        publish[fields.ARGUMENTS] = self.arguments
        return publish


# end of class Publish



Frame = Union[Request, Response, Publish]


def innermost(exception: BaseException) -> BaseException:
    """ Follow the explicit ``__cause__`` chain of *exception* to its end.
    """

    seen = set()

    while exception.__cause__ is not None and id(exception) not in seen:
        seen.add(id(exception))
        exception = exception.__cause__

    return exception



def parse(frame: Union[str, bytes]) -> Frame:
    """ Decode an inbound text *frame* and return the matching
        :class:`Publish`, :class:`Response`, or :class:`Request` instance.
        The classification is by field presence: a Topic makes it a publish,
        a Success field makes it a response, anything else is treated as a
        request and must carry a non-blank Target and Call.
        :class:`ValidationFailed` is raised if none of that holds.
    """

    try:
        decoded = json.loads(frame)
    except (json.DecodeError, ValueError, TypeError) as e:
        raise ValidationFailed('frame is not valid JSON: ' + str(e)) from e

    if isinstance(decoded, dict):
        pass
    else:
        raise ValidationFailed('frame is not a JSON object')

    if fields.TOPIC in decoded:
        topic = decoded[fields.TOPIC]
        if not isinstance(topic, str) or _blank(topic):
            raise ValidationFailed('Missing or malformed publish topic')
        return Publish(topic, decoded.get(fields.ARGUMENTS))

    if fields.SUCCESS in decoded:
        target = decoded.get(fields.TARGET)
        if not isinstance(target, str) or _blank(target):
            raise ValidationFailed('Missing or malformed response target')
        return Response(target, decoded[fields.SUCCESS], decoded.get(fields.RESULT))

    target = decoded.get(fields.TARGET)
    call = decoded.get(fields.CALL)

    for value in (target, call):
        if value is not None and not isinstance(value, str):
            raise ValidationFailed('Target and Call must be strings')

    request = Request(target, call, decoded.get(fields.ARGUMENTS))
    request.validate()
    return request


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
