"""
Blip Protocol Layer
===================

This package defines the three frame shapes exchanged by Blip peers, and the
single point where an inbound frame is classified as one of them. The
protocol layer MUST NOT depend on any transport implementation.

---------------------------------------------------------------------

Frames
------

Request     {"Target": name, "Call": id, "Arguments": [...]}
    Sent by a caller; asks the serving side to invoke the procedure
    registered under *name*. The *id* is chosen by the caller.

Response    {"Target": id, "Success": bool, "Result": value}
    Sent back to the originating connection only. On failure the result
    is {"Message": text, "Stacktrace": text}.

Publish     {"Topic": name, "Arguments": [...]}
    Broadcast by the serving side to every connected peer.

---------------------------------------------------------------------

Layers
------

Message Model (message.py)
    Request / Response / Publish classes, parse()

Field Vocabulary (fields.py)
    Canonical names for the wire keys

Below the protocol layer, :mod:`blip.transport` moves text frames; above it,
:mod:`blip.server` and :mod:`blip.client` give the two sides of the
conversation their public faces.

---------------------------------------------------------------------
"""

from . import fields
from . import message

from .message import Request, Response, Publish, ValidationFailed, parse


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
