""" Python implementation of Blip, a super lightweight RPC and
    publish/subscribe protocol. This includes the serving side, which
    registers procedures and publishes topic updates, and the calling side,
    which invokes procedures and subscribes to topics.
"""

# Utility components.

from . import config
from . import json

# Submodules used by multiple other components.

from . import protocol
from . import transport

# Primary public-facing interfaces.

from .registry import Procedure, Registry, UnsupportedSignature, BindingError
from .dispatch import Router
from .bus import Bus
from .server import Server
from .calls import CallTable
from .topics import TopicRegistry
from .client import Client

__version__ = '0.1.0'

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
