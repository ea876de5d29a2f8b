"""Room domain services: membership registry and negotiation rules.

This package holds the transport-free game logic used by the socket
handlers and the HTTP routes, keeping Socket.IO concerns out of the core
state machine.
"""

from .registry import SessionRegistry
from . import errors, negotiation

__all__ = ['SessionRegistry', 'errors', 'negotiation']
