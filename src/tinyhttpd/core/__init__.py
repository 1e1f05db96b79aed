"""
=============================================================================
CORE NETWORKING
=============================================================================

    socket_server.py   Listening socket + accept loop (SocketServer)
    connection.py      One accepted client socket (Connection)

Layer 4 only: these modules move bytes and never look inside them. The
HTTP layer sits on top (see tinyhttpd.http).

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # Listening socket and accept loop
    "Connection",       # Wrapper for one client socket
    "ConnectionState",  # Connection lifecycle states
]
