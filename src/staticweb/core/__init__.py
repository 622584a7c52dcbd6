"""
=============================================================================
CORE NETWORKING
=============================================================================

Socket-level building blocks:

    SocketServer   bind, listen, accept loop, signal-driven shutdown
    Connection     one accepted socket as rfile/wfile streams + state

=============================================================================
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer

__all__ = [
    "Connection",
    "ConnectionState",
    "SocketServer",
]
