"""
Core networking components.

- OneShotServer: socket lifecycle for the single connection
- Connection: wrapper around the accepted client socket
"""

from .socket_server import OneShotServer, ServerState, Exchange
from .connection import Connection, ConnectionState

__all__ = [
    "OneShotServer",
    "ServerState",
    "Exchange",
    "Connection",
    "ConnectionState",
]
