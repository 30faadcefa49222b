"""
=============================================================================
ONESHOT - A Single-Shot TCP Message Server
=============================================================================

The smallest useful TCP server: listen on a port, accept ONE client, read
ONE message, print it, answer "I got your message", exit.

    $ python -m oneshot 5000
                                      $ printf hello | nc localhost 5000
                                      I got your message
    Here is the message: hello

=============================================================================
QUICK START
=============================================================================

    from oneshot import OneShotServer, ServerConfig

    server = OneShotServer(ServerConfig(port=5000))
    exchange = server.run()
    print(exchange.client_address, exchange.message)

=============================================================================
"""

from .config import ServerConfig
from .errors import FatalSystemCallFailure, Phase
from .core import OneShotServer, ServerState, Exchange, Connection, ConnectionState

__version__ = "1.0.0"

__all__ = [
    "ServerConfig",
    "FatalSystemCallFailure",
    "Phase",
    "OneShotServer",
    "ServerState",
    "Exchange",
    "Connection",
    "ConnectionState",
    "__version__",
]
