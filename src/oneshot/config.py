"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the single-shot server.

The server takes exactly ONE input from the outside world: the port number.
Everything else (backlog, buffer size, the reply text) is fixed, but lives
here as a typed dataclass so tests and embedders can see and tweak it.

=============================================================================
THE LISTEN ENDPOINT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      (host, port) = ENDPOINT                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   host = "0.0.0.0"   The WILDCARD address (INADDR_ANY)              │
    │                      └── Accept on every local interface            │
    │                                                                      │
    │   port = argv[1]     Supplied on the command line                   │
    │                      └── 0 asks the OS for any free port            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The endpoint is created once at startup and never changes afterwards.

=============================================================================
"""

from dataclasses import dataclass
from typing import Tuple

from .errors import FatalSystemCallFailure, Phase


DEFAULT_REPLY = b"I got your message"


@dataclass
class ServerConfig:
    """
    Configuration for the single-shot server.

    Usage:
        config = ServerConfig.from_argument(sys.argv[1])
        config.validate()
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    port: int
    """
    The port number to listen on.
    Not validated here: a bad port is left for bind() to reject.
    """

    host: str = "0.0.0.0"
    """
    The IP address to bind to. The wildcard address accepts connections
    on every interface, the way INADDR_ANY does.
    """

    backlog: int = 5
    """
    Maximum number of pending connections the OS queues for us.
    Only one of them is ever accepted.
    """

    reuse_address: bool = True
    """
    Set SO_REUSEADDR so the port can be reused while in TIME_WAIT.
    A port with a live listener still fails to bind.
    """

    # ─────────────────────────────────────────────────────────────────────
    # MESSAGE SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_message_size: int = 255
    """
    Maximum number of bytes read from the client in the single read.
    Anything beyond this stays unread in the kernel buffer.
    """

    reply: bytes = DEFAULT_REPLY
    """
    The fixed acknowledgement written back (18 bytes, no trailing NUL).
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "WARNING"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR).
    WARNING keeps stderr quiet apart from real failures.
    """

    @property
    def endpoint(self) -> Tuple[str, int]:
        """The (host, port) pair handed to bind()."""
        return (self.host, self.port)

    @classmethod
    def from_argument(cls, port: str, **overrides) -> "ServerConfig":
        """
        Create configuration from the command-line port argument.

        The text is converted with int() and nothing else: no range check.
        Text that is not a number cannot reach bind() at all, so it is
        reported as a binding failure.

        Raises:
            FatalSystemCallFailure: If the port is not an integer.
        """
        try:
            port_number = int(port)
        except ValueError as e:
            raise FatalSystemCallFailure(Phase.BIND, e) from e
        return cls(port=port_number, **overrides)

    def validate(self) -> None:
        """
        Validate the fixed tunables.

        The port is deliberately left alone (see from_argument).
        """
        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.max_message_size < 1:
            raise ValueError("max_message_size must be >= 1")

        if not self.reply:
            raise ValueError("reply must not be empty")
