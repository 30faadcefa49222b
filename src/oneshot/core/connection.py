"""
=============================================================================
THE ACCEPTED CONNECTION
=============================================================================

accept() hands us a NEW socket that talks to exactly one client. This
module wraps that socket for its whole (short) life: one read, one write,
one close.

=============================================================================
ONE READ, NO FRAMING
=============================================================================

TCP is a byte stream. There is no "message" on the wire, so we define one:

    whatever the first recv() returns, up to 255 bytes

    Client sends "hello"          recv(255) → b"hello"
    Client sends 1000 bytes       recv(255) → first 255 bytes (rest ignored)
    Client closes without data    recv(255) → b""  (an EMPTY message)

The empty case is NOT an error here: the peer closed cleanly, we print an
empty message and still try to reply.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    CONNECTED ──read──► READ ──write──► WRITTEN ──close──► CLOSED
        │                 │                                   ▲
        └─────────────────┴───────────── (failure) ───────────┘

=============================================================================
"""

import socket
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Tuple

from ..errors import FatalSystemCallFailure, Phase


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states."""
    CONNECTED = "connected"  # Just accepted
    READ = "read"            # Message received
    WRITTEN = "written"      # Reply sent
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    Represents the single client connection.

    Attributes:
        socket: The accepted client socket.
        address: Client's (ip, port) tuple.
        max_message_size: Upper bound for the one read.
        id: Short identifier used in log lines.
        state: Current connection state.
    """

    socket: socket.socket
    address: Tuple[str, int]
    max_message_size: int = 255

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.CONNECTED

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    def read_message(self) -> bytes:
        """
        Read the client's message with a single recv().

        Blocks until the client sends something or closes.

        Returns:
            Up to max_message_size bytes. b"" if the peer closed first.

        Raises:
            FatalSystemCallFailure: If recv() fails.
        """
        try:
            data = self.socket.recv(self.max_message_size)
        except OSError as e:
            logger.error(f"[{self.id}] Read failed: {e}")
            raise FatalSystemCallFailure(Phase.READ, e) from e

        if not data:
            logger.debug(f"[{self.id}] Peer closed without sending data")

        self.state = ConnectionState.READ
        logger.debug(f"[{self.id}] Read {len(data)} bytes")
        return data

    def send_reply(self, data: bytes) -> None:
        """
        Send the reply to the client.

        sendall() keeps writing until every byte is out, unlike send()
        which may stop after a partial write.

        Raises:
            FatalSystemCallFailure: If the write fails.
        """
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.error(f"[{self.id}] Write failed: {e}")
            raise FatalSystemCallFailure(Phase.WRITE, e) from e

        self.state = ConnectionState.WRITTEN
        logger.debug(f"[{self.id}] Wrote {len(data)} bytes")

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.close()
        except OSError:
            pass  # Already gone

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
