"""
=============================================================================
SINGLE-SHOT TCP SOCKET SERVER
=============================================================================

This module implements the whole server: one socket, one client, one
message, one reply, done.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a TCP socket                  ── ERROR opening socket
    2. bind()      Claim (0.0.0.0, port)                ── ERROR on binding
    3. listen(5)   Let the OS queue up to 5 clients     ── ERROR on listening
    4. accept()    BLOCK until one client connects      ── ERROR on accept
    5. recv(255)   BLOCK until that client sends        ── ERROR reading from socket
    6. write       b"Here is the message: ..." to stdout, bytes as received
    7. sendall()   "I got your message"                 ── ERROR writing to socket
    8. close()     Both sockets, on EVERY exit path

There is no accept LOOP. After step 4 the listening socket is never asked
for another connection; anyone else waiting in the backlog is reset when
it closes.

=============================================================================
SERVER STATE MACHINE
=============================================================================

    NEW ──► BOUND ──► LISTENING ──► CONNECTED ──► EXCHANGED ──► TERMINATED
     │        │           │             │                           ▲
     └────────┴───────────┴─────────────┴──────── (failure) ────────┘

Every transition is one-way. A server object runs exactly once.

=============================================================================
"""

import socket
import sys
import logging
import threading
from enum import Enum
from dataclasses import dataclass
from typing import BinaryIO, Optional, Tuple

from ..config import ServerConfig
from ..errors import FatalSystemCallFailure, Phase
from .connection import Connection


logger = logging.getLogger(__name__)


class ServerState(Enum):
    """Server lifecycle states."""
    NEW = "new"
    BOUND = "bound"
    LISTENING = "listening"
    CONNECTED = "connected"
    EXCHANGED = "exchanged"
    TERMINATED = "terminated"


@dataclass
class Exchange:
    """What happened on the one connection we served."""
    client_address: Tuple[str, int]
    message: bytes
    reply: bytes

    @property
    def text(self) -> str:
        """The message as text, undecodable bytes replaced."""
        return self.message.decode("utf-8", errors="replace")


class OneShotServer:
    """
    TCP server that services exactly one connection and stops.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      OneShotServer.run()                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    _create_socket()   socket() + SO_REUSEADDR                        │
    │    _bind()            bind((host, port))                             │
    │    _listen()          listen(backlog), ready.set()                   │
    │    _accept()          accept() → Connection                          │
    │    _exchange(conn)    recv → write → sendall                         │
    │    _cleanup()         close listening socket (always)                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        server = OneShotServer(ServerConfig(port=5000))
        exchange = server.run()  # Blocks until one client is served
    """

    def __init__(self, config: ServerConfig, output: Optional[BinaryIO] = None):
        """
        Args:
            config: Endpoint and tunables.
            output: Binary stream the received message is written to
                    (sys.stdout.buffer if None).
        """
        self.config = config
        self._output = output

        self._socket: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None

        self.state = ServerState.NEW
        self.connections_accepted = 0

        # Set once the socket is listening, so other threads know
        # when it is safe to connect
        self.ready = threading.Event()

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (ip, port); shows the real port when config.port is 0."""
        if self._bound_address is not None:
            return self._bound_address
        return self.config.endpoint

    def run(self) -> Exchange:
        """
        Serve one client and return what was exchanged.

        Blocks in accept() and then in recv(), with no timeout.

        Raises:
            FatalSystemCallFailure: On the first failing system call.
            RuntimeError: If this server has already run.
        """
        if self.state != ServerState.NEW:
            raise RuntimeError("OneShotServer can only run once")

        self.config.validate()

        try:
            self._socket = self._create_socket()
            self._bind()
            self._listen()

            with self._accept() as conn:
                return self._exchange(conn)
        finally:
            self._cleanup()

    def _create_socket(self) -> socket.socket:
        # AF_INET = IPv4, SOCK_STREAM = TCP
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            logger.error(f"Failed to create socket: {e}")
            raise FatalSystemCallFailure(Phase.SOCKET, e) from e

        if self.config.reuse_address:
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            except OSError as e:
                logger.error(f"Failed to set SO_REUSEADDR: {e}")
                sock.close()
                raise FatalSystemCallFailure(Phase.SOCKET, e) from e

        return sock

    def _bind(self) -> None:
        host, port = self.config.endpoint
        try:
            self._socket.bind((host, port))
        except (OSError, OverflowError) as e:
            # OverflowError: port outside 0-65535, rejected before the syscall
            logger.error(f"Failed to bind to {host}:{port}: {e}")
            raise FatalSystemCallFailure(Phase.BIND, e) from e

        self._bound_address = self._socket.getsockname()[:2]
        self.state = ServerState.BOUND

    def _listen(self) -> None:
        try:
            self._socket.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to listen: {e}")
            raise FatalSystemCallFailure(Phase.LISTEN, e) from e

        self.state = ServerState.LISTENING
        self.ready.set()
        host, port = self.address
        logger.info(f"Listening on {host}:{port} (backlog={self.config.backlog})")

    def _accept(self) -> Connection:
        try:
            client_socket, client_address = self._socket.accept()
        except OSError as e:
            logger.error(f"Accept failed: {e}")
            raise FatalSystemCallFailure(Phase.ACCEPT, e) from e

        self.connections_accepted += 1
        self.state = ServerState.CONNECTED

        conn = Connection(
            socket=client_socket,
            address=client_address[:2],
            max_message_size=self.config.max_message_size,
        )
        logger.info(f"[{conn.id}] Accepted connection from {conn.client_ip}:{conn.client_port}")
        return conn

    def _exchange(self, conn: Connection) -> Exchange:
        message = conn.read_message()
        exchange = Exchange(
            client_address=conn.address,
            message=message,
            reply=self.config.reply,
        )

        # Raw bytes, never decoded: stdout's encoding cannot fail here
        if self._output is not None:
            output = self._output
        else:
            sys.stdout.flush()
            output = sys.stdout.buffer
        output.write(b"Here is the message: " + message + b"\n")
        output.flush()

        conn.send_reply(self.config.reply)
        self.state = ServerState.EXCHANGED
        return exchange

    def _cleanup(self) -> None:
        """Close the listening socket. Runs on success and on failure."""
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None

        self.state = ServerState.TERMINATED
        logger.debug("Server terminated")
