"""
pytest configuration and fixtures.
"""

import io
import os
import socket
import threading
import time
from typing import Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from oneshot import OneShotServer, ServerConfig, Exchange


SRC_DIR = Path(__file__).parent.parent / "src"


@pytest.fixture
def config() -> ServerConfig:
    """Default test configuration (loopback, OS-picked port)."""
    return ServerConfig(host="127.0.0.1", port=0)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


@pytest.fixture
def output() -> io.BytesIO:
    """Captures what the server prints."""
    return io.BytesIO()


class BackgroundServer:
    """Runs OneShotServer.run() in a background thread."""

    def __init__(self, server: OneShotServer):
        self.server = server
        self.result: Optional[Exchange] = None
        self.error: Optional[BaseException] = None
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def _target(self):
        try:
            self.result = self.server.run()
        except BaseException as e:
            self.error = e

    def start(self):
        """Start the server and wait until it is listening."""
        self._thread = threading.Thread(target=self._target, daemon=True)
        self._thread.start()

        if not self.server.ready.wait(timeout=5.0):
            raise RuntimeError(f"Server failed to start: {self.error}")

    def connect(self) -> socket.socket:
        return socket.create_connection(("127.0.0.1", self.port), timeout=5.0)

    def join(self, timeout: float = 5.0) -> bool:
        """Wait for the server to finish. Returns True if it did."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def stop(self):
        """Unblock a server still waiting in accept() and wait for it."""
        if self._thread and self._thread.is_alive():
            try:
                with self.connect():
                    pass
            except OSError:
                pass
            self._thread.join(timeout=5.0)


@pytest.fixture
def background_server(config: ServerConfig, output: io.BytesIO) -> Generator[BackgroundServer, None, None]:
    """A started server that serves one client."""
    runner = BackgroundServer(OneShotServer(config, output=output))
    runner.start()

    yield runner

    runner.stop()


@pytest.fixture
def cli_env() -> dict:
    """Environment for running `python -m oneshot` in a subprocess."""
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(SRC_DIR), env.get("PYTHONPATH")) if p
    )
    return env


@pytest.fixture
def connect_when_ready():
    """Connect to a server started in another process, retrying until it listens."""
    def connect(port: int, timeout: float = 10.0) -> socket.socket:
        deadline = time.time() + timeout
        while True:
            try:
                return socket.create_connection(("127.0.0.1", port), timeout=5.0)
            except ConnectionRefusedError:
                if time.time() > deadline:
                    raise
                time.sleep(0.1)
    return connect
