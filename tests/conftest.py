"""
pytest configuration and fixtures.
"""

import io
import socket
import threading
from typing import Callable, Generator, Optional, Tuple

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tinyhttpd import HTTPServer, ServerConfig


class FakeConnection:
    """
    In-memory stand-in for tinyhttpd.core.Connection.

    Reads come from `data`; everything sent is collected in `sent`.
    """

    def __init__(
        self,
        data: bytes = b"",
        remote_address: str = "127.0.0.1",
        local_port: int = 3000,
    ):
        self._reader = io.BytesIO(data)
        self.remote_address = remote_address
        self.remote_host = remote_address
        self.local_port = local_port
        self.id = "test0001"
        self.writes: list = []
        self.closed = False

    def readline(self, limit: int) -> bytes:
        return self._reader.readline(limit)

    def read(self, size: int) -> bytes:
        return self._reader.read(size)

    def send(self, data: bytes) -> None:
        self.writes.append(bytes(data))

    @property
    def sent(self) -> bytes:
        return b"".join(self.writes)

    @property
    def unread(self) -> bytes:
        return self._reader.read()

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


@pytest.fixture
def make_conn() -> Callable[..., FakeConnection]:
    """Factory for in-memory connections preloaded with request bytes."""
    return FakeConnection


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /api/users?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:3000\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with JSON body."""
    body = b'{"name": "John", "email": "john@example.com"}'
    return (
        b"POST /api/users HTTP/1.1\r\n"
        b"Host: localhost:3000\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
    ) + body


def send_raw(
    address: Tuple[str, int], data: bytes, timeout: float = 5.0, half_close: bool = False
) -> bytes:
    """Send raw bytes to the server and read until it closes the connection."""
    with socket.create_connection(address, timeout=timeout) as sock:
        sock.sendall(data)
        if half_close:
            sock.shutdown(socket.SHUT_WR)
        chunks = []
        while True:
            try:
                chunk = sock.recv(65536)
            except ConnectionResetError:
                break
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


class LiveServer:
    """Runs an HTTPServer in a background thread on an ephemeral port."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        return self.server.address

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_listening(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        self.server.wait_for_shutdown(timeout=5.0)
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, data: bytes, half_close: bool = False) -> bytes:
        return send_raw(self.address, data, half_close=half_close)


@pytest.fixture
def config() -> ServerConfig:
    """Test configuration: localhost, OS-assigned port."""
    return ServerConfig(host="127.0.0.1", port=0, log_level="WARNING")


@pytest.fixture
def live_server(config: ServerConfig) -> Generator[Callable[..., LiveServer], None, None]:
    """Factory fixture: live_server(app) starts a server for `app`."""
    started = []

    def start(app) -> LiveServer:
        srv = LiveServer(HTTPServer(app, config))
        srv.start()
        started.append(srv)
        return srv

    yield start

    for srv in started:
        srv.stop()
