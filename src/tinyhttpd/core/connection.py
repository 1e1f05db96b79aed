"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with the small API the request parser
and response serializer need:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. LINE-ORIENTED READING                                            │
    │     └── readline(limit) for the request line and headers            │
    │     └── read(n) for a Content-Length framed body                    │
    │                                                                      │
    │  2. PEER METADATA                                                    │
    │     └── remote_address / remote_host of the client                  │
    │     └── local_port the client connected to                          │
    │                                                                      │
    │  3. WRITING                                                          │
    │     └── send(data) pushes every byte or raises TransportError       │
    │                                                                      │
    │  4. GUARANTEED, GRACEFUL CLOSE                                       │
    │     └── Half-close, drain, release the descriptor                   │
    │     └── Idempotent, usable as a context manager                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

recv() may return half a header line or three lines at once. Instead of
buffering by hand we let socket.makefile("rb") wrap the socket in an
io.BufferedReader, whose readline(limit) stops at b"\n" OR after
`limit` bytes, whichever comes first. That is exactly the bounded line
read the parser needs.

=============================================================================
LIFECYCLE
=============================================================================

    OPEN ──────────────► CLOSING ──────────────► CLOSED
     │   close() / __exit__    │   shutdown, drain,
     │                         │   close reader+socket
     └── readline/read/send    └── (never raises)

There is no keep-alive state: one request, one response, then close.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, BinaryIO

from ..errors import TransportError


logger = logging.getLogger(__name__)


# How long close() keeps draining unread input before giving up
LINGER_SECONDS = 0.5

# Read size used while draining and while reading a body
READ_CHUNK_SIZE = 64 * 1024


class ConnectionState(Enum):
    """Connection lifecycle states (used for logging and idempotent close)."""
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    Represents one accepted client connection.

    Attributes:
        socket: The accepted client socket.
        address: Peer address tuple as returned by accept().
        timeout: Socket timeout in seconds. None = fully blocking.
        id: Short identifier used to correlate log lines.
        state: Current lifecycle state.
        created_at: Timestamp when the connection was accepted.
    """

    socket: socket.socket
    address: tuple

    timeout: Optional[float] = None

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.OPEN
    created_at: float = field(default_factory=time.time)

    _reader: Optional[BinaryIO] = field(default=None, repr=False)
    _local_port: int = field(default=0, repr=False)

    def __post_init__(self):
        # accept() hands back a blocking socket; apply the configured
        # timeout (None keeps it blocking)
        self.socket.settimeout(self.timeout)

        try:
            self._local_port = self.socket.getsockname()[1]
        except (OSError, IndexError, TypeError):
            self._local_port = 0

        self._reader = self.socket.makefile("rb")

    # =========================================================================
    # PEER METADATA
    # =========================================================================

    @property
    def remote_address(self) -> str:
        """Numeric address of the peer (e.g. "127.0.0.1")."""
        return str(self.address[0]) if self.address else ""

    @property
    def remote_host(self) -> str:
        """
        Host name of the peer.

        No reverse DNS lookup is performed, so this is the numeric
        address, the same way most servers report it by default.
        """
        return self.remote_address

    @property
    def local_port(self) -> int:
        """Port of the listening socket the client connected to."""
        return self._local_port

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def readline(self, limit: int) -> bytes:
        """
        Read one line, at most `limit` bytes.

        Returns the line including its terminator, a partial line if the
        limit was hit first, or b"" at end of stream.

        Raises:
            TransportError: If the socket read fails.
        """
        try:
            return self._reader.readline(limit)
        except OSError as e:
            raise TransportError(f"[{self.id}] Read failed: {e}") from e

    def read(self, size: int) -> bytes:
        """
        Read up to `size` bytes, stopping early only at end of stream.

        Reads in chunks so a huge declared Content-Length does not
        allocate the whole buffer before any byte arrives.

        Raises:
            TransportError: If the socket read fails.
        """
        chunks = []
        remaining = size
        try:
            while remaining > 0:
                chunk = self._reader.read(min(remaining, READ_CHUNK_SIZE))
                if not chunk:
                    break  # Peer closed mid-body
                chunks.append(chunk)
                remaining -= len(chunk)
        except OSError as e:
            raise TransportError(f"[{self.id}] Read failed: {e}") from e
        return b"".join(chunks)

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> None:
        """
        Send all of `data` to the client.

        sendall() blocks until every byte is handed to the kernel.

        Raises:
            TransportError: If the peer went away or the write failed.
        """
        try:
            self.socket.sendall(data)
        except OSError as e:
            raise TransportError(f"[{self.id}] Send failed: {e}") from e

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully. Safe to call more than once.

        1. shutdown(SHUT_WR): sends FIN so the client sees end of response
        2. Drain unread input for up to LINGER_SECONDS. Closing with
           unread bytes in the kernel buffer makes the OS send RST, and
           the client may then lose the response it has not read yet
           (e.g. a GET that carried a body we never consumed).
        3. Close the buffered reader and the socket.
        """
        if self.state != ConnectionState.OPEN:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        deadline = time.monotonic() + LINGER_SECONDS
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                if not self.socket.recv(READ_CHUNK_SIZE):
                    break
        except OSError:
            pass  # Includes socket.timeout

        try:
            self._reader.close()
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    @property
    def closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Always close; never suppress the exception."""
        self.close()
        return False
