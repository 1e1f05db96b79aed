"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the server can report is a ServerError subclass:

    ServerError
    ├── ParseFailure              Request bytes could not be understood
    │   ├── MalformedRequestLine  Not "METHOD TARGET VERSION"
    │   │   └── EmptyRequest      Peer closed before sending anything
    │   ├── LineTooLong           A line overflowed its bound
    │   ├── MalformedHeader       Header line without ": "
    │   └── TruncatedBody         Stream ended inside the body
    ├── UnknownStatus             No reason phrase for a status code
    ├── TransportError            Socket read/write/accept failed
    └── BindError                 Listening socket could not be bound

=============================================================================
PROPAGATION
=============================================================================

BindError is raised before the accept loop starts and aborts startup.
Everything else is caught by the per-connection boundary in
HTTPServer.handle_connection(), logged, and the connection is closed.
No error is ever retried.

=============================================================================
"""

from typing import Optional


class ServerError(Exception):
    """Base class for all tinyhttpd errors."""


class ParseFailure(ServerError):
    """
    Raised by the request parser when the bytes on a connection do not
    form a request this server understands.

    No response is written for a parse failure; the connection is
    simply closed.
    """


class MalformedRequestLine(ParseFailure):
    """The request line did not split into method, target and version."""

    def __init__(self, line: str):
        self.line = line
        super().__init__(f"Malformed request line: {line!r}")


class EmptyRequest(MalformedRequestLine):
    """The peer closed the connection before sending a request line."""

    def __init__(self):
        self.line = ""
        ParseFailure.__init__(
            self, "Connection closed before a request line was received"
        )


class LineTooLong(ParseFailure):
    """A request or header line exceeded its byte bound."""

    def __init__(self, what: str, limit: int):
        self.what = what
        self.limit = limit
        super().__init__(f"{what} exceeds {limit} bytes")


class MalformedHeader(ParseFailure):
    """A header line had no ': ' separator or an empty name."""

    def __init__(self, line: str):
        self.line = line
        super().__init__(f"Malformed header line: {line!r}")


class TruncatedBody(ParseFailure):
    """The stream ended before Content-Length bytes of body arrived."""

    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Incomplete body: expected {expected} bytes, got {received}"
        )


class UnknownStatus(ServerError):
    """A response used a status code with no registered reason phrase."""

    def __init__(self, status: int):
        self.status = status
        super().__init__(f"No reason phrase registered for status {status}")


class TransportError(ServerError):
    """
    A socket operation failed.

    The original OSError is chained as __cause__.
    """


class BindError(ServerError):
    """The listening socket could not be bound. Fatal at startup."""

    def __init__(self, host: str, port: int, reason: Optional[str] = None):
        self.host = host
        self.port = port
        message = f"Failed to bind to {host}:{port}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
