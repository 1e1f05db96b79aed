"""
=============================================================================
HTTP RESPONSE SERIALIZER
=============================================================================

Turns an application's (status, headers, body) result into HTTP/1.1
bytes on the wire.

=============================================================================
WIRE FORMAT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   HTTP/1.1 200 OK\r\n                  1. status line               │
    │   Content-Length: 5\r\n                2. computed, never trusted   │
    │   Content-Type: text/html\r\n          3. caller headers, in order  │
    │   Connection: close\r\n                4. always                    │
    │   \r\n                                 5. blank line                │
    │   hello                                6. body chunks, in order     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY THE SERIALIZER OWNS Content-Length AND Connection
=============================================================================

Content-Length is the only thing that tells the client where the body
ends (no chunked encoding here). It is computed from the chunks, so it
is always the exact byte count. A Content-Length supplied by the
application is dropped, as is a Connection header: this server closes
every connection after one response, whatever the application says.

Because the length is known up front, the head is written in one send
and each chunk in its own send; nothing has to be joined in memory.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Iterator, Union

from .limits import CRLF
from .status_codes import reason_phrase


logger = logging.getLogger(__name__)

HTTP_VERSION = "HTTP/1.1"

# Header text is ISO-8859-1 on the wire (same as the request side)
WIRE_ENCODING = "iso-8859-1"

# Fields the serializer writes itself
_RESERVED_HEADERS = frozenset({"content-length", "connection"})

Chunk = Union[bytes, bytearray, memoryview, str]


def _to_bytes(chunk: Chunk) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    if isinstance(chunk, (bytes, bytearray, memoryview)):
        return bytes(chunk)
    raise TypeError(f"Body chunks must be bytes or str, not {type(chunk).__name__}")


@dataclass
class Response:
    """
    A response as produced by the application.

    The application may return a Response directly or a plain
    (status, headers, body) tuple; see Response.from_result().

    Attributes:
        status: Integer status code.
        headers: Response headers in the order they should be written.
        body: Ordered list of byte chunks.
    """

    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    body: List[bytes] = field(default_factory=list)

    @classmethod
    def from_result(cls, result) -> "Response":
        """
        Normalize an application result into a Response.

        Accepts a Response or a 3-tuple (status, headers, body) where
        body is an iterable of bytes/str chunks. str chunks are encoded
        as UTF-8. The body iterable is consumed here, once. A Response is
        copied with its chunks normalized the same way.

        Raises:
            TypeError: If the result has any other shape.
        """
        if isinstance(result, Response):
            status, headers, body = result.status, result.headers, result.body
        elif isinstance(result, (tuple, list)) and len(result) == 3:
            status, headers, body = result
        else:
            raise TypeError(
                "Application must return (status, headers, body), "
                f"got {type(result).__name__}"
            )

        if isinstance(body, (bytes, str)):
            raise TypeError("Response body must be an iterable of chunks, not a single string")

        return cls(
            status=int(status),
            headers=dict(headers or {}),
            body=[_to_bytes(chunk) for chunk in body],
        )

    @property
    def content_length(self) -> int:
        """Exact number of body bytes."""
        return sum(len(chunk) for chunk in self.body)


def _header_line(name: str, value) -> bytes:
    text = f"{name}: {value}"
    if "\r" in text or "\n" in text:
        raise ValueError(f"Invalid character in response header {name!r}")
    return text.encode(WIRE_ENCODING) + CRLF


def format_head(response: Response) -> bytes:
    """
    Build everything up to and including the blank line.

    Raises:
        UnknownStatus: If the status has no reason phrase.
        ValueError: If a header contains CR or LF.
    """
    status = int(response.status)
    lines = [
        f"{HTTP_VERSION} {status} {reason_phrase(status)}".encode(WIRE_ENCODING) + CRLF,
        _header_line("Content-Length", response.content_length),
    ]

    for name, value in response.headers.items():
        if name.lower() in _RESERVED_HEADERS:
            logger.debug(f"Dropping application-supplied {name} header")
            continue
        lines.append(_header_line(name, value))

    lines.append(_header_line("Connection", "close"))
    lines.append(CRLF)
    return b"".join(lines)


def iter_response(response: Response) -> Iterator[bytes]:
    """Yield the head, then every non-empty body chunk, in wire order."""
    yield format_head(response)
    for chunk in response.body:
        if chunk:
            yield chunk


def serialize_response(response: Response) -> bytes:
    """Serialize a whole response into one bytes object."""
    return b"".join(iter_response(response))


def write_response(conn, response: Response) -> None:
    """
    Write `response` to `conn`.

    The head is built before anything is sent, so UnknownStatus (or a bad
    header) leaves the connection untouched.

    Raises:
        UnknownStatus: Unregistered status code.
        ValueError: Header containing CR or LF.
        TransportError: The peer went away mid-write.
    """
    for piece in iter_response(response):
        conn.send(piece)


def write_result(conn, result: Union[Response, tuple]) -> Response:
    """Normalize an application result, write it, and return the Response."""
    response = Response.from_result(result)
    write_response(conn, response)
    return response
