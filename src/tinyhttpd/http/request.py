"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Reads one HTTP/1.1 request off a connection and turns it into an
immutable Request object.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   POST /upload?name=a.txt HTTP/1.1\r\n     ← request line (≤ 2083)  │
    │   ──┬─ ─────────┬──────── ────┬───                                   │
    │   Method      Target        Version                                  │
    │              ┌──┴───┐                                                │
    │            Path    Query                                             │
    │                                                                      │
    │   Host: localhost:3000\r\n                 ← header lines            │
    │   Content-Length: 5\r\n                      (each ≤ 112 KiB)        │
    │   \r\n                                     ← blank line              │
    │   hello                                    ← body (POST/PUT only)    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PARSING RULES
=============================================================================

1. REQUEST LINE
   Read up to the first line terminator, bounded by MAX_REQUEST_LINE.
   The trimmed line must split on spaces into exactly three fields.
   The version is kept but never validated.

2. HEADERS
   Read lines until one is blank after trimming, OR the stream ends
   (a missing blank line is not an error). Each line splits on the
   first ": " into name and value, so "X-Empty: " is an empty value.
   Names are kept exactly as received; a repeated name overwrites the
   earlier value. Only ASCII space and tab count as whitespace.

3. BODY
   Only POST and PUT have one. Its length is the Content-Length header
   (looked up case-insensitively); missing or non-numeric means 0.
   Every other method gets body=None, even if it sent a body; those
   bytes are never read.

=============================================================================
HEADER PROJECTION
=============================================================================

Applications that want a flat, CGI-style namespace use
Request.http_headers / Request.environ:

    "Content-Type"  ──►  "HTTP_CONTENT_TYPE"
    "X-Request-Id"  ──►  "HTTP_X_REQUEST_ID"

The HTTP_ prefix keeps client-controlled names from colliding with
server-provided keys like REMOTE_ADDR.

=============================================================================
"""

import io
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Optional, Dict, Mapping, Any
from urllib.parse import urlsplit

from .limits import MAX_REQUEST_LINE, MAX_HEADER_LINE, BODY_METHODS
from ..errors import (
    MalformedRequestLine,
    EmptyRequest,
    LineTooLong,
    MalformedHeader,
    TruncatedBody,
)


# Bytes on the wire are decoded as ISO-8859-1: every byte maps to exactly
# one code point, so decoding never fails and never changes the length.
WIRE_ENCODING = "iso-8859-1"

# Only ASCII whitespace is trimmed; decoded 0xA0 or 0x85 bytes are data
WHITESPACE = " \t"

_DIGITS = re.compile(r"[0-9]+")


def parse_content_length(value: Optional[str]) -> int:
    """
    Parse a Content-Length value as a non-negative integer.

    Missing, negative or non-numeric values count as 0.
    """
    if value is None:
        return 0
    value = value.strip(WHITESPACE)
    if not _DIGITS.fullmatch(value):
        return 0
    return int(value)


def make_request_uri(target: str, host: str, port: int) -> str:
    """
    Rebuild the absolute request URI from the peer host and local port.

        make_request_uri("/a?b=1", "127.0.0.1", 3000)
        → "http://127.0.0.1:3000/a?b=1"

    Port 80 is the default for http and is left out. IPv6 literals are
    bracketed. An absolute-form target ("http://other/x") keeps only its
    path and query. Informational only, never used for routing.
    """
    if "://" in target:
        parts = urlsplit(target)
        target = parts.path or "/"
        if parts.query:
            target = f"{target}?{parts.query}"

    netloc = f"[{host}]" if ":" in host else host
    if port != 80:
        netloc = f"{netloc}:{port}"

    return f"http://{netloc}{target}"


@dataclass(frozen=True)
class Request:
    """
    One parsed HTTP request.

    Built entirely by RequestParser from a connection's bytes and never
    changed afterwards. The application gets it, reads what it needs and
    drops it.
    """

    method: str
    target: str
    path: str
    query: Optional[str] = None
    version: str = "HTTP/1.1"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    # Connection metadata
    remote_host: str = ""
    remote_address: str = ""
    local_port: int = 0
    request_uri: str = ""

    def __post_init__(self):
        # Frozen dataclass: bypass __setattr__ to swap in a read-only view
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    # =========================================================================
    # HEADER ACCESS
    # =========================================================================

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Case-insensitive header lookup.

        Names are stored as received, so "content-type" and
        "Content-Type" are both found here. When both spellings were sent
        the later one wins.
        """
        wanted = name.lower()
        value = default
        for key, header_value in self.headers.items():
            if key.lower() == wanted:
                value = header_value
        return value

    @property
    def content_length(self) -> int:
        """Content-Length as a non-negative integer (0 if missing/invalid)."""
        return parse_content_length(self.get_header("content-length"))

    @property
    def http_headers(self) -> Dict[str, str]:
        """Headers projected into the HTTP_* namespace."""
        return {
            "HTTP_" + name.upper().replace("-", "_"): value
            for name, value in self.headers.items()
        }

    @property
    def environ(self) -> Dict[str, Any]:
        """
        Flat, CGI-style view of the request.

        A new input stream is created on each access, so every caller
        reads the body from the start.
        """
        env: Dict[str, Any] = {
            "REQUEST_METHOD": self.method,
            "PATH_INFO": self.path,
            "QUERY_STRING": self.query or "",
            "SERVER_PROTOCOL": self.version,
            "REMOTE_ADDR": self.remote_address,
            "REMOTE_HOST": self.remote_host,
            "SERVER_PORT": str(self.local_port),
            "REQUEST_URI": self.request_uri,
            "tinyhttpd.input": io.BytesIO(self.body) if self.body is not None else None,
        }
        env.update(self.http_headers)
        return env


class RequestParser:
    """
    Reads a Request from anything shaped like a Connection.

    The parser is stateless apart from its two line bounds, so one
    instance can serve every connection. It needs these members from the
    connection:

        readline(limit) -> bytes    bounded line read, b"" at EOF
        read(n) -> bytes            up to n bytes, short only at EOF
        remote_host, remote_address, local_port

    Usage:
        parser = RequestParser()
        request = parser.parse(conn)
    """

    def __init__(
        self,
        max_request_line: int = MAX_REQUEST_LINE,
        max_header_line: int = MAX_HEADER_LINE,
    ):
        self.max_request_line = max_request_line
        self.max_header_line = max_header_line

    def parse(self, conn) -> Request:
        """
        Parse one request from `conn`.

        Raises:
            EmptyRequest: Stream ended before a request line.
            MalformedRequestLine: Request line is not three fields.
            LineTooLong: Request line or a header line overflowed.
            MalformedHeader: Header line without ": ".
            TruncatedBody: Stream ended before Content-Length bytes.
            TransportError: The underlying read failed.
        """
        method, target, path, query, version = self._read_request_line(conn)
        headers = self._read_headers(conn)
        body = self._read_body(conn, method, headers)

        remote_host = conn.remote_host
        local_port = conn.local_port

        return Request(
            method=method,
            target=target,
            path=path,
            query=query,
            version=version,
            headers=headers,
            body=body,
            remote_host=remote_host,
            remote_address=conn.remote_address,
            local_port=local_port,
            request_uri=make_request_uri(target, remote_host, local_port),
        )

    def _read_line(self, conn, limit: int, what: str) -> Optional[str]:
        """
        Read one line of at most `limit` bytes, decoded, with its line
        terminator removed. Other whitespace is left for the caller.

        Returns None at end of stream. One extra byte is requested so a
        line of exactly `limit` bytes can be told apart from an overflow.
        """
        raw = conn.readline(limit + 1)
        if not raw:
            return None
        if len(raw) > limit:
            raise LineTooLong(what, limit)
        return raw.decode(WIRE_ENCODING).rstrip("\r\n")

    def _read_request_line(self, conn) -> tuple:
        """
        Parse "METHOD TARGET VERSION".

        Returns:
            (method, target, path, query, version); query is None when
            the target has no "?".
        """
        line = self._read_line(conn, self.max_request_line, "Request line")
        if line is None:
            raise EmptyRequest()

        line = line.strip(WHITESPACE)
        fields = [part for part in line.split(" ") if part]
        if len(fields) != 3:
            raise MalformedRequestLine(line)

        method, target, version = fields

        path, sep, query = target.partition("?")
        return method, target, path, (query if sep else None), version

    def _read_headers(self, conn) -> Dict[str, str]:
        headers: Dict[str, str] = {}

        while True:
            line = self._read_line(conn, self.max_header_line, "Header line")

            # Blank line or end of stream both end the header section
            if line is None or not line.strip(WHITESPACE):
                break

            # Split before trimming: "X-Empty: " must keep its separator
            name, sep, value = line.lstrip(WHITESPACE).partition(": ")
            if not sep or not name:
                raise MalformedHeader(line.strip(WHITESPACE))

            headers[name] = value.strip(WHITESPACE)

        return headers

    def _read_body(self, conn, method: str, headers: Dict[str, str]) -> Optional[bytes]:
        if method not in BODY_METHODS:
            return None

        content_length = 0
        for name, value in headers.items():
            if name.lower() == "content-length":
                content_length = parse_content_length(value)

        body = conn.read(content_length)
        if len(body) < content_length:
            raise TruncatedBody(content_length, len(body))
        return body


_default_parser = RequestParser()


def parse_request(conn) -> Request:
    """Parse one request from `conn` with the default wire limits."""
    return _default_parser.parse(conn)
