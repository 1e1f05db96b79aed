"""
=============================================================================
WIRE LIMITS
=============================================================================

Fixed bounds the request parser enforces while reading a connection.

    ┌──────────────────────┬───────────────┬──────────────────────────────┐
    │  Limit               │  Value        │  Where it comes from         │
    ├──────────────────────┼───────────────┼──────────────────────────────┤
    │  MAX_REQUEST_LINE    │  2083 bytes   │  Longest URL browsers accept │
    │  MAX_HEADER_LINE     │  112 KiB      │  Same bound Puma/WEBrick use │
    └──────────────────────┴───────────────┴──────────────────────────────┘

Both bounds include the line terminator. A line "overflows" when more
bytes than the bound arrive without the line ending.

=============================================================================
"""

# Request line: "GET /some/path?query HTTP/1.1\r\n"
MAX_REQUEST_LINE = 2083

# Any single "Name: Value\r\n" line
MAX_HEADER_LINE = 112 * 1024

# Only these methods carry a Content-Length framed body
BODY_METHODS = ("POST", "PUT")

CRLF = b"\r\n"
