"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Translates between raw connection bytes and structured messages.

    request.py       bytes ──► Request       (RequestParser, parse_request)
    response.py      Response ──► bytes      (write_response, serialize_response)
    status_codes.py  200 ──► "OK"            (HTTPStatus, reason_phrase)
    limits.py        Line bounds and body-carrying methods

=============================================================================
"""

from .limits import MAX_REQUEST_LINE, MAX_HEADER_LINE, BODY_METHODS
from .status_codes import HTTPStatus, reason_phrase
from .request import Request, RequestParser, parse_request, make_request_uri
from .response import (
    Response,
    format_head,
    iter_response,
    serialize_response,
    write_response,
    write_result,
)

__all__ = [
    # Limits
    "MAX_REQUEST_LINE",
    "MAX_HEADER_LINE",
    "BODY_METHODS",
    # Status
    "HTTPStatus",
    "reason_phrase",
    # Request
    "Request",
    "RequestParser",
    "parse_request",
    "make_request_uri",
    # Response
    "Response",
    "format_head",
    "iter_response",
    "serialize_response",
    "write_response",
    "write_result",
]
