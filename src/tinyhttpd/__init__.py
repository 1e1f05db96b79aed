"""
=============================================================================
TINYHTTPD - A SINGLE-THREADED HTTP/1.1 SERVER
=============================================================================

A minimal HTTP/1.1 server core: accept a connection, parse one request,
call the application, write the response, close, repeat.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer          bind / listen / accept, one at a time       │
    │        │                                                             │
    │        ▼                                                             │
    │   HTTPServer.handle_connection                                       │
    │        │                                                             │
    │        ├──► RequestParser      bytes ──► Request                    │
    │        ├──► app(request)       Request ──► (status, headers, body)  │
    │        └──► write_response     Response ──► bytes                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
QUICK START
=============================================================================

    from tinyhttpd import HTTPServer, ServerConfig

    def app(request):
        return 200, {"Content-Type": "text/plain"}, [b"Hello, World!"]

    HTTPServer(app, ServerConfig(port=3000)).run()

Or serve the current directory:

    python -m tinyhttpd --port 3000

=============================================================================
WHAT IT DELIBERATELY DOES NOT DO
=============================================================================

    - Keep-alive, pipelining: every response ends with Connection: close
    - Chunked transfer encoding: bodies are Content-Length framed
    - TLS
    - Concurrency: one connection is handled at a time

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig
from .http import Request, Response, HTTPStatus
from .handlers import FileServingApp

__all__ = [
    "HTTPServer",
    "ServerConfig",
    "Request",
    "Response",
    "HTTPStatus",
    "FileServingApp",
    "__version__",
]
