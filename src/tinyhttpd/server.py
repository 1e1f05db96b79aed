"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together. For every accepted connection:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   accept ──► parse ──► app(request) ──► write response ──► close    │
    │                │            │                 │              ▲      │
    │                └────────────┴─────────────────┴── failure ───┘      │
    │                                                   (logged)          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FAILURE ISOLATION
=============================================================================

A failure while handling one connection never reaches the accept loop:

    EmptyRequest        Peer connected and left (DEBUG)
    ParseFailure        Bad bytes from the client (WARNING, no response)
    anything else       Application error, UnknownStatus, TransportError
                        (ERROR with traceback)

Whatever happens, `with conn:` closes the connection before the next
accept(). KeyboardInterrupt/SystemExit are not caught; they still close
the connection on their way out.

=============================================================================
APPLICATION CONTRACT
=============================================================================

    def app(request: Request) -> (status, headers, body):
        return 200, {"Content-Type": "text/plain"}, [b"hello"]

status is an int with a registered reason phrase, headers a mapping
written in iteration order, body an iterable of bytes (or str) chunks.
Returning a Response works too.

=============================================================================
"""

import time
import logging
from typing import Optional, Callable, Any, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection
from .errors import ParseFailure, EmptyRequest
from .http import Request, RequestParser, write_result
from .access_log import RequestLog, log_request


logger = logging.getLogger(__name__)

Application = Callable[[Request], Any]


class HTTPServer:
    """
    Single-threaded HTTP/1.1 server.

    One connection is parsed, dispatched, answered and closed before the
    next one is accepted. No keep-alive, no pipelining, no threads.

    Usage:
        server = HTTPServer(FileServingApp(), ServerConfig(port=3000))
        server.run()  # Blocks until SIGINT/SIGTERM
    """

    def __init__(self, app: Application, config: Optional[ServerConfig] = None):
        self.app = app
        self.config = config or ServerConfig()
        self.config.validate()

        self._parser = RequestParser()
        self._socket_server = SocketServer(self.config)

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    def run(self):
        """
        Start the server (blocking).

        Raises:
            BindError: If the listening socket cannot be bound.
        """
        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")

        try:
            self._socket_server.start(self.handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")

        logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting after the connection currently being handled."""
        self._socket_server.shutdown()

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_listening(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    def handle_connection(self, conn: Connection):
        """
        Handle exactly one request on `conn`, then close it.

        This is the per-connection error boundary: nothing raised here
        (other than KeyboardInterrupt/SystemExit) escapes to the accept
        loop.
        """
        started = time.perf_counter()

        with conn:
            try:
                request = self._parser.parse(conn)

                response = write_result(conn, self.app(request))

                duration_ms = (time.perf_counter() - started) * 1000
                log_request(
                    RequestLog.build(conn.id, request, response, duration_ms),
                    self.config.log_format,
                )

            except EmptyRequest:
                logger.debug(f"[{conn.id}] Client closed without sending a request")

            except ParseFailure as e:
                logger.warning(f"[{conn.id}] Rejected request from {conn.remote_address}: {e}")

            except Exception as e:
                logger.exception(f"[{conn.id}] Error handling connection: {e}")
