"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the accept loop. It knows nothing about
HTTP: every accepted socket is wrapped in a Connection and handed to a
callback, synchronously.

=============================================================================
SOCKET LIFECYCLE (SERVER SIDE)
=============================================================================

    1. socket()    Create the listening socket
    2. bind()      Reserve HOST:PORT          ── failure is fatal (BindError)
    3. listen()    OS starts queueing clients ── backlog = queue size
    4. accept()    Wait for the next client   ── the loop blocks here
    5. close()     Release the socket on shutdown

=============================================================================
ONE CONNECTION AT A TIME
=============================================================================

    ┌──────────────┐  accept()   ┌──────────────┐
    │  Listening   │ ──────────► │   Handling   │
    │              │ ◄────────── │  (callback)  │
    └──────────────┘  returns    └──────────────┘

The callback runs to completion (and closes its connection) before
accept() is called again. Clients that arrive meanwhile wait in the OS
backlog; if it overflows the OS refuses them.

=============================================================================
STOPPING
=============================================================================

accept() is given a short timeout so the loop can notice shutdown()
(called from a signal handler or another thread) between clients. A
timeout with no client is not an event; the loop just calls accept()
again. shutdown() never interrupts a connection that is being handled.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from ..errors import BindError
from .connection import Connection


logger = logging.getLogger(__name__)

# How often accept() wakes up to check for shutdown
ACCEPT_POLL_INTERVAL = 0.5


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            with conn:
                ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Initialize the socket server.

        The socket is created lazily in start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        self._listening_event = threading.Event()
        self._shutdown_event = threading.Event()

        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port). With port 0 this is the port the OS
        picked, once the server is listening.
        """
        if self._socket is not None:
            sockname = self._socket.getsockname()
            return (sockname[0], sockname[1])
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.config.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)

        # Rebind immediately after a restart instead of waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Small responses go out immediately
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        """
        Turn SIGTERM/SIGINT into a graceful shutdown.

        Python only allows signal handlers in the main thread, so this is
        skipped when the server runs in a background thread (tests).
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def bind(self):
        """
        Create, bind and listen.

        Raises:
            BindError: If the address cannot be bound (in use, no
                       permission, unknown host...).
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
            self._socket.listen(self.config.backlog)
        except OSError as e:
            self._socket.close()
            self._socket = None
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            raise BindError(self.config.host, self.config.port, str(e)) from e

        host, port = self.address
        logger.info(f"Server listening on {host}:{port} (backlog {self.config.backlog})")

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind (if not already bound) and run the accept loop.

        Blocks until shutdown() is called.

        Raises:
            BindError: If binding fails. Nothing has been accepted yet.
        """
        if self._socket is None:
            self.bind()

        self._running = True
        self._shutdown_event.clear()
        self._setup_signals()
        self._listening_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept one client, hand it to the callback, repeat.

        Accept failures (e.g. the peer reset before accept returned, or
        the process ran out of descriptors) are logged and the loop goes
        on. The callback is expected to handle and close its own
        connection.
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break  # Socket closed by shutdown
                logger.error(f"Accept error: {e}")
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            try:
                conn = Connection(
                    socket=client_socket,
                    address=client_address,
                    timeout=self.config.timeout,
                )
            except OSError as e:
                logger.error(f"Could not set up connection from {client_address[0]}: {e}")
                client_socket.close()
                continue

            connection_handler(conn)

    def shutdown(self):
        """
        Stop the accept loop after the current connection. Idempotent,
        safe to call from a signal handler or another thread.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._listening_event.clear()
        self._shutdown_event.set()
        logger.info("Socket server stopped")

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """Block until the accept loop is running. Returns False on timeout."""
        return self._listening_event.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the accept loop has exited and the listening socket is
        closed. Returns False on timeout.
        """
        return self._shutdown_event.wait(timeout)
