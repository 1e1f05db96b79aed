"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the server, built ONCE at startup and
passed into HTTPServer. Nothing reads the environment while requests
are being served.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m tinyhttpd --port 4000                            │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── PORT=4000 python -m tinyhttpd                              │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    HOST           Listening host            (default: 127.0.0.1)
    PORT           Listening port            (default: 3000)
    TCP_BACKLOG    Accept backlog size       (default: 12)
    DOCUMENT_ROOT  Directory to serve files  (default: current directory)
    LOG_LEVEL      DEBUG/INFO/WARNING/ERROR  (default: INFO)
    LOG_FORMAT     text or json              (default: text)

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional, Mapping


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the server.

    NETWORK
    - host, port, backlog, timeout

    APPLICATION
    - document_root (used by the file-serving demo app)

    LOGGING
    - log_level, log_format
    """

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only
    - "0.0.0.0" - All network interfaces
    """

    port: int = 3000
    """Port to listen on. 0 lets the OS pick a free port."""

    backlog: int = 12
    """
    Size of the OS accept queue. Connections that arrive while one is
    being handled wait here; when it is full the OS refuses them.
    """

    timeout: Optional[float] = None
    """
    Socket timeout for accepted connections, in seconds.
    None = blocking, no timeout. A stalled peer then blocks the whole
    server, since only one connection is handled at a time.
    """

    document_root: Optional[str] = None
    """Directory the file-serving app reads from. None = current directory."""

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """
        Create configuration from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Raises:
            ValueError: If PORT or TCP_BACKLOG is not an integer.
        """
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("HOST", "127.0.0.1"),
            port=_int_setting(env, "PORT", 3000),
            backlog=_int_setting(env, "TCP_BACKLOG", 12),
            document_root=env.get("DOCUMENT_ROOT") or None,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            log_format=env.get("LOG_FORMAT", "text").lower(),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called at startup so a bad value fails immediately with a clear
        message instead of surfacing as a socket error later.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 0:
            raise ValueError(f"backlog must be >= 0, got {self.backlog}")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0 (or None for no timeout)")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Unknown log format: {self.log_format}. Use 'text' or 'json'.")


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
