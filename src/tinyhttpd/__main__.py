"""
=============================================================================
CLI ENTRY POINT
=============================================================================

    # Serve the current directory on 127.0.0.1:3000
    python -m tinyhttpd

    # Custom port and document root
    python -m tinyhttpd --port 8000 --root ./public

    # Same thing from the environment
    PORT=8000 DOCUMENT_ROOT=./public python -m tinyhttpd

Command-line flags override environment variables, which override the
defaults in ServerConfig.

=============================================================================
"""

import sys
import logging
import argparse
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig, LOG_LEVELS, LOG_FORMATS
from .errors import BindError
from .server import HTTPServer
from .handlers import FileServingApp
from .access_log import setup_logging


logger = logging.getLogger("tinyhttpd")


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinyhttpd",
        description="Single-threaded HTTP/1.1 server that serves files from a directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m tinyhttpd                          # Serve cwd on 127.0.0.1:3000
  python -m tinyhttpd --port 8000              # Custom port
  python -m tinyhttpd --host 0.0.0.0           # Listen on all interfaces
  python -m tinyhttpd --root ./public          # Serve another directory
        """,
    )

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host}, env HOST)",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port}, env PORT)",
    )
    parser.add_argument(
        "--backlog", "-b",
        type=int,
        default=defaults.backlog,
        help=f"Accept backlog size (default: {defaults.backlog}, env TCP_BACKLOG)",
    )
    parser.add_argument(
        "--root", "-r",
        default=defaults.document_root,
        help="Directory to serve files from (default: current directory, env DOCUMENT_ROOT)",
    )
    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level,
        help=f"Logging level (default: {defaults.log_level}, env LOG_LEVEL)",
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format}, env LOG_FORMAT)",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"tinyhttpd {__version__}",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    args = build_parser(defaults).parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        backlog=args.backlog,
        document_root=args.root,
        log_level=args.log_level,
        log_format=args.log_format,
    )

    try:
        config.validate()
        app = FileServingApp(config.document_root)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    setup_logging(config)
    logger.info(f"Serving files from {app.root}")

    try:
        HTTPServer(app, config).run()
    except BindError as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
