"""
=============================================================================
FILE-SERVING DEMO APPLICATION
=============================================================================

The application the CLI runs by default: the request path is mapped
onto a directory and the file there is returned.

    GET /text.txt   ──►  <root>/text.txt

        exists   ──►  200  Content-Type: text/html   <file bytes>
        missing  ──►  404  Content-Type: text/html   (empty body)
        escapes  ──►  403  Content-Type: text/html   (empty body)

=============================================================================
SECURITY
=============================================================================

Paths are percent-decoded and resolved (following ".." and symlinks),
then checked to still be inside the root:

    GET /../../etc/passwd      ──► resolves outside root ──► 403
    GET /%2e%2e/etc/passwd     ──► same after decoding   ──► 403

Everything is served as text/html whatever the file is. This is a demo
for exercising the server, not a static file server.

=============================================================================
"""

import os
import logging
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote

from ..http.request import Request
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)

CONTENT_TYPE = "text/html"


class FileServingApp:
    """
    Serves files from `root` (the current directory by default).

    Usage:
        app = FileServingApp("/srv/www")
        status, headers, body = app(request)
    """

    def __init__(self, root: Optional[Union[str, os.PathLike]] = None):
        self.root = Path(root if root is not None else os.getcwd()).resolve()

        if not self.root.is_dir():
            raise ValueError(f"Document root does not exist: {self.root}")

    def __call__(self, request: Request):
        relative = unquote(request.path).lstrip("/")
        try:
            full_path = (self.root / relative).resolve()
        except (OSError, ValueError):
            # e.g. an embedded NUL from "%00"
            return self._empty(HTTPStatus.NOT_FOUND)

        try:
            full_path.relative_to(self.root)
        except ValueError:
            logger.warning(f"Path traversal attempt: {request.path}")
            return self._empty(HTTPStatus.FORBIDDEN)

        if not full_path.is_file():
            return self._empty(HTTPStatus.NOT_FOUND)

        try:
            body = full_path.read_bytes()
        except PermissionError:
            return self._empty(HTTPStatus.FORBIDDEN)

        return HTTPStatus.OK, {"Content-Type": CONTENT_TYPE}, [body]

    @staticmethod
    def _empty(status: HTTPStatus):
        return status, {"Content-Type": CONTENT_TYPE}, [b""]
