"""
=============================================================================
APPLICATIONS
=============================================================================

Ready-made applications to plug into HTTPServer.

    FileServingApp   Maps the request path onto a directory (demo)

    from tinyhttpd.handlers import FileServingApp

    HTTPServer(FileServingApp("./public")).run()

=============================================================================
"""

from .files import FileServingApp

__all__ = ["FileServingApp"]
