"""
=============================================================================
STATIC FILE SERVER
=============================================================================

Serves files from a fixed root directory for every path that no route
claims.

=============================================================================
FLOW
=============================================================================

    serve("/img/logo.png")
        │
        ├── strip leading "/"               → "img/logo.png"
        ├── ".." segment or escapes root?   → 403 Forbidden
        ├── missing, a directory, or a name
        │   no file can have (NUL, too long) → 404 Not Found
        ├── content type from extension     → image/png
        │
        ├── image/*  → base64 bytes, wrap in <img src="data:..."> page
        │              → 200 text/html
        │
        └── other    → file bytes as they are on disk
                       → 200 <detected type>

    Any OSError while reading (permission denied, file vanished between
    the check and the read, ...) → 500, logged, never raised.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    GET /../../etc/passwd HTTP/1.1

    root_dir / "../../etc/passwd"  →  /etc/passwd   (outside the root!)

Two checks guard against this:

    1. Any ".." segment in the request path is refused outright.
    2. The fully resolved path (symlinks followed) must still be inside
       root_dir:

            full_path = (root_dir / user_input).resolve()
            full_path.relative_to(root_dir)   # ValueError if outside

=============================================================================
WHY IMAGES ARE WRAPPED IN HTML
=============================================================================

Images are not sent as raw image/png bytes. They are embedded in a tiny
HTML page with a data: URI, so a browser pointed at /logo.png renders
a page containing the picture:

    <img src="data:image/png;base64,iVBORw0KGgoAAAANSUhEUg...">

The base64 payload decodes back to the exact bytes on disk.

=============================================================================
"""

import base64
import html
import logging
from pathlib import Path
from typing import Union

from ..http.mime_types import get_mime_type, is_image_type
from ..http.response import (
    HTTPResponse,
    forbidden,
    html as html_page,
    internal_error,
    not_found,
    ok,
)


logger = logging.getLogger(__name__)


IMAGE_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <title>{title}</title>
</head>
<body>
    <img src="data:{mime_type};base64,{payload}" alt="{title}">
</body>
</html>
"""


class StaticFileServer:
    """
    Serves files under root_dir.

    Usage:
        static = StaticFileServer("public")

        static.serve("index.html")       # 200 text/html
        static.serve("/logo.png")        # 200 text/html (<img> page)
        static.serve("/missing.png")     # 404
        static.serve("/../secret")       # 403
    """

    def __init__(self, root_dir: Union[str, Path]):
        """
        Args:
            root_dir: Directory files are served from. A missing directory
                      is not fatal: every lookup simply answers 404.
        """
        self.root_dir = Path(root_dir).resolve()

        if not self.root_dir.is_dir():
            logger.warning(f"Static root does not exist: {self.root_dir} (all files will 404)")

    def serve(self, path: str) -> HTTPResponse:
        """
        Serve the file addressed by an unmatched request path.

        Args:
            path: Request path, with or without a leading "/".

        Returns:
            200 with the file (or image page), 403, 404 or 500.
        """
        file_path = path.lstrip("/")

        if ".." in Path(file_path).parts:
            logger.warning(f"Path traversal attempt: {path}")
            return forbidden("Access denied")

        try:
            full_path = (self.root_dir / file_path).resolve()
        except (OSError, ValueError) as e:
            return self._unusable_path(path, e)

        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            logger.warning(f"Path escapes static root: {path} → {full_path}")
            return forbidden("Access denied")

        try:
            is_file = full_path.is_file()
        except (OSError, ValueError) as e:
            return self._unusable_path(path, e)

        if not is_file:
            return not_found(f"File not found: {file_path}")

        return self._serve_file(full_path)

    @staticmethod
    def _unusable_path(path: str, error: Exception) -> HTTPResponse:
        # Embedded NUL, over-long name, ...: no file can have this name
        logger.info(f"Unusable static path {path!r}: {error}")
        return not_found("File not found")

    def _serve_file(self, path: Path) -> HTTPResponse:
        mime_type = get_mime_type(path)

        try:
            content = path.read_bytes()
        except OSError as e:
            logger.error(f"Error serving file {path}: {e}")
            return internal_error("Failed to read file")

        if is_image_type(mime_type):
            return html_page(self._image_page(path.name, mime_type, content))

        return ok(content, content_type=mime_type)

    @staticmethod
    def _image_page(name: str, mime_type: str, content: bytes) -> str:
        """Minimal HTML document embedding the image as a data: URI."""
        return IMAGE_PAGE_TEMPLATE.format(
            title=html.escape(name, quote=True),
            mime_type=mime_type,
            payload=base64.b64encode(content).decode("ascii"),
        )


def serve_static(root_dir: Union[str, Path]) -> StaticFileServer:
    """
    Create a static file server.

    Example:
        static = serve_static("public")
        dispatcher = Dispatcher(registry, static)
    """
    return StaticFileServer(root_dir)
