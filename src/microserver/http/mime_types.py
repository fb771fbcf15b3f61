"""
=============================================================================
CONTENT TYPE DETECTION
=============================================================================

Maps a static file's extension to the Content-Type it is served with.

The table is deliberately tiny. Anything that is not an HTML page or a
PNG/JPEG image is served as opaque bytes:

    page.html    → text/html
    logo.png     → image/png
    photo.jpg    → image/jpeg
    photo.jpeg   → image/jpeg
    notes.txt    → application/octet-stream
    archive      → application/octet-stream

Image types are special-cased by the static file server: they are not
sent raw but wrapped in an HTML page (see handlers/static.py), which is
why is_image_type() lives here next to the table.

=============================================================================
"""

from pathlib import Path
from typing import Optional, Union


MIME_TYPES = {
    ".html": "text/html",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}

# "I don't know what this is, treat it as binary"
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_mime_type(path: Union[str, Path], default: Optional[str] = None) -> str:
    """
    Get the MIME type for a file based on its extension.

    The lookup is case-insensitive (LOGO.PNG is still image/png).

    Args:
        path: File path or bare file name.
        default: Fallback for unknown extensions. Uses
                 application/octet-stream if not given.

    Returns:
        The MIME type string.

    Examples:
        >>> get_mime_type("index.html")
        'text/html'

        >>> get_mime_type("/var/www/img/Photo.JPEG")
        'image/jpeg'

        >>> get_mime_type("readme.txt")
        'application/octet-stream'
    """
    if isinstance(path, str):
        path = Path(path)

    extension = path.suffix.lower()
    return MIME_TYPES.get(extension, default or DEFAULT_MIME_TYPE)


def is_image_type(mime_type: str) -> bool:
    """True for image/* types."""
    return mime_type.startswith("image/")
