"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The handful of status codes this server can answer with.

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  2xx   │ 200 OK                  - Handler ran / file served       │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  4xx   │ 403 Forbidden           - Static path escapes the root    │
    │        │ 404 Not Found           - No route and no file            │
    │        │ 405 Method Not Allowed  - Anything other than GET         │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  5xx   │ 500 Internal Error      - Handler raised / read failed    │
    └────────┴───────────────────────────────────────────────────────────┘

A malformed request line is never answered with 400: the parser falls
back to the default document instead.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes with their reason phrases.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200

    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405

    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      └── phrase
                      └───────── code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        """2xx."""
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        """4xx."""
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        """5xx."""
        return 500 <= self < 600


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
