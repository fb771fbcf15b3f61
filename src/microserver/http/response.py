"""
=============================================================================
HTTP RESPONSE
=============================================================================

Every request ends in exactly one HTTPResponse: a status, a content type
and a body. The connection loop serializes it with to_bytes() and closes
the socket right after, so there is no keep-alive negotiation here.

=============================================================================
WIRE FORMAT
=============================================================================

    HTTP/1.1 200 OK\r\n                  ← status line
    Content-Type: text/plain\r\n
    Content-Length: 12\r\n               ← byte length of the body
    Date: Mon, 19 Oct 2026 10:00:00 GMT\r\n
    Server: MicroServer/1.0\r\n
    Connection: close\r\n                ← one request per connection
    \r\n
    Hello World!                         ← body bytes

Content-Length is always computed from the ENCODED body. A body such as
"Mañana es viernes" is 17 characters but 18 bytes in UTF-8, and the client
would cut the response short if we counted characters.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from .status_codes import HTTPStatus


TEXT_PLAIN = "text/plain"
TEXT_HTML = "text/html"


@dataclass
class HTTPResponse:
    """
    A response ready to be written to the client.

    This is the (status line, content type, body) triple produced by the
    dispatcher and the static file server, plus any extra headers
    (e.g. Allow on a 405).
    """

    status: HTTPStatus = HTTPStatus.OK
    content_type: str = TEXT_PLAIN
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE

        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 (convenience for logs and tests)."""
        return self.body.decode("utf-8", errors="replace")

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set an extra header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "MicroServer/1.0") -> bytes:
        """
        Serialize the response for socket.sendall().

        Content-Type, Content-Length, Date, Server and Connection are always
        emitted; extra headers follow in insertion order.

        Args:
            server_name: Value of the Server header.

        Returns:
            Status line, headers, blank line and body as bytes.
        """
        response_headers = {
            "Content-Type": self.content_type,
            "Content-Length": str(len(self.body)),
            "Date": format_http_date(datetime.now(timezone.utc)),
            "Server": server_name,
            "Connection": "close",
        }
        response_headers.update(self.headers)

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Mon, 19 Oct 2026 10:00:00 GMT

    HTTP dates are always GMT, never local time.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def _encode(body: Union[str, bytes]) -> bytes:
    if isinstance(body, str):
        return body.encode("utf-8")
    return body


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
#     return ok("Hello World!")
#     return not_found("File not found: logo.png")
#
# =============================================================================

def ok(body: Union[str, bytes] = "", content_type: str = TEXT_PLAIN) -> HTTPResponse:
    """200 OK. Strings are encoded as UTF-8."""
    return HTTPResponse(status=HTTPStatus.OK, content_type=content_type, body=_encode(body))


def html(document: str) -> HTTPResponse:
    """200 OK with a text/html body."""
    return ok(document, content_type=TEXT_HTML)


def forbidden(message: str = "Forbidden") -> HTTPResponse:
    """403 Forbidden, plain text."""
    return HTTPResponse(status=HTTPStatus.FORBIDDEN, body=_encode(message))


def not_found(message: str = "Not Found") -> HTTPResponse:
    """404 Not Found, plain text."""
    return HTTPResponse(status=HTTPStatus.NOT_FOUND, body=_encode(message))


def method_not_allowed(allowed_methods: List[str]) -> HTTPResponse:
    """
    405 Method Not Allowed.

    RFC 7231 requires the Allow header listing what the resource accepts.
    """
    allow = ", ".join(allowed_methods)
    response = HTTPResponse(
        status=HTTPStatus.METHOD_NOT_ALLOWED,
        body=_encode(f"Method Not Allowed. Allowed: {allow}"),
    )
    return response.set_header("Allow", allow)


def internal_error(message: Optional[str] = None) -> HTTPResponse:
    """
    500 Internal Server Error.

    Exception details go to the log, never to the client.
    """
    return HTTPResponse(
        status=HTTPStatus.INTERNAL_SERVER_ERROR,
        body=_encode(message or "Internal Server Error"),
    )
