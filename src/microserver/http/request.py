"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes read from a connection into a ParsedRequest.

Only the REQUEST LINE matters to this server. Headers and body are read
off the socket (up to the buffer limit) but never interpreted.

=============================================================================
WHAT WE LOOK AT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │    GET /greeting?name=Nicolas HTTP/1.1\r\n                          │
    │    ─┬─ ───────────┬────────── ────┬───                              │
    │     │             │               │                                  │
    │   token 0      token 1         ignored                               │
    │   method       target                                                │
    │                   │                                                  │
    │         ┌─────────┴─────────┐                                        │
    │         │                   │                                        │
    │       path            query string                                   │
    │     /greeting          name=Nicolas                                  │
    │                                                                      │
    │    Host: localhost:8080\r\n       ← ignored                          │
    │    \r\n                                                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PARSING RULES
=============================================================================

1. Decode as UTF-8 (bad bytes are replaced, never fatal) and split on
   whitespace. Token 0 is the method, token 1 the request target.

2. Fewer than two tokens (empty read, garbage, "GET" alone):
   the request is treated as a request for index.html, with an empty
   method. A malformed request is NOT an error here, not even a 405;
   the client still gets a page.

3. A target of exactly "/" is rewritten to "index.html".
   Note the order: "/?x=1" is not rewritten, because the rewrite happens
   before the query string is split off.

4. If the target contains "?", everything after the FIRST "?" is the
   query string.

No percent-decoding is done on the path or the query string.

The method token is captured but does not influence parsing. Whether a
non-GET request is served is the dispatcher's decision.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .query import parse_query


DEFAULT_DOCUMENT = "index.html"


@dataclass
class ParsedRequest:
    """
    A parsed request line.

    Created once per connection and discarded after the response is sent.

    Attributes:
        method: First token of the request line ("" if the line was
                malformed).
        path: Request path without the query string ("index.html" for "/").
        query_string: Raw text after the first "?", or None.
        query_params: Parameters parsed from query_string.
    """

    method: str = ""
    path: str = DEFAULT_DOCUMENT
    query_string: Optional[str] = None
    query_params: Dict[str, str] = field(default_factory=dict)


class RequestParser:
    """
    Parses raw request bytes into ParsedRequest objects.

    The parser never raises for malformed input; see the module docstring
    for the fallback rules.

    Usage:
        parser = RequestParser()
        request = parser.parse(b"GET /hello HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
        request.path            # "/hello"
        request.query_params    # {}
    """

    def __init__(self, default_document: str = DEFAULT_DOCUMENT):
        """
        Args:
            default_document: Path used for "/" and for unparseable
                              request lines.
        """
        self.default_document = default_document

    def parse(self, data: bytes) -> ParsedRequest:
        """
        Parse raw request bytes.

        Args:
            data: Bytes read from the socket (possibly truncated).

        Returns:
            ParsedRequest. Never raises for bad input.
        """
        text = data.decode("utf-8", errors="replace")
        tokens = text.split()

        # ─────────────────────────────────────────────────────────────────
        # MALFORMED: fall back to the default document
        # ─────────────────────────────────────────────────────────────────
        if len(tokens) < 2:
            return ParsedRequest(method="", path=self.default_document)

        method, target = tokens[0], tokens[1]

        if target == "/":
            target = self.default_document

        path, query_string = target, None
        if "?" in target:
            path, query_string = target.split("?", 1)

        return ParsedRequest(
            method=method,
            path=path,
            query_string=query_string,
            query_params=parse_query(query_string),
        )


def parse_request(data: bytes) -> ParsedRequest:
    """
    Parse raw request bytes with a default parser.

    Convenience function for one-off parsing (tests, scripts).
    """
    return RequestParser().parse(data)
