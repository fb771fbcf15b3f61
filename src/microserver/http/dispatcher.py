"""
=============================================================================
DISPATCHER
=============================================================================

Decides who answers a request: a registered handler or the static file
server.

    ParsedRequest
         │
         ▼
    method allowed? ── no ──► 405 Method Not Allowed (Allow: GET)
         │ yes
         ▼
    registry.resolve(path)
         │
    ┌────┴─────────────────────┐
    │ found                    │ not found
    ▼                          ▼
    bind_arguments()           static.serve(path)
    handler(*args)
    │
    ├── returns str  → 200 text/plain, body = returned text
    └── raises       → 500, logged with the route name

An unknown path is not an error: it is exactly what triggers the static
fallback. A handler failure is terminal for that request only; the
connection is still answered and closed normally.

=============================================================================
"""

import logging
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from .query import bind_arguments
from .registry import Route, RouteRegistry
from .request import ParsedRequest
from .response import HTTPResponse, TEXT_PLAIN, internal_error, method_not_allowed, ok

if TYPE_CHECKING:
    from ..handlers.static import StaticFileServer


logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Routes a ParsedRequest to a handler or to the static file server.

    Usage:
        dispatcher = Dispatcher(registry, StaticFileServer("public"))

        response = dispatcher.dispatch(parse_request(raw))
        response.status         # HTTPStatus.OK
        response.content_type   # "text/plain"
    """

    def __init__(
        self,
        registry: RouteRegistry,
        static: "StaticFileServer",
        allowed_methods: Optional[Iterable[str]] = ("GET",),
    ):
        """
        Args:
            registry: Frozen route registry (shared, read-only).
            static: Fallback for paths with no route.
            allowed_methods: Methods that are served. Anything else gets
                             405. Empty or None accepts every method.
        """
        self.registry = registry
        self.static = static
        self.allowed_methods: Tuple[str, ...] = tuple(
            m.upper() for m in (allowed_methods or ())
        )

    def dispatch(self, request: ParsedRequest) -> HTTPResponse:
        """
        Produce the response for one request.

        Never raises for handler or file errors; those become 500s.
        """
        # An empty method means a malformed request line: nothing to reject.
        if self.allowed_methods and request.method and request.method.upper() not in self.allowed_methods:
            logger.info(f"Rejected method {request.method!r} for {request.path}")
            return method_not_allowed(list(self.allowed_methods))

        route = self.registry.resolve(request.path)
        if route is None:
            return self.static.serve(request.path)

        return self.invoke(route, request)

    def invoke(self, route: Route, request: ParsedRequest) -> HTTPResponse:
        """
        Bind query parameters and call the route's handler.

        Returns:
            200 text/plain with the handler's return value, or 500.
        """
        args = bind_arguments(route.params, request.query_params)

        try:
            body = route.handler(*args)
            if not isinstance(body, str):
                raise TypeError(
                    f"handler returned {type(body).__name__}, expected str"
                )
        except Exception as e:
            logger.exception(f"Handler {route.name} for {route.path} failed: {e}")
            return internal_error()

        return ok(body, content_type=TEXT_PLAIN)
