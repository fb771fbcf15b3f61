"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything between "bytes arrived" and "bytes to send":

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST PARSER (request.py)                                         │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Input:   b"GET /greeting?name=Ana HTTP/1.1\r\n..."                  │
    │ Output:  ParsedRequest(method="GET", path="/greeting",              │
    │                        query_params={"name": "Ana"})                │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ QUERY BINDER (query.py)                                             │
    │ ─────────────────────────────────────────────────────────────────── │
    │ parse_query("name=Ana&x")             → {"name": "Ana"}             │
    │ bind_arguments([ParamSpec("name", "World")], {})  → ["World"]       │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ ROUTE REGISTRY (registry.py)                                        │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Exact path → Route(handler, params). Built once, then frozen.       │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ DISPATCHER (dispatcher.py)                                          │
    │ ─────────────────────────────────────────────────────────────────── │
    │ 405 for other methods, handler for routed paths, static otherwise.  │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ RESPONSE (response.py, status_codes.py, mime_types.py)              │
    │ ─────────────────────────────────────────────────────────────────── │
    │ HTTPResponse(status, content_type, body).to_bytes()                 │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .status_codes import HTTPStatus
from .mime_types import DEFAULT_MIME_TYPE, MIME_TYPES, get_mime_type, is_image_type
from .response import (
    HTTPResponse,
    TEXT_HTML,
    TEXT_PLAIN,
    forbidden,
    html,
    internal_error,
    method_not_allowed,
    not_found,
    ok,
)
from .query import ParamSpec, bind_arguments, parse_query
from .request import ParsedRequest, RequestParser, parse_request
from .registry import (
    DuplicateRouteError,
    RegistryError,
    RegistryFrozenError,
    Route,
    RouteRegistry,
    ServiceTable,
    load_service_table,
)
from .dispatcher import Dispatcher

__all__ = [
    # Status / content types
    "HTTPStatus",
    "DEFAULT_MIME_TYPE",
    "MIME_TYPES",
    "get_mime_type",
    "is_image_type",
    # Response
    "HTTPResponse",
    "TEXT_HTML",
    "TEXT_PLAIN",
    "forbidden",
    "html",
    "internal_error",
    "method_not_allowed",
    "not_found",
    "ok",
    # Request
    "ParamSpec",
    "bind_arguments",
    "parse_query",
    "ParsedRequest",
    "RequestParser",
    "parse_request",
    # Routing
    "DuplicateRouteError",
    "RegistryError",
    "RegistryFrozenError",
    "Route",
    "RouteRegistry",
    "ServiceTable",
    "load_service_table",
    "Dispatcher",
]
