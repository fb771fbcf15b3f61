"""
=============================================================================
MICROSERVER - Minimal HTTP/1.x Server on Raw Sockets
=============================================================================

Dispatches each request to a handler chosen by exact URL path, and serves
static files for every path no handler claims.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    microserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m microserver)
    ├── server.py            # MicroServer: accept → read → dispatch → write
    ├── config.py            # ServerConfig dataclass
    ├── access_log.py        # One structured line per request
    ├── core/
    │   ├── socket_server.py # Listening socket and accept loop
    │   └── connection.py    # One client socket, one request
    ├── http/
    │   ├── request.py       # Request line parsing
    │   ├── query.py         # Query string parsing and argument binding
    │   ├── registry.py      # Exact-path route table
    │   ├── dispatcher.py    # Handler or static fallback
    │   ├── response.py      # HTTPResponse and helpers
    │   ├── status_codes.py  # Status enum
    │   └── mime_types.py    # Extension → content type
    └── handlers/
        ├── static.py        # Static file server
        └── services.py      # Demo services

=============================================================================
QUICK START
=============================================================================

    from microserver import MicroServer, ServerConfig, ServiceTable, ParamSpec
    from microserver import RouteRegistry

    table = ServiceTable()

    @table.get("/greeting", ParamSpec("name", "World"))
    def greeting(name):
        return f"Hola, {name}"

    server = MicroServer(
        ServerConfig(port=8080, static_dir="public"),
        registry=RouteRegistry.build(table.declarations()),
    )
    server.run()

    $ curl "http://127.0.0.1:8080/greeting?name=Ana"
    Hola, Ana

=============================================================================
"""

from .config import ServerConfig
from .http import (
    Dispatcher,
    DuplicateRouteError,
    HTTPResponse,
    HTTPStatus,
    ParamSpec,
    ParsedRequest,
    RegistryError,
    RegistryFrozenError,
    RequestParser,
    Route,
    RouteRegistry,
    ServiceTable,
)
from .handlers import StaticFileServer
from .server import MicroServer, create_app

__version__ = "1.0.0"

__all__ = [
    "MicroServer",
    "create_app",
    "ServerConfig",
    "Dispatcher",
    "DuplicateRouteError",
    "HTTPResponse",
    "HTTPStatus",
    "ParamSpec",
    "ParsedRequest",
    "RegistryError",
    "RegistryFrozenError",
    "RequestParser",
    "Route",
    "RouteRegistry",
    "ServiceTable",
    "StaticFileServer",
    "__version__",
]
