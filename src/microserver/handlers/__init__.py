"""
=============================================================================
REQUEST HANDLERS
=============================================================================

    static.py     StaticFileServer - fallback for unrouted paths
    services.py   Demo service declarations (/hello, /greeting, ...)

=============================================================================
USAGE
=============================================================================

    from microserver.handlers import serve_static, services
    from microserver.http import RouteRegistry, Dispatcher

    registry = RouteRegistry.build(services.declarations())
    dispatcher = Dispatcher(registry, serve_static("public"))

=============================================================================
"""

from .static import StaticFileServer, serve_static
from .services import services

__all__ = [
    "StaticFileServer",
    "serve_static",
    "services",
]
