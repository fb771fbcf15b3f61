"""
=============================================================================
MICROSERVER
=============================================================================

Ties the pieces together: listening socket, request parser, dispatcher
and access log.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   MicroServer   │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │RequestParser │    │  Dispatcher  │        │
    │    │ (Networking) │    │ (Bytes → req)│    │              │        │
    │    └──────┬───────┘    └──────────────┘    └──────┬───────┘        │
    │           │                                        │                │
    │           ▼                              ┌─────────┴─────────┐      │
    │    ┌──────────────┐               ┌──────────────┐ ┌──────────────┐ │
    │    │  Connection  │               │RouteRegistry │ │StaticFile-   │ │
    │    │ (one request)│               │ (read-only)  │ │Server        │ │
    │    └──────────────┘               └──────────────┘ └──────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. ACCEPT          SocketServer accepts, wraps socket in Connection
    2. READ            request line, at most buffer_size bytes
    3. PARSE           method, path, query string, query params
    4. DISPATCH        handler (200/500), static file (200/403/404/500)
                       or 405 for a method that is not allowed
    5. WRITE           status line, headers, body
    6. CLOSE           always, on every path (with conn: ...)

Serial mode runs all six steps before the next accept(). Threaded mode
runs steps 2-6 in a new daemon thread per connection; the registry is
shared read-only between them.

=============================================================================
"""

import logging
import threading
import time
from typing import Optional, Set, Tuple

from .access_log import AccessLogger
from .config import ServerConfig
from .core import Connection, SocketServer
from .handlers import serve_static, services
from .http import (
    Dispatcher,
    HTTPResponse,
    ParsedRequest,
    RequestParser,
    RouteRegistry,
    internal_error,
    load_service_table,
)


logger = logging.getLogger(__name__)


class MicroServer:
    """
    Minimal HTTP/1.x server with exact-path routes and a static fallback.

    Usage:
        server = MicroServer(ServerConfig(port=8080, static_dir="public"))
        server.run()            # blocks until Ctrl+C / SIGTERM

    With custom routes:
        table = ServiceTable()

        @table.get("/ping")
        def ping():
            return "pong"

        server = MicroServer(registry=RouteRegistry.build(table.declarations()))
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        registry: Optional[RouteRegistry] = None,
    ):
        """
        Args:
            config: Server configuration. Defaults are used if not given.
            registry: Routes to serve. Defaults to config.services, or
                      the demo services when that is not set.

        Raises:
            ValueError: If the configuration is invalid.
            DuplicateRouteError: If the services declare a path twice.
            ImportError, AttributeError, TypeError: If config.services
                      cannot be loaded as a ServiceTable.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        if registry is None:
            table = services
            if self.config.services:
                table = load_service_table(self.config.services)
            registry = RouteRegistry.build(table.declarations())
        registry.freeze()
        self.registry = registry

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser(default_document=self.config.index_file)
        self._dispatcher = Dispatcher(
            registry,
            serve_static(self.config.static_dir),
            allowed_methods=self.config.allowed_methods,
        )
        self._access_log = AccessLogger(log_format=self.config.log_format)

        self._workers: Set[threading.Thread] = set()
        self._workers_lock = threading.Lock()

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening, even for port 0."""
        return self._socket_server.address

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start the server (blocking).

        Args:
            host: Override config host.
            port: Override config port.

        Raises:
            OSError: If the port cannot be bound or accept() fails.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()

        logger.info(f"Starting server on {self.config.host}:{self.config.port}")
        self._print_startup_banner()

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask the accept loop to stop. Safe from any thread."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    def _print_startup_banner(self):
        mode = "thread per connection" if self.config.threaded else "serial"
        print()
        print("╔══════════════════════════════════════════════════════════════╗")
        print(f"║  {self.config.server_name:<60}║")
        print(f"║  {'http://' + self.config.host + ':' + str(self.config.port):<60}║")
        print(f"║  {'Static files: ' + self.config.static_dir:<60}║")
        print(f"║  {'Mode: ' + mode:<60}║")
        print("║  Press Ctrl+C to stop                                        ║")
        print("╚══════════════════════════════════════════════════════════════╝")

        self.registry.print_routes()

    def _setup_logging(self):
        level = self.config.log_level_number

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("microserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")

        with self._workers_lock:
            workers = list(self._workers)

        for worker in workers:
            worker.join(timeout=self.config.timeout or 5.0)
            if worker.is_alive():
                logger.warning(f"Worker {worker.name} still running at shutdown")

        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Called by SocketServer for each accepted connection."""
        if not self.config.threaded:
            self._process_connection(conn)
            return

        worker = threading.Thread(
            target=self._run_worker,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        with self._workers_lock:
            self._workers.add(worker)
        worker.start()

    def _run_worker(self, conn: Connection):
        try:
            self._process_connection(conn)
        finally:
            with self._workers_lock:
                self._workers.discard(threading.current_thread())

    def _process_connection(self, conn: Connection):
        """
        Serve exactly one request on conn, then close it.

            read ─► parse ─► dispatch ─► write ─► close
              │
              └── timeout / nothing sent ─► close, no response
        """
        with conn:
            try:
                raw_request = conn.read_request()
            except TimeoutError as e:
                logger.warning(f"[{conn.id}] {e}, closing without a response")
                return

            if not raw_request:
                logger.debug(f"[{conn.id}] Client closed before sending a request")
                return

            request = ParsedRequest(path=self.config.index_file)
            try:
                request = self._parser.parse(raw_request)
                logger.debug(
                    f"[{conn.id}] {request.method} path={request.path} "
                    f"query={request.query_params}"
                )
                response = self._dispatcher.dispatch(request)
            except Exception as e:
                logger.exception(f"[{conn.id}] Unexpected error while serving request: {e}")
                response = internal_error()

            conn.mark_dispatched()
            self._send(conn, response)
            self._access_log.log(
                request, response, conn.client_ip, conn.created_at, request_id=conn.id
            )

    def _send(self, conn: Connection, response: HTTPResponse) -> bool:
        return conn.send_response(response.to_bytes(self.config.server_name))


def create_app(
    config: Optional[ServerConfig] = None,
    registry: Optional[RouteRegistry] = None,
) -> MicroServer:
    """
    Create a server application.

    Example:
        app = create_app(ServerConfig(port=3000, static_dir="site"))
        app.run()
    """
    return MicroServer(config, registry)
