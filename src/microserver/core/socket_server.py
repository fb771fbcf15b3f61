"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket: bind, listen, accept, and hand every accepted
client to a callback as a Connection.

=============================================================================
SOCKET LIFECYCLE
=============================================================================

    socket()  →  bind(host, port)  →  listen(backlog)  →  accept() ...
                                                              │
                    ┌─────────────────────────────────────────┘
                    ▼
              ┌───────────┐    connection_handler(conn)
              │ Client    │ ──────────────────────────────►  MicroServer
              │ Socket    │
              └───────────┘

accept() returns a new socket for each client; the listening socket
keeps listening.

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR   rebind immediately after a restart (no TIME_WAIT wait)
SO_REUSEPORT   where the platform has it
TCP_NODELAY    send small responses immediately (no Nagle delay)

The listening socket has a 1 second timeout. accept() therefore wakes up
once per second, which is when the loop notices shutdown():

    while running:
        try:
            accept()          # at most 1 second
        except timeout:
            continue          # re-check running

=============================================================================
FAILURE MODEL
=============================================================================

    bind() fails            → logged, re-raised (server never starts)
    accept() times out      → normal, loop again
    accept() fails, running → logged as critical, re-raised (fatal)
    accept() fails, stopped → the socket was closed by shutdown, exit

SIGINT / SIGTERM trigger shutdown(). Signal handlers can only be
installed from the main thread; when started from any other thread
(tests, embedding) the server runs without them.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            with conn:
                ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, buffer size,
                    timeout). The socket is created in start(), not here.
        """
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._bound_address: Optional[Tuple[str, int]] = None
        self._shutdown_event = threading.Event()
        self._ready_event = threading.Event()
        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """
        The listening address.

        After start() this is the address actually bound, so a configured
        port of 0 reports the port the OS picked.
        """
        return self._bound_address or (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
        except (AttributeError, OSError):
            pass  # Not available on this platform

        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # Poll interval for the shutdown check
        sock.settimeout(1.0)

        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers that call shutdown()."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in the main thread, signal handlers not installed")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and accept connections until shutdown().

        This method BLOCKS.

        Args:
            connection_handler: Called with each accepted Connection. It
                                owns the connection and must close it.

        Raises:
            OSError: If binding fails, or accept() fails while running.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._running = True
        self._shutdown_event.clear()
        self._setup_signals()

        host, port = self._bound_address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections and hand them off, one at a time.

            while running:
                accept()              (≤ 1 s, then re-check)
                Connection(...)       wrap with buffer size and timeout
                connection_handler()  serve inline or spawn a worker
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break  # Listening socket closed by shutdown()
                logger.critical(f"Accept failed, stopping server: {e}")
                raise

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
            )

            connection_handler(conn)

    def shutdown(self):
        """
        Stop accepting connections. Idempotent, callable from any thread
        or a signal handler. The loop exits within one poll interval.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._running = False
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._shutdown_event.set()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Wait until the socket is listening. Returns False on timeout."""
        return self._ready_event.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Wait for the server to stop. Returns False on timeout."""
        return self._shutdown_event.wait(timeout)
