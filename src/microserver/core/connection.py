"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for the lifetime of exactly one
request/response exchange.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

There is no keep-alive. Every accepted socket serves a single request
and is then closed:

    ┌─────────────────────────────────────────────────────────────────┐
    │                                                                  │
    │   Request 1:   TCP Connect → Read → Dispatch → Write → Close    │
    │   Request 2:   TCP Connect → Read → Dispatch → Write → Close    │
    │                                                                  │
    │   Every response carries "Connection: close".                    │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

=============================================================================
READING THE REQUEST
=============================================================================

TCP is a byte stream: the request line may arrive in several recv()
chunks. Only the request line is needed (headers and body are ignored),
so reading stops at the first of:

    1. "\n" seen            the request line is complete ("\r\n" or bare "\n")
    2. buffer_size bytes    longer requests are truncated, not rejected
    3. EOF                  the client stopped sending
    4. timeout              after at least one byte: use what arrived

    recv() → b"GET /gree"
    recv() → b"ting?name=Nicolas HTTP/1.1\r\nHost: ..."
                                         ^^^^ stop here
    data   = b"GET /greeting?name=Nicolas HTTP/1.1\r\nHost: ..."

A client that sends nothing at all is bounded by the socket timeout:
read_request() raises TimeoutError and the connection is closed without
a response. Partial input is parsed like any other request, so it still
gets an answer.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    ACCEPTED ──► REQUEST_READ ──► DISPATCHED ──► RESPONSE_WRITTEN
        │             │               │                  │
        │             │               │                  ▼
        └─────────────┴───────────────┴──────────────► CLOSED

Any state can go straight to CLOSED (timeout, client reset, failure).
close() is idempotent and always releases the socket.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Tuple
import uuid


logger = logging.getLogger(__name__)


# Upper bounds on discarding unread input in close()
DRAIN_LIMIT = 64 * 1024
DRAIN_TIMEOUT = 0.5


class ConnectionState(Enum):
    """Connection lifecycle states."""
    ACCEPTED = "accepted"                  # Socket accepted, nothing read yet
    REQUEST_READ = "request_read"          # Request bytes are in hand
    DISPATCHED = "dispatched"              # Response has been produced
    RESPONSE_WRITTEN = "response_written"  # Response bytes sent
    CLOSED = "closed"                      # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Usage:
        with Connection(socket=client_socket, address=addr) as conn:
            data = conn.read_request()
            conn.mark_dispatched()
            conn.send_response(response.to_bytes())
        # socket closed here, whatever happened inside

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier for log lines.
        state: Current ConnectionState.
        created_at: Timestamp when the connection was accepted.
        buffer_size: Maximum number of request bytes read.
        timeout: Read/write deadline in seconds (None = block forever).
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.ACCEPTED
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 1024
    timeout: Optional[float] = 30.0

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> bytes:
        """
        Read the request, bounded by buffer_size.

        Returns:
            The bytes received (possibly truncated, possibly empty if the
            client closed without sending anything). A timeout after some
            bytes arrived returns those bytes.

        Raises:
            TimeoutError: If the client sent nothing before the socket
                          timeout.
        """
        data = b""

        try:
            while len(data) < self.buffer_size:
                chunk = self._recv(self.buffer_size - len(data))
                if not chunk:
                    break
                data += chunk
                if b"\n" in data:
                    break
        except socket.timeout:
            if not data:
                raise TimeoutError(
                    f"No request from {self.client_ip} within {self.timeout}s"
                )
            logger.debug(f"[{self.id}] Timed out mid-request, using {len(data)} bytes")

        self.state = ConnectionState.REQUEST_READ
        return data

    def _recv(self, size: int) -> bytes:
        try:
            return self.socket.recv(size)
        except (ConnectionResetError, BrokenPipeError):
            # Client disconnected abruptly
            return b""

    def mark_dispatched(self) -> None:
        self.state = ConnectionState.DISPATCHED

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes to the client with sendall().

        Returns:
            True if sent, False if the client had gone away.
        """
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

        self.state = ConnectionState.RESPONSE_WRITTEN
        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        shutdown(SHUT_WR) sends FIN so the client sees the end of the
        response, unread request bytes are drained (bounded, see _drain),
        then the file descriptor is released.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        self._drain()

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age * 1000:.2f}ms")

    def _drain(self) -> int:
        """
        Discard unread request bytes so close() does not reset the
        connection before the client has read the response.

        Stops at EOF, after DRAIN_LIMIT bytes, or after DRAIN_TIMEOUT
        seconds in total, whichever comes first.

        Returns:
            Number of bytes discarded.
        """
        drained = 0
        deadline = time.monotonic() + DRAIN_TIMEOUT

        try:
            while drained < DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # Timed out or reset

        return drained

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
