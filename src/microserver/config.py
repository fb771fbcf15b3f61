"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Everything tunable about the server lives in one dataclass.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m microserver --port 3000                         │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── MICROSERVER_PORT=3000 python -m microserver               │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Configuration is validated once, at startup. A bad value stops the
server before it binds a socket.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple


LOG_FORMATS = ("text", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

MIN_BUFFER_SIZE = 64


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_timeout(value: str) -> Optional[float]:
    if value.strip().lower() in ("", "none", "off"):
        return None
    return float(value)


@dataclass
class ServerConfig:
    """
    Configuration for the server.

    Development:
        ServerConfig(log_level="DEBUG")

    Tests (OS-assigned port, temporary static root):
        ServerConfig(port=0, static_dir=str(tmp_path))
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """The port to listen on. 0 lets the OS pick a free port."""

    backlog: int = 128
    """Maximum number of queued, not yet accepted connections."""

    buffer_size: int = 1024
    """
    Maximum number of request bytes read per connection.
    Only the request line is used; anything past this is ignored.
    """

    timeout: Optional[float] = 30.0
    """
    Client socket timeout in seconds.
    None = block forever on a stalled client.
    """

    threaded: bool = False
    """
    Serve each connection in its own thread.
    False = one connection at a time, in accept order.
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    allowed_methods: Tuple[str, ...] = ("GET",)
    """
    Methods that are served. Others get 405 Method Not Allowed.
    An empty tuple serves every method as if it were GET.
    """

    services: Optional[str] = None
    """
    "module:attribute" of the ServiceTable to serve.
    None = the built-in demo services.
    """

    # ─────────────────────────────────────────────────────────────────────
    # STATIC FILES
    # ─────────────────────────────────────────────────────────────────────

    static_dir: str = "public"
    """Directory serving every path no route claims."""

    index_file: str = "index.html"
    """File served for "/" and for unparseable request lines."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' (Apache style) or 'json'."""

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "MicroServer/1.0"
    """Value of the Server response header."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        MICROSERVER_HOST         Bind address (default: 127.0.0.1)
        MICROSERVER_PORT         Port (default: 8080)
        MICROSERVER_STATIC_DIR   Static root (default: public)
        MICROSERVER_TIMEOUT      Client timeout, "none" disables (default: 30)
        MICROSERVER_THREADED     1/true/yes/on for a thread per connection
        MICROSERVER_BUFFER_SIZE  Request read limit in bytes (default: 1024)
        MICROSERVER_LOG_LEVEL    Logging level (default: INFO)
        MICROSERVER_LOG_FORMAT   text or json (default: text)
        MICROSERVER_SERVICES     module:attribute of a ServiceTable (default: demo)

        =====================================================================
        """
        defaults = cls()
        return cls(
            host=os.getenv("MICROSERVER_HOST", defaults.host),
            port=int(os.getenv("MICROSERVER_PORT", str(defaults.port))),
            static_dir=os.getenv("MICROSERVER_STATIC_DIR", defaults.static_dir),
            timeout=_env_timeout(os.getenv("MICROSERVER_TIMEOUT", str(defaults.timeout))),
            threaded=_env_bool(os.getenv("MICROSERVER_THREADED", "false")),
            buffer_size=int(os.getenv("MICROSERVER_BUFFER_SIZE", str(defaults.buffer_size))),
            log_level=os.getenv("MICROSERVER_LOG_LEVEL", defaults.log_level).upper(),
            log_format=os.getenv("MICROSERVER_LOG_FORMAT", defaults.log_format).lower(),
            services=os.getenv("MICROSERVER_SERVICES") or defaults.services,
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid value.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < MIN_BUFFER_SIZE:
            raise ValueError(f"buffer_size must be >= {MIN_BUFFER_SIZE}")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0 (or None to disable)")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Unknown log_format {self.log_format!r}. Use one of {LOG_FORMATS}.")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log_level {self.log_level!r}. Use one of {LOG_LEVELS}.")

        if not self.index_file or "/" in self.index_file:
            raise ValueError(f"index_file must be a plain file name: {self.index_file!r}")

    @property
    def log_level_number(self) -> int:
        return getattr(logging, self.log_level.upper())
