"""
=============================================================================
MICROSERVER CLI ENTRY POINT
=============================================================================

    # Run with defaults (127.0.0.1:8080, static files from ./public)
    python -m microserver

    # Custom port and static root
    python -m microserver --port 3000 --static ./site

    # One thread per connection instead of serial handling
    python -m microserver --threaded

    # Accept any method (treated like GET)
    python -m microserver --allow-any-method

    # Serve the ServiceTable "services" from module myapp.routes
    python -m microserver --services myapp.routes:services

Settings not given on the command line come from MICROSERVER_* environment
variables, then from the ServerConfig defaults.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import LOG_FORMATS, LOG_LEVELS, ServerConfig
from .server import MicroServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="microserver",
        description="Minimal HTTP server with exact-path routes and a static file fallback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m microserver                      # Run with defaults
  python -m microserver --port 3000          # Custom port
  python -m microserver --host 0.0.0.0       # Listen on all interfaces
  python -m microserver --static ./public    # Static file root
  python -m microserver --threaded           # Thread per connection
  python -m microserver --services app:table # Serve your own routes
  python -m microserver --log-format json    # JSON access log
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        help="Host to bind to (default: 127.0.0.1)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        help="Port to listen on (default: 8080, 0 picks a free port)"
    )

    parser.add_argument(
        "--buffer-size",
        type=int,
        help="Maximum request bytes read per connection (default: 1024)"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        help="Client read timeout in seconds (default: 30)"
    )

    parser.add_argument(
        "--threaded", "-t",
        action="store_true",
        default=None,
        help="Serve each connection in its own thread"
    )

    # ─────────────────────────────────────────────────────────────────────
    # HTTP ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--static", "-s",
        help="Directory to serve static files from (default: public)"
    )

    parser.add_argument(
        "--allow-any-method",
        action="store_true",
        help="Serve every method like GET instead of answering 405"
    )

    parser.add_argument(
        "--services",
        metavar="MODULE:ATTR",
        help="ServiceTable to serve, e.g. myapp.routes:services (default: demo services)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        type=str.upper,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"microserver {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """
    Build the configuration: environment first, then CLI overrides.
    """
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.buffer_size is not None:
        config.buffer_size = args.buffer_size
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.threaded:
        config.threaded = True
    if args.static is not None:
        config.static_dir = args.static
    if args.allow_any_method:
        config.allowed_methods = ()
    if args.services is not None:
        config.services = args.services
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    return config


def main(argv=None):
    """CLI entry point. Exits 1 on configuration or listener errors."""
    args = build_parser().parse_args(argv)

    try:
        server = MicroServer(config_from_args(args))
        server.run()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
