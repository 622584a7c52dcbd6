"""
=============================================================================
CLI ENTRY POINT
=============================================================================

    # Serve the current directory on port 8080
    python -m staticweb

    # Custom port (positional, like the classic "java WebServer 8080")
    python -m staticweb 3000

    # Serve another directory, verbose logging
    python -m staticweb 3000 --root ./public --log-level DEBUG

Environment variables (see ServerConfig.from_env) provide the defaults;
command-line arguments override them.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig, MIME_STRATEGIES, LOG_FORMATS
from .server import WebServer


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="staticweb",
        description="Serve files over HTTP/1.1, one request per connection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m staticweb                       # Port 8080, current directory
  python -m staticweb 3000                  # Custom port
  python -m staticweb --host 0.0.0.0        # Listen on all interfaces
  python -m staticweb --root ./public       # Serve another directory
        """
    )

    parser.add_argument(
        "port",
        nargs="?",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)"
    )

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)"
    )

    parser.add_argument(
        "--root", "-r",
        default=None,
        help="Document root (default: current directory)"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Seconds to wait for a client's request (default: 30)"
    )

    parser.add_argument(
        "--mime-strategy",
        choices=MIME_STRATEGIES,
        default=None,
        help="Content-type classification (default: table)"
    )

    parser.add_argument(
        "--no-enforce-root",
        action="store_true",
        help="Allow targets that resolve outside the document root"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"staticweb {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Apply command-line overrides on top of the environment config."""
    config = ServerConfig.from_env()

    if args.port is not None:
        config.port = args.port
    if args.host is not None:
        config.host = args.host
    if args.root is not None:
        config.document_root = args.root
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.mime_strategy is not None:
        config.mime_strategy = args.mime_strategy
    if args.no_enforce_root:
        config.enforce_root = False
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    return config


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = WebServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
