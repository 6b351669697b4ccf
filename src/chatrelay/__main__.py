"""
=============================================================================
CHAT RELAY CLI ENTRY POINT
=============================================================================

    # Run with defaults (localhost:8080)
    python -m chatrelay

    # Custom port, and open the chat page in a browser
    python -m chatrelay --port 3000 --open

    # Listen on all interfaces (for containers)
    python -m chatrelay --host 0.0.0.0

Environment variables (CHATRELAY_PORT etc., see ServerConfig.from_env)
provide the defaults; command-line arguments override them.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig
from .server import create_server


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    """Argument parser whose defaults come from the environment."""
    parser = argparse.ArgumentParser(
        prog="chatrelay",
        description="Broadcast chat relay over server-sent events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m chatrelay                      # Run with defaults
  python -m chatrelay --port 3000          # Custom port
  python -m chatrelay --host 0.0.0.0       # Listen on all interfaces
  python -m chatrelay --open               # Open the chat page in a browser
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host}, use 0.0.0.0 for containers)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # FEATURE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--open",
        action="store_true",
        help="Open the chat page in the default browser once listening"
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level.upper()})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"chatrelay {__version__}"
    )

    return parser


def main(argv=None):
    """Parse arguments, build the server, and run it until interrupted."""
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment configuration: {e}", file=sys.stderr)
        sys.exit(2)

    args = build_parser(defaults).parse_args(argv)

    defaults.host = args.host
    defaults.port = args.port
    defaults.open_browser = args.open
    defaults.log_level = args.log_level

    try:
        server = create_server(defaults)
        server.run()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
