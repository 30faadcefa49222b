"""
=============================================================================
ONESHOT CLI ENTRY POINT
=============================================================================

    python -m oneshot <port>
    oneshot <port>                 # console script installed by pip

    # See what the server is doing (logs go to stderr)
    python -m oneshot 5000 --log-level INFO

=============================================================================
EXIT STATUS
=============================================================================

    0   One client was served
    1   No port given, or a socket call failed

Diagnostics go to stderr, the received message goes to stdout:

    ERROR, no port provided
    ERROR on binding: Address already in use
    Here is the message: hello

=============================================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig
from .core import OneShotServer
from .errors import FatalSystemCallFailure


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oneshot",
        description="Accept one TCP client, print its message, reply and exit",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m oneshot 5000                    # Serve one client on port 5000
  python -m oneshot 5000 -l INFO            # Same, with lifecycle logs
        """
    )

    # Optional at the argparse level so we can print our own diagnostic
    parser.add_argument(
        "port",
        nargs="?",
        default=None,
        help="Port to listen on (0 lets the OS choose)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"oneshot {__version__}"
    )

    return parser


def setup_logging(log_level: str) -> None:
    """Configure logging to stderr at the given level."""
    level = getattr(logging, log_level.upper(), logging.WARNING)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("oneshot").setLevel(level)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the server once and return the process exit status.

    No socket is created when the port is missing.
    """
    args = build_parser().parse_args(argv)

    if args.port is None:
        print("ERROR, no port provided", file=sys.stderr)
        return 1

    try:
        config = ServerConfig.from_argument(args.port, log_level=args.log_level)
        setup_logging(config.log_level)
        OneShotServer(config).run()
    except FatalSystemCallFailure as e:
        print(e.message, file=sys.stderr)
        return 1

    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
