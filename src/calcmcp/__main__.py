# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Run the calculator server over STDIO.

Usage::

    $ python -m calcmcp --debug
    $ calcmcp-stdio --request-timeout 30
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import Sequence

import anyio

from . import __version__
from .calculator import create_calculator_server
from .server import DispatchConfig
from .server.lifecycle import EXIT_DATA_ERROR, EXIT_OK, EXIT_SOFTWARE, serve
from .utils import get_logger, setup_logger


EPILOG = f"""\
exit codes:
  {EXIT_OK}   input closed or SIGINT/SIGTERM received
  {EXIT_DATA_ERROR}  malformed envelope on stdin (unless --lenient)
  {EXIT_SOFTWARE}  internal error

environment:
  CALCMCP_LOG_LEVEL   log level (default INFO)
  CALCMCP_LOG_JSON    emit JSON log lines when set to 1/true
  NO_COLOR            disable colored log output
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calcmcp-stdio",
        description="Calculator server speaking newline-delimited JSON-RPC on stdin/stdout. Logs go to stderr.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--debug", action="store_true", help="enable DEBUG logging")
    parser.add_argument("--log-json", action="store_true", help="write logs as JSON lines")
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="cancel handlers running longer than SECONDS and answer with a timeout error",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="answer malformed envelopes with an error instead of exiting",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.request_timeout is not None and args.request_timeout <= 0:
        build_parser().error("--request-timeout must be positive")

    setup_logger(level="DEBUG" if args.debug else None, use_json=True if args.log_json else None, force=True)
    logger = get_logger("calcmcp.lifecycle")

    config = DispatchConfig(request_timeout=args.request_timeout, fatal_decode_errors=not args.lenient)
    server = create_calculator_server(config=config)
    logger.info("Starting %s %s", server.name, server.version)

    return anyio.run(serve, server.serve_stdio)


def run() -> None:
    code = main()
    sys.stdout.flush()
    sys.stderr.flush()
    # A worker thread may still be blocked reading stdin.
    os._exit(code)


if __name__ == "__main__":
    run()
