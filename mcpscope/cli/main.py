"""mcpscope CLI entry point.

Maps shell verbs to the library operations: list, verify, add, remove and
validate. Every verb prints a JSON result on stdout.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from mcpscope.cli.output import fail
from mcpscope.cli.verbs import add, listing, remove, validate, verify
from mcpscope.constants import ENV_DEBUG
from mcpscope.primitives.errors import McpScopeError
from mcpscope.utils.logger import cleanup_old_logs, get_logger


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected milliseconds, got {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError("timeout must be positive")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcpscope",
        description="Resolve MCP server config and check live server status",
    )
    parser.add_argument(
        "--home",
        help="Base directory for the config stores (default: $MCPSCOPE_HOME or ~)",
    )
    parser.add_argument(
        "--project-path", "-p",
        default=None,
        help="Project whose disabled list applies (default: global only)",
    )
    parser.add_argument(
        "--timeout",
        type=_positive_int,
        default=None,
        help="Per-server probe budget in ms (default: $MCP_VERIFY_TIMEOUT or 8000)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="verb", required=True)

    listing.register(sub)
    verify.register(sub)
    add.register(sub)
    remove.register(sub)
    validate.register(sub)

    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        os.environ[ENV_DEBUG] = "true"
    get_logger("mcpscope", level=logging.DEBUG if args.debug else logging.INFO, home=args.home)
    cleanup_old_logs(home=args.home)

    # Project paths are opaque keys, used exactly as given
    project_path = args.project_path or None

    handler = args.handler
    try:
        handler(args, project_path)
    except McpScopeError as e:
        fail(e)


if __name__ == "__main__":
    main()
