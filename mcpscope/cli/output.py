"""Shared output utilities for CLI verbs."""

import asyncio
import json
import sys
from typing import Any, Coroutine, Dict, List, NoReturn

from mcpscope.primitives.errors import McpScopeError, ValidationError


def run_async(coro: Coroutine) -> Any:
    """Run an async coroutine from sync context."""
    return asyncio.run(coro)


def print_result(result: Any, compact: bool = False) -> None:
    """Print a result as JSON to stdout."""
    indent = None if compact else 2
    print(json.dumps(result, indent=indent, default=str))


def die(msg: str, code: int = 1) -> NoReturn:
    """Print error to stderr and exit."""
    print(f"error: {msg}", file=sys.stderr)
    sys.exit(code)


def fail(error: McpScopeError) -> NoReturn:
    """Print a failed result for ``error`` and exit.

    Validation errors exit with 2, everything else with 1.
    """
    result: Dict[str, Any] = {"success": False, "error": str(error)}
    if isinstance(error, ValidationError):
        result["errors"] = [error.to_dict()]
        code = 2
    else:
        path = getattr(error, "path", None)
        if path is not None:
            result["path"] = str(path)
        code = 1
    print_result(result)
    sys.exit(code)


def parse_json_object(raw: str, flag: str) -> Dict:
    """Parse a JSON object argument, exiting on invalid JSON."""
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        die(f"invalid JSON in {flag}: {e}", code=2)
    if not isinstance(value, dict):
        die(f"{flag} must be a JSON object", code=2)
    return value


def parse_pairs(items: List[str], flag: str) -> Dict[str, str]:
    """Parse repeated ``KEY=VALUE`` arguments."""
    pairs: Dict[str, str] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            die(f"{flag} expects KEY=VALUE, got {item!r}", code=2)
        pairs[key] = value
    return pairs
