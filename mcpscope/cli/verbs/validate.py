"""mcpscope validate '<json>'"""

import sys

from mcpscope.cli.output import parse_json_object, print_result
from mcpscope.config.resolver import ConfigResolver


def register(subparsers):
    p = subparsers.add_parser("validate", help="Validate a raw MCP server spec")
    p.add_argument("spec_json", help="Server spec as a JSON object")
    p.set_defaults(handler=handle)


def handle(args, project_path):
    raw = parse_json_object(args.spec_json, "spec")
    errors = ConfigResolver.validate(raw)
    print_result({
        "success": not errors,
        "valid": not errors,
        "errors": [e.to_dict() for e in errors],
    })
    if errors:
        sys.exit(2)
