"""mcpscope add <id> (--command CMD [--arg A ...] [--env K=V ...] | --url URL [--header K=V ...])

Adds or updates a server spec. An existing spec with the same id is merged,
so fields this tool does not model are kept.
"""

from mcpscope.cli.output import parse_pairs, print_result
from mcpscope.cli.verbs import build_orchestrator
from mcpscope.config.models import HttpTransport, ServerSpec, StdioTransport
from mcpscope.constants import TransportType


def register(subparsers):
    p = subparsers.add_parser("add", help="Add or update an MCP server")
    p.add_argument("server_id", help="Server ID")
    target = p.add_mutually_exclusive_group(required=True)
    target.add_argument("--command", help="Executable for a stdio server")
    target.add_argument("--url", help="Endpoint for an HTTP/SSE server")
    p.add_argument("--arg", action="append", default=[], dest="args_list",
                   help="Command argument (repeatable)")
    p.add_argument("--env", action="append", default=[], dest="env_pairs",
                   help="Environment variable as KEY=VALUE (repeatable)")
    p.add_argument("--header", action="append", default=[], dest="header_pairs",
                   help="HTTP header as KEY=VALUE (repeatable)")
    p.add_argument("--type", dest="kind", choices=list(TransportType.HTTP_TYPES),
                   help="Declared remote transport type (default: undeclared)")
    p.add_argument("--name", dest="display_name", help="Display name")
    p.add_argument("--disabled", action="store_true",
                   help="Add the server disabled (for --project-path only, if given)")
    p.set_defaults(handler=handle)


def handle(args, project_path):
    if args.url:
        transport = HttpTransport(
            url=args.url,
            headers=parse_pairs(args.header_pairs, "--header"),
            kind=args.kind or TransportType.AUTO,
        )
    else:
        transport = StdioTransport(
            command=args.command,
            args=list(args.args_list),
            env=parse_pairs(args.env_pairs, "--env"),
        )

    spec = ServerSpec(id=args.server_id, transport=transport, display_name=args.display_name)
    orchestrator = build_orchestrator(args.home)
    store = orchestrator.upsert(spec, enabled=not args.disabled, project_path=project_path)
    print_result({
        "success": True,
        "id": spec.id,
        "enabled": not args.disabled,
        "store": store,
    })
