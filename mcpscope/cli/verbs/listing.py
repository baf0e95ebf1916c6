"""mcpscope list [--project-path P]"""

from mcpscope.cli.output import print_result
from mcpscope.cli.verbs import build_orchestrator


def register(subparsers):
    p = subparsers.add_parser("list", help="List configured MCP servers with their enabled flag")
    p.set_defaults(handler=handle)


def handle(args, project_path):
    orchestrator = build_orchestrator(args.home)
    servers = orchestrator.list_resolved(project_path)
    print_result({
        "success": True,
        "servers": [server.to_dict() for server in servers],
    })
