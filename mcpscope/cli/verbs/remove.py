"""mcpscope remove <id>"""

from mcpscope.cli.output import print_result
from mcpscope.cli.verbs import build_orchestrator


def register(subparsers):
    p = subparsers.add_parser("remove", help="Delete an MCP server from every scope")
    p.add_argument("server_id", help="Server ID")
    p.set_defaults(handler=handle)


def handle(args, project_path):
    orchestrator = build_orchestrator(args.home)
    removed = orchestrator.delete(args.server_id)
    print_result({"success": True, "id": args.server_id, "removed": removed})
