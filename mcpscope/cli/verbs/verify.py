"""mcpscope verify [--server ID] [--timeout MS]

Probes every enabled server (or one server, enabled or not) and prints one
status per server, sorted by name.
"""

from mcpscope.cli.output import die, print_result, run_async
from mcpscope.cli.verbs import build_orchestrator


def register(subparsers):
    p = subparsers.add_parser("verify", help="Check live connectivity of MCP servers")
    p.add_argument("--server", dest="server_id",
                   help="Verify a single server by ID (even if disabled)")
    p.set_defaults(handler=handle)


def handle(args, project_path):
    orchestrator = build_orchestrator(args.home, args.timeout)

    if args.server_id:
        try:
            results = [run_async(orchestrator.verify_one(args.server_id, project_path))]
        except KeyError:
            die(f"unknown MCP server: {args.server_id}")
    else:
        results = run_async(orchestrator.verify_all(project_path))

    results.sort(key=lambda r: r.name)
    print_result({
        "success": True,
        "connected": sum(1 for r in results if r.connected),
        "total": len(results),
        "results": [r.to_dict() for r in results],
    })
