"""mcpscope: MCP server config resolution and live status verification."""

__version__ = "0.1.0"

from mcpscope.config import ConfigResolver, ConfigStore, ResolvedServer, ServerSpec
from mcpscope.orchestrator import VerificationOrchestrator
from mcpscope.probe import ProbeStatus, VerificationResult, probe_server

__all__ = [
    "ConfigStore",
    "ConfigResolver",
    "ServerSpec",
    "ResolvedServer",
    "VerificationOrchestrator",
    "ProbeStatus",
    "VerificationResult",
    "probe_server",
]
