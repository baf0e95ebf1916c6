"""mcpscope primitives: host capabilities and protocol building blocks."""

from mcpscope.primitives.errors import (
    ConfigReadError,
    ConfigWriteError,
    McpScopeError,
    ProbeError,
    ProbeInconclusiveError,
    ProbeProtocolError,
    ProbeSpawnError,
    ProbeTimeoutError,
    ProbeTransportError,
    ValidationError,
)
from mcpscope.primitives.http_client import HttpClientPrimitive, HttpResult
from mcpscope.primitives.jsonrpc import (
    JsonRpcRequest,
    JsonRpcResponse,
    decode_envelope,
    extract_server_info,
    has_complete_response_line,
    has_mcp_marker,
    initialize_request,
)
from mcpscope.primitives.subprocess import KillResult, SpawnResult, SubprocessPrimitive

__all__ = [
    # Errors
    "McpScopeError",
    "ConfigReadError",
    "ConfigWriteError",
    "ValidationError",
    "ProbeError",
    "ProbeSpawnError",
    "ProbeTimeoutError",
    "ProbeProtocolError",
    "ProbeInconclusiveError",
    "ProbeTransportError",
    # JSON-RPC
    "JsonRpcRequest",
    "JsonRpcResponse",
    "initialize_request",
    "decode_envelope",
    "extract_server_info",
    "has_mcp_marker",
    "has_complete_response_line",
    # Subprocess
    "SubprocessPrimitive",
    "SpawnResult",
    "KillResult",
    # HTTP Client
    "HttpClientPrimitive",
    "HttpResult",
]
