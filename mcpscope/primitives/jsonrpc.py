"""
JSON-RPC 2.0 envelope for the MCP initialize handshake

Builds the one request a probe ever sends and decodes whatever comes back.
Decoding is strict first (json.loads per line / per SSE data line); the text
scan is only a fallback for output that mixes logs and JSON on one line.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Union

from mcpscope.constants import (
    CLIENT_NAME,
    CLIENT_VERSION,
    JSONRPC_VERSION,
    LOOSE_MARKER,
    MAX_LINE_LENGTH,
    PROTOCOL_VERSION,
    RESPONSE_MARKERS,
)

_decoder = json.JSONDecoder()


@dataclass
class JsonRpcRequest:
    """JSON-RPC 2.0 request structure."""

    method: str
    params: Dict[str, Any]
    id: Union[str, int] = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": self.id,
            "method": self.method,
            "params": self.params,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def to_line(self) -> bytes:
        """Newline-terminated wire form for stdio transports."""
        return (self.to_json() + "\n").encode("utf-8")


def initialize_request(
    client_name: str = CLIENT_NAME,
    client_version: str = CLIENT_VERSION,
) -> JsonRpcRequest:
    """Create the MCP ``initialize`` request used for health checks."""
    return JsonRpcRequest(
        method="initialize",
        params={
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {},
            "clientInfo": {"name": client_name, "version": client_version},
        },
        id=1,
    )


@dataclass
class JsonRpcResponse:
    """JSON-RPC 2.0 response with every field optional."""

    jsonrpc: Optional[str] = None
    id: Optional[Union[str, int]] = None
    result: Optional[Any] = None
    error: Optional[Any] = None
    has_result: bool = False

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def is_envelope(self) -> bool:
        """True when the object looks like a JSON-RPC message at all."""
        return self.jsonrpc is not None or self.has_result or self.is_error

    @property
    def server_info(self) -> Optional[Dict[str, Any]]:
        if isinstance(self.result, dict):
            info = self.result.get("serverInfo")
            if isinstance(info, dict):
                return info
        return None

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        if isinstance(self.error, dict) and self.error.get("message"):
            return str(self.error["message"])
        return json.dumps(self.error)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JsonRpcResponse":
        return cls(
            jsonrpc=data.get("jsonrpc"),
            id=data.get("id"),
            result=data.get("result"),
            error=data.get("error"),
            has_result="result" in data,
        )

    @classmethod
    def from_json(cls, text: str) -> Optional["JsonRpcResponse"]:
        """Strictly decode ``text``; None unless it is a JSON object."""
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, ValueError):
            return None
        if not isinstance(data, dict):
            return None
        return cls.from_dict(data)


def has_mcp_marker(text: str, loose: bool = False) -> bool:
    """Check whether raw output contains a recognizable MCP response.

    ``loose`` also accepts the bare text ``MCP``, which is how servers that
    only log a banner before exiting are recognized.
    """
    if any(marker in text for marker in RESPONSE_MARKERS):
        return True
    return loose and LOOSE_MARKER in text


def has_complete_response_line(text: str) -> bool:
    """True once a line carrying a response marker has been newline-terminated."""
    end = text.rfind("\n")
    if end == -1:
        return False
    return has_mcp_marker(text[:end])


def _candidate_lines(text: str) -> Iterable[str]:
    for line in text.splitlines():
        if len(line) > MAX_LINE_LENGTH:
            continue
        line = line.strip()
        if line.startswith("data:"):
            line = line[5:].strip()
        if line:
            yield line


def decode_envelope(text: str) -> Optional[JsonRpcResponse]:
    """Find the first JSON-RPC envelope in raw output.

    Tries the whole text, then each line (SSE ``data:`` prefixes stripped),
    then an embedded object on any line that mentions ``serverInfo``.
    Lines longer than MAX_LINE_LENGTH are never inspected.
    """
    stripped = text.strip()
    if stripped and len(stripped) <= MAX_LINE_LENGTH:
        response = JsonRpcResponse.from_json(stripped)
        if response is not None and response.is_envelope:
            return response

    fallback = None
    for line in _candidate_lines(text):
        response = JsonRpcResponse.from_json(line)
        if response is None or not response.is_envelope:
            continue
        # Notifications can precede the reply; prefer a result or error.
        if response.has_result or response.is_error:
            return response
        if fallback is None:
            fallback = response

    for line in _candidate_lines(text):
        if '"serverInfo"' not in line:
            continue
        start = line.find("{")
        if start == -1:
            continue
        try:
            data, _ = _decoder.raw_decode(line, start)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(data, dict):
            response = JsonRpcResponse.from_dict(data)
            if response.server_info is not None:
                return response

    return fallback


def extract_server_info(text: str) -> Optional[Dict[str, Any]]:
    """Return ``result.serverInfo`` from raw output, if any can be decoded."""
    response = decode_envelope(text)
    if response is None:
        return None
    return response.server_info
