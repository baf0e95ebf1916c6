"""Tests for the JSON-RPC envelope."""

import json

from mcpscope.primitives.jsonrpc import (
    JsonRpcResponse,
    decode_envelope,
    extract_server_info,
    has_complete_response_line,
    has_mcp_marker,
    initialize_request,
)


class TestInitializeRequest:
    """The one request a probe sends."""

    def test_wire_form(self):
        """Compact JSON matching the MCP initialize handshake."""
        request = initialize_request()
        assert request.to_json() == (
            '{"jsonrpc":"2.0","id":1,"method":"initialize","params":'
            '{"protocolVersion":"2024-11-05","capabilities":{},'
            '"clientInfo":{"name":"codemoss-ide","version":"1.0.0"}}}'
        )

    def test_line_is_newline_terminated(self):
        line = initialize_request().to_line()
        assert line.endswith(b"\n")
        assert line.count(b"\n") == 1
        assert json.loads(line)["method"] == "initialize"

    def test_custom_client_info(self):
        request = initialize_request(client_name="other", client_version="2.0")
        assert request.params["clientInfo"] == {"name": "other", "version": "2.0"}


class TestJsonRpcResponse:
    """Explicit optional fields."""

    def test_server_info(self):
        response = JsonRpcResponse.from_dict(
            {"jsonrpc": "2.0", "id": 1, "result": {"serverInfo": {"name": "fs"}}}
        )
        assert response.is_envelope
        assert not response.is_error
        assert response.server_info == {"name": "fs"}

    def test_result_without_server_info(self):
        response = JsonRpcResponse.from_dict({"jsonrpc": "2.0", "id": 1, "result": {}})
        assert response.is_envelope
        assert response.server_info is None

    def test_null_result_still_counts(self):
        response = JsonRpcResponse.from_dict({"id": 1, "result": None})
        assert response.has_result
        assert response.is_envelope

    def test_error_message(self):
        response = JsonRpcResponse.from_dict(
            {"jsonrpc": "2.0", "id": 1, "error": {"code": -32600, "message": "Bad request"}}
        )
        assert response.is_error
        assert response.error_message == "Bad request"

    def test_error_without_message(self):
        response = JsonRpcResponse.from_dict({"error": {"code": 1}})
        assert response.error_message == '{"code": 1}'

    def test_plain_object_is_not_envelope(self):
        assert not JsonRpcResponse.from_dict({"hello": "world"}).is_envelope

    def test_from_json_rejects_non_objects(self):
        assert JsonRpcResponse.from_json("[1, 2]") is None
        assert JsonRpcResponse.from_json("not json") is None


class TestMarkers:
    """Raw-output markers."""

    def test_strict_markers(self):
        assert has_mcp_marker('{"jsonrpc": "2.0"}')
        assert has_mcp_marker('... "result": ...')
        assert not has_mcp_marker("Starting MCP server")

    def test_loose_marker(self):
        assert has_mcp_marker("Starting MCP server", loose=True)
        assert not has_mcp_marker("hello", loose=True)

    def test_complete_response_line(self):
        assert has_complete_response_line('{"jsonrpc": "2.0", "result": {}}\n')
        assert has_complete_response_line('{"jsonrpc": "2.0", "result": {}}\n{"jso')
        assert not has_complete_response_line('{"jsonrpc": "2.0", "result": {"ins')
        assert not has_complete_response_line("booting\n{\"jsonrpc\": \"2.0\"")


class TestDecodeEnvelope:
    """Strict decoding first, text scan as fallback."""

    def test_single_line(self):
        text = json.dumps({"jsonrpc": "2.0", "id": 1, "result": {"serverInfo": {"name": "a"}}})
        assert extract_server_info(text) == {"name": "a"}

    def test_log_lines_before_response(self):
        text = "\n".join([
            "server booting",
            json.dumps({"jsonrpc": "2.0", "method": "notifications/message", "params": {}}),
            json.dumps({"jsonrpc": "2.0", "id": 1, "result": {"serverInfo": {"name": "b"}}}),
        ])
        assert extract_server_info(text) == {"name": "b"}

    def test_notification_only_is_fallback(self):
        text = "log\n" + json.dumps({"jsonrpc": "2.0", "method": "ping"})
        response = decode_envelope(text)
        assert response is not None
        assert response.server_info is None

    def test_sse_data_prefix(self):
        payload = json.dumps({"jsonrpc": "2.0", "id": 1, "result": {"serverInfo": {"name": "c"}}})
        text = f"event: message\ndata: {payload}\n\n"
        assert extract_server_info(text) == {"name": "c"}

    def test_embedded_object(self):
        payload = json.dumps({"jsonrpc": "2.0", "id": 1, "result": {"serverInfo": {"name": "d"}}})
        text = f"[info] got reply {payload} trailing text"
        assert extract_server_info(text) == {"name": "d"}

    def test_overlong_line_is_skipped(self):
        payload = json.dumps({"jsonrpc": "2.0", "id": 1, "result": {"serverInfo": {"name": "e"}}})
        text = "x" * 10_001 + payload
        assert decode_envelope("noise\n" + text) is None

    def test_nothing_recognizable(self):
        assert decode_envelope("") is None
        assert decode_envelope("hello\nworld") is None
