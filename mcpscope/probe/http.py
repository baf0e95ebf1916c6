"""HTTP/SSE probe.

One POST of the initialize envelope, no retry. The response decides:

- non-2xx                               -> failed, "HTTP <code>: <reason>"
- result.serverInfo                     -> connected with the payload
- top-level error                       -> failed with error.message
- JSON-RPC shape without serverInfo     -> connected
- not JSON but contains an MCP marker   -> connected
- anything else                         -> failed with a body excerpt
- budget exhausted                      -> pending
"""

import asyncio
import json
import logging
from typing import Any, Optional, Tuple

import httpx

from mcpscope.config.models import HttpTransport
from mcpscope.constants import BODY_EXCERPT_LENGTH, TransportType
from mcpscope.primitives.errors import (
    ProbeProtocolError,
    ProbeTimeoutError,
    ProbeTransportError,
)
from mcpscope.primitives.http_client import HttpClientPrimitive, HttpResult
from mcpscope.primitives.jsonrpc import (
    JsonRpcRequest,
    JsonRpcResponse,
    has_mcp_marker,
    initialize_request,
)
from mcpscope.probe.base import BaseProbe, ProbeStatus, VerificationResult

logger = logging.getLogger(__name__)

BASE_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json, text/event-stream",
}


def describe_transport_error(error: BaseException) -> str:
    """Error text with the underlying cause appended, when there is one."""
    detail = str(error) or type(error).__name__
    cause = error.__cause__ or error.__context__
    if cause is not None and str(cause) and str(cause) not in detail:
        detail += f" ({cause})"
    return detail


class HttpProbe(BaseProbe):
    """Handshake with a remote endpoint over a single POST."""

    transport = TransportType.HTTP

    def __init__(
        self,
        http_client: Optional[HttpClientPrimitive] = None,
        request: Optional[JsonRpcRequest] = None,
    ):
        self.http_client = http_client or HttpClientPrimitive()
        self.request = request or initialize_request()

    async def _run(
        self, name: str, transport: HttpTransport, timeout_ms: int
    ) -> VerificationResult:
        if not transport.url:
            raise ProbeProtocolError("No URL specified for HTTP/SSE server")

        logger.info(
            "Verifying HTTP/SSE server: %s url: %s type: %s",
            name,
            transport.url,
            transport.kind,
        )
        headers = {**BASE_HEADERS, **transport.headers}
        timeout = timeout_ms / 1000

        try:
            async with asyncio.timeout(timeout):
                response = await self.http_client.post_json(
                    transport.url,
                    self.request.to_json(),
                    headers=headers,
                    timeout=timeout,
                )
        except (TimeoutError, httpx.TimeoutException):
            raise ProbeTimeoutError(timeout_ms) from None
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as e:
            raise ProbeTransportError(describe_transport_error(e)) from e

        logger.debug(
            "HTTP response from %s: status=%s, contentType=%s",
            name,
            response.status_code,
            response.content_type,
        )
        if not response.success:
            raise ProbeProtocolError(response.error)

        return self._interpret(name, response)

    def _interpret(self, name: str, response: HttpResult) -> VerificationResult:
        body = response.body
        data, parse_error = self._decode(response)

        if parse_error is None:
            envelope = JsonRpcResponse.from_dict(data) if isinstance(data, dict) else None
            if envelope is not None and envelope.server_info is not None:
                logger.info("HTTP MCP %s connected: %s", name, envelope.server_info)
                return VerificationResult(
                    name=name,
                    status=ProbeStatus.CONNECTED,
                    server_info=envelope.server_info,
                )
            if envelope is not None and envelope.is_error:
                raise ProbeProtocolError(envelope.error_message)
            if envelope is not None and envelope.is_envelope:
                logger.info("HTTP MCP %s connected (no serverInfo)", name)
                return VerificationResult(name=name, status=ProbeStatus.CONNECTED)
            raise ProbeProtocolError(
                f"Invalid MCP response format: {body[:BODY_EXCERPT_LENGTH]}"
            )

        if has_mcp_marker(body):
            logger.info("HTTP MCP %s connected (non-JSON response)", name)
            return VerificationResult(name=name, status=ProbeStatus.CONNECTED)

        raise ProbeProtocolError(
            f"Invalid JSON response: {parse_error}. Response: {body[:BODY_EXCERPT_LENGTH]}"
        )

    def _decode(self, response: HttpResult) -> Tuple[Any, Optional[str]]:
        """Decode the body as JSON, or the first JSON ``data:`` event of a stream.

        Returns:
            (data, None) on success, (None, reason) otherwise.
        """
        if response.is_event_stream:
            first_envelope = None
            first_json = None
            for event in response.stream_events:
                try:
                    data = json.loads(event)
                except (json.JSONDecodeError, ValueError):
                    continue
                if isinstance(data, dict):
                    envelope = JsonRpcResponse.from_dict(data)
                    # Notifications can precede the reply; prefer a result or error.
                    if envelope.has_result or envelope.is_error:
                        return data, None
                    if envelope.is_envelope and first_envelope is None:
                        first_envelope = (data,)
                if first_json is None:
                    first_json = (data,)
            for candidate in (first_envelope, first_json):
                if candidate is not None:
                    return candidate[0], None
            return None, "no JSON data event in event stream"

        try:
            return json.loads(response.body), None
        except (json.JSONDecodeError, ValueError) as e:
            return None, str(e)
