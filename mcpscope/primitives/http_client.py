"""HTTP client primitive for the MCP initialize POST."""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx

from mcpscope.constants import MAX_STDOUT_BYTES
from mcpscope.primitives.jsonrpc import decode_envelope

logger = logging.getLogger(__name__)

EVENT_STREAM = "text/event-stream"


@dataclass
class HttpResult:
    """Result of HTTP request execution.

    Attributes:
        success: True for a 2xx response.
        status_code: HTTP status code.
        reason: HTTP reason phrase.
        body: Response body text (for event streams, the data read so far).
        headers: Response headers.
        duration_ms: Time taken in milliseconds.
        content_type: Media type of the response, lower-cased.
        error: ``"HTTP <code>: <reason>"`` for non-2xx responses.
        stream_events: ``data:`` payloads read from an event stream.
    """

    success: bool
    status_code: int
    reason: str
    body: str
    headers: Dict[str, str]
    duration_ms: int
    content_type: str = ""
    error: Optional[str] = None
    stream_events: List[str] = field(default_factory=list)

    @property
    def is_event_stream(self) -> bool:
        return self.content_type.startswith(EVENT_STREAM)


class HttpClientPrimitive:
    """Primitive for a single JSON POST.

    A fresh ``httpx.AsyncClient`` is opened per request and closed before
    returning, so nothing outlives the call. ``transport`` lets callers
    substitute an ``httpx.MockTransport``.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    async def post_json(
        self,
        url: str,
        content: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
    ) -> HttpResult:
        """POST ``content`` and read the response.

        Event-stream responses are read line by line and the read stops at
        the first ``data:`` payload that decodes as a JSON-RPC result or error, so
        a server that keeps the stream open does not hold the call.

        Raises:
            httpx.TimeoutException, httpx.RequestError: transport failures.
        """
        start_time = time.time()

        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        ) as client:
            async with client.stream(
                "POST",
                url,
                headers=headers or {},
                content=content,
            ) as response:
                content_type = response.headers.get("content-type", "").lower()
                success = 200 <= response.status_code < 300
                events: List[str] = []

                if not success:
                    body = ""
                elif content_type.startswith(EVENT_STREAM):
                    body = await self._read_event_stream(response, events)
                else:
                    body = (await response.aread()).decode(
                        response.encoding or "utf-8", errors="replace"
                    )

                duration_ms = int((time.time() - start_time) * 1000)
                return HttpResult(
                    success=success,
                    status_code=response.status_code,
                    reason=response.reason_phrase,
                    body=body,
                    headers=dict(response.headers),
                    duration_ms=duration_ms,
                    content_type=content_type,
                    error=None
                    if success
                    else f"HTTP {response.status_code}: {response.reason_phrase}",
                    stream_events=events,
                )

    async def _read_event_stream(
        self, response: httpx.Response, events: List[str]
    ) -> str:
        lines: List[str] = []
        size = 0
        async for line in response.aiter_lines():
            lines.append(line)
            size += len(line)
            if line.startswith("data:"):
                data = line[5:].strip()
                if data:
                    events.append(data)
                    envelope = decode_envelope(data)
                    # Notifications can precede the reply; keep reading past them.
                    if envelope is not None and (envelope.has_result or envelope.is_error):
                        break
            if size > MAX_STDOUT_BYTES:
                logger.debug("Event stream from %s exceeded read cap", response.url)
                break
        return "\n".join(lines)
