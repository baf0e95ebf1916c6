"""Connectivity probes: one handshake per server, per transport."""

from typing import Optional

from mcpscope.config.models import ServerSpec
from mcpscope.probe.base import BaseProbe, ProbeStatus, VerificationResult
from mcpscope.probe.http import HttpProbe
from mcpscope.probe.stdio import StdioProbe
from mcpscope.utils.path_utils import get_verify_timeout_ms


async def probe_server(
    spec: ServerSpec,
    timeout_ms: Optional[int] = None,
    stdio_probe: Optional[StdioProbe] = None,
    http_probe: Optional[HttpProbe] = None,
) -> VerificationResult:
    """Probe one server with the transport its spec selects.

    Never raises for probe outcomes; failures come back as FAILED or
    PENDING results.
    """
    if timeout_ms is None:
        timeout_ms = get_verify_timeout_ms()

    if spec.is_http:
        probe: BaseProbe = http_probe or HttpProbe()
    else:
        probe = stdio_probe or StdioProbe()
    return await probe.probe(spec.id, spec.transport, timeout_ms)


__all__ = [
    "BaseProbe",
    "HttpProbe",
    "ProbeStatus",
    "StdioProbe",
    "VerificationResult",
    "probe_server",
]
