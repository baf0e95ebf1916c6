"""Probe result types and the shared probe boundary."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from mcpscope.primitives.errors import ProbeError

logger = logging.getLogger(__name__)


class ProbeStatus(str, Enum):
    """Terminal status of one probe.

    PENDING means the probe ended without a conclusive answer (timeout, or
    a clean exit with nothing recognizable); it never means "still running".
    """

    CONNECTED = "connected"
    FAILED = "failed"
    PENDING = "pending"


@dataclass
class VerificationResult:
    """Outcome of one probe."""

    name: str
    status: ProbeStatus
    server_info: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    duration_ms: float = 0.0
    transport: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self.status == ProbeStatus.CONNECTED

    @classmethod
    def from_error(
        cls, name: str, error: ProbeError, transport: Optional[str] = None
    ) -> "VerificationResult":
        return cls(
            name=name,
            status=ProbeStatus(error.status),
            error=error.message,
            transport=transport,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "serverInfo": self.server_info,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.transport is not None:
            data["transport"] = self.transport
        data["durationMs"] = round(self.duration_ms, 1)
        return data


class BaseProbe:
    """Runs one transport-specific handshake and folds errors into a result.

    Subclasses implement ``_run`` and raise ProbeError subclasses for every
    non-connected outcome.
    """

    transport = ""

    async def probe(self, name: str, transport: Any, timeout_ms: int) -> VerificationResult:
        start_time = time.time()
        try:
            result = await self._run(name, transport, timeout_ms)
        except ProbeError as e:
            log = logger.info if e.status == ProbeStatus.PENDING.value else logger.warning
            log("MCP server %s: %s", name, e.message)
            result = VerificationResult.from_error(name, e)
        result.transport = self.transport
        result.duration_ms = (time.time() - start_time) * 1000
        return result

    async def _run(self, name: str, transport: Any, timeout_ms: int) -> VerificationResult:
        raise NotImplementedError
