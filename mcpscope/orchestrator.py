"""Verification orchestrator.

Resolves the configured servers, fans out one probe per enabled server and
collects one result each. It is also the entry point for config mutation,
which writes through the resolver to the store.
"""

import asyncio
import logging
from typing import List, Optional

from mcpscope.config.models import ResolvedServer, ServerSpec
from mcpscope.config.resolver import ConfigResolver
from mcpscope.probe import HttpProbe, StdioProbe, probe_server
from mcpscope.probe.base import ProbeStatus, VerificationResult
from mcpscope.utils.path_utils import get_verify_timeout_ms

logger = logging.getLogger(__name__)


class VerificationOrchestrator:
    """Concurrent status checks over the resolved server list."""

    def __init__(
        self,
        resolver: Optional[ConfigResolver] = None,
        stdio_probe: Optional[StdioProbe] = None,
        http_probe: Optional[HttpProbe] = None,
        timeout_ms: Optional[int] = None,
    ):
        self.resolver = resolver or ConfigResolver()
        self.stdio_probe = stdio_probe or StdioProbe()
        self.http_probe = http_probe or HttpProbe()
        self.timeout_ms = timeout_ms

    def _timeout(self, timeout_ms: Optional[int]) -> int:
        if timeout_ms is not None:
            return timeout_ms
        if self.timeout_ms is not None:
            return self.timeout_ms
        return get_verify_timeout_ms()

    async def verify_all(
        self,
        project_path: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> List[VerificationResult]:
        """Probe every enabled server concurrently.

        Returns one result per enabled server, in no particular order. A
        failing probe never aborts its siblings.

        Raises:
            ConfigReadError: the consulted store holds malformed JSON.
        """
        servers = await asyncio.to_thread(self.resolver.list_resolved, project_path)
        enabled = [server for server in servers if server.enabled]
        budget = self._timeout(timeout_ms)

        logger.info(
            "Verifying %d of %d MCP servers (timeout %dms)",
            len(enabled),
            len(servers),
            budget,
        )
        if not enabled:
            return []

        outcomes = await asyncio.gather(
            *(self._probe(server.spec, budget) for server in enabled),
            return_exceptions=True,
        )

        results: List[VerificationResult] = []
        for server, outcome in zip(enabled, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.error(
                    "Unexpected error verifying %s: %s", server.id, outcome, exc_info=outcome
                )
                outcome = VerificationResult(
                    name=server.id,
                    status=ProbeStatus.FAILED,
                    error=str(outcome) or type(outcome).__name__,
                )
            results.append(outcome)

        connected = sum(1 for r in results if r.connected)
        logger.info("Verification finished: %d/%d connected", connected, len(results))
        return results

    async def verify_one(
        self,
        server_id: str,
        project_path: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> VerificationResult:
        """Probe one configured server, enabled or not.

        Raises:
            KeyError: no valid server with that id.
        """
        server = await asyncio.to_thread(self.resolver.get, server_id, project_path)
        return await self._probe(server.spec, self._timeout(timeout_ms))

    async def _probe(self, spec: ServerSpec, timeout_ms: int) -> VerificationResult:
        return await probe_server(
            spec,
            timeout_ms,
            stdio_probe=self.stdio_probe,
            http_probe=self.http_probe,
        )

    def list_resolved(self, project_path: Optional[str] = None) -> List[ResolvedServer]:
        return self.resolver.list_resolved(project_path)

    def upsert(
        self,
        spec: ServerSpec,
        enabled: bool = True,
        project_path: Optional[str] = None,
    ) -> str:
        return self.resolver.upsert(spec, enabled, project_path)

    def delete(self, server_id: str) -> bool:
        return self.resolver.delete(server_id)
