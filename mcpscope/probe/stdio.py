"""Stdio probe.

Spawns the server, writes the initialize request, half-closes stdin and
watches stdout until a line carrying a JSON-RPC response is complete:

    Starting -> Running -> Connected | Failed | TimedOut

The process is stopped (SIGTERM, then SIGKILL after the grace period) on
every path before the probe returns.
"""

import asyncio
import codecs
import logging
from dataclasses import dataclass
from typing import Optional

from mcpscope.config.models import StdioTransport
from mcpscope.constants import MAX_STDOUT_BYTES, READ_CHUNK_SIZE, TransportType
from mcpscope.primitives.errors import (
    ProbeInconclusiveError,
    ProbeProtocolError,
    ProbeSpawnError,
    ProbeTimeoutError,
)
from mcpscope.primitives.jsonrpc import (
    JsonRpcRequest,
    extract_server_info,
    has_complete_response_line,
    has_mcp_marker,
    initialize_request,
)
from mcpscope.primitives.subprocess import SubprocessPrimitive
from mcpscope.probe.base import BaseProbe, ProbeStatus, VerificationResult

logger = logging.getLogger(__name__)


@dataclass
class StdoutBuffer:
    """Decoded stdout of one probe, capped at MAX_STDOUT_BYTES (oldest text dropped)."""

    text: str = ""

    def append(self, chunk: str) -> None:
        self.text += chunk
        if len(self.text) > MAX_STDOUT_BYTES:
            self.text = self.text[-MAX_STDOUT_BYTES:]


class StdioProbe(BaseProbe):
    """Handshake with a local subprocess over stdin/stdout."""

    transport = TransportType.STDIO

    def __init__(
        self,
        subprocess: Optional[SubprocessPrimitive] = None,
        request: Optional[JsonRpcRequest] = None,
    ):
        self.subprocess = subprocess or SubprocessPrimitive()
        self.request = request or initialize_request()

    async def _run(
        self, name: str, transport: StdioTransport, timeout_ms: int
    ) -> VerificationResult:
        if not transport.command:
            raise ProbeSpawnError("No command specified")

        logger.info("Verifying server: %s command: %s", name, transport.command)
        logger.debug("Full command args: %d arguments", len(transport.args))

        spawn = await self.subprocess.spawn(transport.command, transport.args, transport.env)
        if not spawn.success or spawn.process is None:
            raise ProbeSpawnError(spawn.error or f"Failed to start {transport.command}")

        process = spawn.process
        stdout = StdoutBuffer()
        stderr_task = asyncio.create_task(self._drain(process.stderr))
        try:
            async with asyncio.timeout(timeout_ms / 1000):
                await self._send_request(name, process)
                return await self._read_response(name, process, stdout)
        except TimeoutError:
            # A response line that never got its newline still counts.
            if has_mcp_marker(stdout.text):
                return self._connected(name, stdout.text)
            raise ProbeTimeoutError(timeout_ms) from None
        finally:
            await self._cleanup(name, process, stderr_task)

    async def _send_request(self, name: str, process: asyncio.subprocess.Process) -> None:
        """Write the request, then close stdin; nothing else is ever sent."""
        try:
            process.stdin.write(self.request.to_line())
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            # The process may already be gone; its output still decides.
            logger.debug("Failed to write to stdin for %s: %s", name, e)
        finally:
            process.stdin.close()

    async def _read_response(
        self,
        name: str,
        process: asyncio.subprocess.Process,
        stdout: StdoutBuffer,
    ) -> VerificationResult:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

        while True:
            chunk = await process.stdout.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            stdout.append(decoder.decode(chunk))
            # Replies can span several chunks; wait for the end of the line.
            if has_complete_response_line(stdout.text):
                return self._connected(name, stdout.text)

        stdout.append(decoder.decode(b"", final=True))
        output = stdout.text
        return_code = await process.wait()
        logger.debug("Process for %s exited with code %s", name, return_code)

        if has_mcp_marker(output, loose=True):
            return self._connected(name, output)
        if return_code != 0:
            raise ProbeProtocolError(f"Process exited with code {return_code}")
        raise ProbeInconclusiveError("Process exited without an MCP response")

    def _connected(self, name: str, output: str) -> VerificationResult:
        server_info = extract_server_info(output)
        logger.info("MCP %s connected: %s", name, server_info or "(no serverInfo)")
        return VerificationResult(
            name=name,
            status=ProbeStatus.CONNECTED,
            server_info=server_info,
        )

    async def _drain(self, stream: Optional[asyncio.StreamReader]) -> None:
        """Read and discard stderr so a chatty server never blocks on it."""
        if stream is None:
            return
        while await stream.read(READ_CHUNK_SIZE):
            pass

    async def _cleanup(
        self,
        name: str,
        process: asyncio.subprocess.Process,
        stderr_task: "asyncio.Task[None]",
    ) -> None:
        try:
            result = await self.subprocess.kill(process)
            if result.method == "killed":
                logger.debug("Force killed process for %s", name)
        except (OSError, RuntimeError) as e:
            logger.debug("Failed to kill process for %s: %s", name, e)

        stderr_task.cancel()
        await asyncio.gather(stderr_task, return_exceptions=True)
