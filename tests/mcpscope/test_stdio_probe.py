"""Tests for the stdio probe against scripted fake servers."""

import asyncio
import os
import time

import pytest

from mcpscope.config.models import StdioTransport
from mcpscope.primitives.subprocess import SpawnResult, SubprocessPrimitive
from mcpscope.probe import StdioProbe
from mcpscope.probe.base import ProbeStatus


def pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


@pytest.mark.asyncio
class TestStdioProbe:
    """Starting -> Running -> Connected | Failed | TimedOut."""

    async def test_connected_with_server_info(self, fake_server, recording_subprocess):
        probe = StdioProbe(subprocess=recording_subprocess)
        start = time.monotonic()
        result = await probe.probe("fake", fake_server("responding"), timeout_ms=8000)
        assert time.monotonic() - start < 8
        assert result.status == ProbeStatus.CONNECTED
        assert result.server_info == {"name": "fake-server", "version": "0.0.1"}
        assert result.error is None
        assert result.transport == "stdio"
        assert result.duration_ms > 0
        assert len(recording_subprocess.kills) == 1

    @pytest.mark.skipif(os.name == "nt", reason="POSIX process checks")
    async def test_lingering_server_is_stopped(self, fake_server, recording_subprocess):
        probe = StdioProbe(subprocess=recording_subprocess)
        result = await probe.probe("fake", fake_server("lingering"), timeout_ms=8000)
        assert result.status == ProbeStatus.CONNECTED
        assert result.server_info["name"] == "fake-server"
        [pid] = recording_subprocess.pids
        assert not pid_alive(pid)

    @pytest.mark.skipif(os.name == "nt", reason="POSIX process checks")
    async def test_timeout_is_pending_and_reaped(self, fake_server, recording_subprocess):
        probe = StdioProbe(subprocess=recording_subprocess)
        start = time.monotonic()
        result = await probe.probe("slow", fake_server("stubborn"), timeout_ms=1500)
        elapsed = time.monotonic() - start
        assert result.status == ProbeStatus.PENDING
        assert result.error == "Connection timeout after 1500ms"
        assert elapsed < 1.5 + 0.5 + 1.5
        [kill] = recording_subprocess.kills
        assert kill.method == "killed"
        await asyncio.sleep(1)
        assert not pid_alive(kill.pid)

    async def test_nonzero_exit_is_failed(self, fake_server):
        result = await StdioProbe().probe("crash", fake_server("crashing"), timeout_ms=8000)
        assert result.status == ProbeStatus.FAILED
        assert result.error == "Process exited with code 1"

    async def test_clean_exit_without_response_is_pending(self, fake_server):
        result = await StdioProbe().probe("quiet", fake_server("silent"), timeout_ms=8000)
        assert result.status == ProbeStatus.PENDING
        assert "without an MCP response" in result.error

    async def test_banner_counts_as_connected(self, fake_server):
        result = await StdioProbe().probe("banner", fake_server("banner"), timeout_ms=8000)
        assert result.status == ProbeStatus.CONNECTED
        assert result.server_info is None

    async def test_reply_spanning_several_chunks(self, fake_server):
        result = await StdioProbe().probe("big", fake_server("large_reply"), timeout_ms=8000)
        assert result.status == ProbeStatus.CONNECTED
        assert result.server_info == {"name": "big", "version": "1"}

    async def test_unterminated_reply_counts_at_timeout(self, fake_server):
        result = await StdioProbe().probe("partial", fake_server("unterminated"), timeout_ms=1500)
        assert result.status == ProbeStatus.CONNECTED
        assert result.server_info == {"name": "partial"}

    async def test_configured_env_reaches_server(self, fake_server):
        transport = fake_server("env_echo", env={"FAKE_SERVER_NAME": "from-config"})
        result = await StdioProbe().probe("env", transport, timeout_ms=8000)
        assert result.server_info == {"name": "from-config"}

    async def test_empty_command(self, recording_subprocess):
        probe = StdioProbe(subprocess=recording_subprocess)
        result = await probe.probe("none", StdioTransport(command=""), timeout_ms=1000)
        assert result.status == ProbeStatus.FAILED
        assert result.error == "No command specified"
        assert recording_subprocess.pids == []

    async def test_spawn_error(self):
        transport = StdioTransport(command="definitely-not-a-real-command-xyz")
        result = await StdioProbe().probe("missing", transport, timeout_ms=1000)
        assert result.status == ProbeStatus.FAILED
        assert result.error

    async def test_injected_spawn_failure(self):
        class FailingSubprocess(SubprocessPrimitive):
            async def spawn(self, command, args=None, env=None, cwd=None):
                return SpawnResult(success=False, error="spawn EACCES")

        probe = StdioProbe(subprocess=FailingSubprocess())
        result = await probe.probe("x", StdioTransport(command="node"), timeout_ms=1000)
        assert result.status == ProbeStatus.FAILED
        assert result.error == "spawn EACCES"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX process checks")
    async def test_cancellation_still_cleans_up(self, fake_server, recording_subprocess):
        probe = StdioProbe(subprocess=recording_subprocess)
        task = asyncio.create_task(probe.probe("slow", fake_server("sleeping"), timeout_ms=30000))
        while not recording_subprocess.pids:
            await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        [pid] = recording_subprocess.pids
        assert len(recording_subprocess.kills) == 1
        assert not pid_alive(pid)
