"""Subprocess primitive.

Spawns MCP server processes with every stdio stream piped and stops them
again: SIGTERM first, SIGKILL after a grace period.
"""

import asyncio
import logging
import os
import subprocess
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from mcpscope.constants import KILL_GRACE_SECONDS

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"


@dataclass
class SpawnResult:
    """Result of a process spawn.

    Attributes:
        success: True if the process was started.
        process: The running process, or None on failure.
        pid: PID of the spawned process, or None on failure.
        error: Error message on failure, or None on success.
        duration_ms: Time taken to spawn in milliseconds.
    """

    success: bool
    process: Optional[asyncio.subprocess.Process] = None
    pid: Optional[int] = None
    error: Optional[str] = None
    duration_ms: float = 0.0


@dataclass
class KillResult:
    """Result of process kill operation.

    Attributes:
        success: True if the process is no longer running.
        pid: PID that was targeted.
        method: How the process was stopped ("terminated", "killed", "already_dead").
        return_code: Exit code once reaped, if known.
        error: Error message on failure, or None on success.
    """

    success: bool
    pid: int = 0
    method: str = ""
    return_code: Optional[int] = None
    error: Optional[str] = None


class SubprocessPrimitive:
    """Starts and stops child processes for stdio probes."""

    def __init__(self, grace: float = KILL_GRACE_SECONDS):
        self.grace = grace

    async def spawn(
        self,
        command: str,
        args: Optional[List[str]] = None,
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> SpawnResult:
        """Spawn ``command`` with stdin, stdout and stderr all piped.

        ``env`` is merged over the current environment. On Windows the
        command goes through the shell so ``.cmd`` shims (npx, npm) resolve.
        """
        start_time = time.time()
        args = list(args or [])

        if not command:
            return SpawnResult(success=False, error="No command specified")

        process_env = self._prepare_env(env or {})

        try:
            if IS_WINDOWS:
                process = await asyncio.create_subprocess_shell(
                    subprocess.list2cmdline([command, *args]),
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    env=process_env,
                    cwd=cwd,
                )
            else:
                process = await asyncio.create_subprocess_exec(
                    command,
                    *args,
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    env=process_env,
                    cwd=cwd,
                )
        except (OSError, ValueError) as e:
            return SpawnResult(
                success=False,
                error=str(e) or type(e).__name__,
                duration_ms=(time.time() - start_time) * 1000,
            )

        logger.debug("Spawned %s (pid %s)", command, process.pid)
        return SpawnResult(
            success=True,
            process=process,
            pid=process.pid,
            duration_ms=(time.time() - start_time) * 1000,
        )

    async def kill(
        self,
        process: asyncio.subprocess.Process,
        grace: Optional[float] = None,
    ) -> KillResult:
        """Terminate ``process``, force-killing it if it outlives ``grace``.

        Always reaps the process. Never raises for a process that has
        already gone away.
        """
        grace = self.grace if grace is None else grace
        pid = process.pid

        if process.returncode is not None:
            return KillResult(
                success=True,
                pid=pid,
                method="already_dead",
                return_code=process.returncode,
            )

        method = "terminated"
        try:
            process.terminate()
        except ProcessLookupError:
            method = "already_dead"

        try:
            await asyncio.wait_for(process.wait(), timeout=grace)
        except asyncio.TimeoutError:
            method = "killed"
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()

        logger.debug("Process %s stopped (%s)", pid, method)
        return KillResult(
            success=True,
            pid=pid,
            method=method,
            return_code=process.returncode,
        )

    def _prepare_env(self, config_env: Dict[str, str]) -> Dict[str, str]:
        """Merge config_env over os.environ; values are coerced to strings."""
        result = os.environ.copy()
        result.update({str(k): str(v) for k, v in config_env.items()})
        return result
