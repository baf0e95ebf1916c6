"""Shared fixtures: an isolated home directory and scripted fake MCP servers."""

import json
import sys
import textwrap
from pathlib import Path

import pytest

from mcpscope.config.models import StdioTransport
from mcpscope.config.resolver import ConfigResolver
from mcpscope.config.store import ConfigStore
from mcpscope.primitives.subprocess import SubprocessPrimitive

INITIALIZE_RESPONSE = {
    "jsonrpc": "2.0",
    "id": 1,
    "result": {
        "protocolVersion": "2024-11-05",
        "capabilities": {"tools": {}},
        "serverInfo": {"name": "fake-server", "version": "0.0.1"},
    },
}

FAKE_SERVERS = {
    # Answers the handshake, then exits 0.
    "responding": f"""
        import sys
        sys.stdin.readline()
        sys.stdout.write({json.dumps(json.dumps(INITIALIZE_RESPONSE))} + "\\n")
        sys.stdout.flush()
    """,
    # Answers the handshake after a log line, then keeps running.
    "lingering": f"""
        import sys, time
        sys.stdin.readline()
        print("fake server starting", flush=True)
        sys.stdout.write({json.dumps(json.dumps(INITIALIZE_RESPONSE))} + "\\n")
        sys.stdout.flush()
        time.sleep(60)
    """,
    # Never answers.
    "sleeping": """
        import time
        time.sleep(60)
    """,
    # Never answers and ignores SIGTERM.
    "stubborn": """
        import signal, time
        if hasattr(signal, "SIGTERM"):
            signal.signal(signal.SIGTERM, signal.SIG_IGN)
        print("ready", flush=True)
        time.sleep(60)
    """,
    "crashing": """
        import sys
        sys.stderr.write("boom\\n")
        sys.exit(1)
    """,
    "silent": """
        import sys
        sys.stdin.read()
    """,
    # Sends a ~6 KB reply split across writes, then keeps running.
    "large_reply": """
        import json, sys, time
        sys.stdin.readline()
        line = json.dumps({"jsonrpc": "2.0", "id": 1, "result": {
            "protocolVersion": "2024-11-05",
            "instructions": "x" * 6000,
            "serverInfo": {"name": "big", "version": "1"},
        }}) + "\\n"
        half = len(line) // 2
        sys.stdout.write(line[:half])
        sys.stdout.flush()
        time.sleep(0.3)
        sys.stdout.write(line[half:])
        sys.stdout.flush()
        time.sleep(60)
    """,
    # Replies without the trailing newline, then hangs.
    "unterminated": """
        import json, sys, time
        sys.stdin.readline()
        sys.stdout.write(json.dumps({"jsonrpc": "2.0", "id": 1,
                                     "result": {"serverInfo": {"name": "partial"}}}))
        sys.stdout.flush()
        time.sleep(60)
    """,
    # Logs a banner mentioning MCP, then exits without a response.
    "banner": """
        print("Starting MCP server on stdio", flush=True)
    """,
    # Reports the env var it was given.
    "env_echo": """
        import json, os, sys
        sys.stdin.readline()
        name = os.environ.get("FAKE_SERVER_NAME", "unset")
        print(json.dumps({"jsonrpc": "2.0", "id": 1,
                          "result": {"serverInfo": {"name": name}}}), flush=True)
    """,
}


@pytest.fixture(autouse=True)
def home(tmp_path, monkeypatch):
    """Point MCPSCOPE_HOME at an empty temporary directory for every test."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("MCPSCOPE_HOME", str(home_dir))
    monkeypatch.delenv("MCP_VERIFY_TIMEOUT", raising=False)
    monkeypatch.delenv("MCP_DEBUG", raising=False)
    return home_dir


@pytest.fixture
def store(home):
    return ConfigStore(home=home)


@pytest.fixture
def resolver(store):
    return ConfigResolver(store)


@pytest.fixture
def primary_path(home) -> Path:
    return home / ".claude.json"


@pytest.fixture
def secondary_path(home) -> Path:
    return home / ".codemoss" / "config.json"


@pytest.fixture
def write_json():
    def _write(path: Path, data) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def fake_server(tmp_path):
    """Return a factory: fake_server("responding") -> StdioTransport."""
    scripts_dir = tmp_path / "servers"
    scripts_dir.mkdir()

    def _make(kind: str, env=None) -> StdioTransport:
        script = scripts_dir / f"{kind}.py"
        script.write_text(textwrap.dedent(FAKE_SERVERS[kind]), encoding="utf-8")
        return StdioTransport(command=sys.executable, args=[str(script)], env=env or {})

    return _make


class RecordingSubprocess(SubprocessPrimitive):
    """SubprocessPrimitive that remembers what it spawned and how it stopped it."""

    def __init__(self, grace: float = 0.5):
        super().__init__(grace=grace)
        self.pids = []
        self.kills = []

    async def spawn(self, command, args=None, env=None, cwd=None):
        result = await super().spawn(command, args, env, cwd)
        if result.success:
            self.pids.append(result.pid)
        return result

    async def kill(self, process, grace=None):
        result = await super().kill(process, grace)
        self.kills.append(result)
        return result


@pytest.fixture
def recording_subprocess():
    return RecordingSubprocess()
