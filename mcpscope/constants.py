"""mcpscope constants

Centralized names for the config stores, the probe handshake and the
limits every probe honours.
"""

# Primary store: layered map format, lives directly in the home directory.
PRIMARY_CONFIG_NAME = ".claude.json"

# Secondary store: flat array format, <home>/.codemoss/config.json
SECONDARY_CONFIG_DIR = ".codemoss"
SECONDARY_CONFIG_NAME = "config.json"

# Logs go under <home>/.mcpscope/logs/
STATE_DIR = ".mcpscope"


class StoreName:
    """Config store identifiers."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class ConfigKey:
    """Keys used in the persisted JSON documents."""

    SERVERS = "mcpServers"
    DISABLED = "disabledMcpServers"
    PROJECTS = "projects"


# Fields of an on-disk server object that are bookkeeping, not transport.
RESERVED_FIELDS = frozenset({"id", "name", "enabled", "server", "apps"})

# Project paths are used as mapping keys; these are never accepted.
FORBIDDEN_SCOPE_KEYS = frozenset({"__proto__", "constructor", "prototype"})


class TransportType:
    """Declared transport types."""

    STDIO = "stdio"
    HTTP = "http"
    SSE = "sse"
    AUTO = "auto"

    HTTP_TYPES = [HTTP, SSE]
    DECLARABLE = [STDIO, HTTP, SSE]


# Handshake
JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"
CLIENT_NAME = "codemoss-ide"
CLIENT_VERSION = "1.0.0"

# Text markers that identify an MCP/JSON-RPC response in raw output.
RESPONSE_MARKERS = ('"jsonrpc"', '"result"')
LOOSE_MARKER = "MCP"

# Limits
DEFAULT_TIMEOUT_MS = 8000
KILL_GRACE_SECONDS = 0.5
MAX_LINE_LENGTH = 10_000
MAX_STDOUT_BYTES = 1024 * 1024
READ_CHUNK_SIZE = 4096
BODY_EXCERPT_LENGTH = 100

# Environment overrides
ENV_HOME = "MCPSCOPE_HOME"
ENV_TIMEOUT = "MCP_VERIFY_TIMEOUT"
ENV_DEBUG = "MCP_DEBUG"
