"""Config resolution: the two stores, the server model and the resolver."""

from mcpscope.config.models import (
    HttpTransport,
    ResolvedServer,
    ServerSpec,
    StdioTransport,
    validate_server_config,
)
from mcpscope.config.resolver import ConfigResolver
from mcpscope.config.store import ConfigStore, ConfigView

__all__ = [
    "ServerSpec",
    "StdioTransport",
    "HttpTransport",
    "ResolvedServer",
    "validate_server_config",
    "ConfigStore",
    "ConfigView",
    "ConfigResolver",
]
