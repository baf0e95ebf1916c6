"""CLI verbs. Each module exposes ``register(subparsers)`` and a handler."""

from pathlib import Path
from typing import Optional

from mcpscope.config.resolver import ConfigResolver
from mcpscope.config.store import ConfigStore
from mcpscope.orchestrator import VerificationOrchestrator


def build_orchestrator(home: Optional[str], timeout_ms: Optional[int] = None) -> VerificationOrchestrator:
    store = ConfigStore(home=Path(home) if home else None)
    return VerificationOrchestrator(ConfigResolver(store), timeout_ms=timeout_ms)
