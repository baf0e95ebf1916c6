"""Config resolution.

Turns a ConfigStore view plus the current project path into the resolved
server list: every valid spec with its final enabled flag. Invalid entries
are logged and dropped one by one; they never fail the whole list.
"""

import logging
from typing import Any, Dict, List, Optional

from mcpscope.config.models import ResolvedServer, ServerSpec, validate_server_config
from mcpscope.config.store import ConfigStore, ConfigView, check_scope_key, is_valid_scope_key
from mcpscope.primitives.errors import ValidationError

logger = logging.getLogger(__name__)


class ConfigResolver:
    """Merges global and project disable sets over a ConfigStore view."""

    def __init__(self, store: Optional[ConfigStore] = None):
        self.store = store or ConfigStore()

    def list_resolved(self, project_path: Optional[str] = None) -> List[ResolvedServer]:
        """Resolved servers in on-disk order.

        ``enabled`` is False exactly when the id is in the global disabled
        set or in the disabled set of ``project_path``.

        Raises:
            ConfigReadError: the consulted store holds malformed JSON.
        """
        if project_path and not is_valid_scope_key(project_path):
            logger.warning("Ignoring invalid project path %r", project_path)
            project_path = None

        view = self.store.load()
        return self.resolve(view, project_path)

    def resolve(
        self, view: ConfigView, project_path: Optional[str] = None
    ) -> List[ResolvedServer]:
        """Pure resolution over an already-loaded view."""
        disabled = view.disabled_for(project_path)
        resolved: List[ResolvedServer] = []

        for server_id, raw in view.servers.items():
            try:
                spec = ServerSpec.from_config(server_id, raw)
            except ValidationError as e:
                logger.warning("Skipping MCP server %r: %s", server_id, e)
                continue
            resolved.append(ResolvedServer(spec=spec, enabled=server_id not in disabled))

        logger.debug(
            "Resolved %d servers from %s store (%d disabled, project: %s)",
            len(resolved),
            view.source or "no",
            sum(1 for r in resolved if not r.enabled),
            project_path or "(global)",
        )
        return resolved

    def get(self, server_id: str, project_path: Optional[str] = None) -> ResolvedServer:
        """Look up one resolved server.

        Raises:
            KeyError: no valid server with that id.
        """
        for server in self.list_resolved(project_path):
            if server.id == server_id:
                return server
        raise KeyError(server_id)

    def upsert(
        self,
        spec: ServerSpec,
        enabled: bool = True,
        project_path: Optional[str] = None,
    ) -> str:
        """Validate, then write through to the store.

        Raises:
            ValidationError: invalid spec or project path.
            ConfigReadError, ConfigWriteError: store failures.
        """
        project_path = check_scope_key(project_path)
        # Round-trip through the on-disk form so the written spec is one the
        # resolver will read back.
        ServerSpec.from_config(spec.id, spec.to_config())
        return self.store.upsert(spec, enabled, project_path)

    def delete(self, server_id: str) -> bool:
        return self.store.delete(server_id)

    @staticmethod
    def validate(raw: Any) -> List[ValidationError]:
        return validate_server_config(raw)

    @staticmethod
    def parse(server_id: str, raw: Dict[str, Any]) -> ServerSpec:
        return ServerSpec.from_config(server_id, raw)
