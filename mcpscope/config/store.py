"""Config store I/O.

Two mutually exclusive persisted representations of the server list:

- primary (``~/.claude.json``): ``mcpServers`` is an id -> spec mapping, with
  a global ``disabledMcpServers`` list and per-project lists under
  ``projects.<path>.disabledMcpServers``.
- secondary (``~/.codemoss/config.json``): ``mcpServers`` is an array of
  entries carrying their own ``id`` and ``enabled`` flag. No project scopes.

The primary store wins whenever it holds at least one server. Every write
is a whole-file read-merge-write under a per-file lock, committed with
fsync + rename.
"""

import json
import logging
import os
import stat
import tempfile
import threading
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Set

from mcpscope.constants import (
    FORBIDDEN_SCOPE_KEYS,
    RESERVED_FIELDS,
    ConfigKey,
    StoreName,
    TransportType,
)
from mcpscope.config.models import HTTP_FIELDS, STDIO_FIELDS, ServerSpec
from mcpscope.primitives.errors import ConfigReadError, ConfigWriteError, ValidationError
from mcpscope.utils.path_utils import (
    ensure_parent_directory,
    get_primary_config_path,
    get_secondary_config_path,
)

logger = logging.getLogger(__name__)

_locks: Dict[str, threading.RLock] = {}
_locks_guard = threading.Lock()


def _file_lock(path: Path) -> threading.RLock:
    key = str(Path(path).expanduser().absolute())
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.RLock()
        return lock


def is_valid_scope_key(project_path: Any) -> bool:
    """Project paths are untrusted mapping keys."""
    return (
        isinstance(project_path, str)
        and bool(project_path)
        and project_path not in FORBIDDEN_SCOPE_KEYS
    )


def check_scope_key(project_path: Optional[str]) -> Optional[str]:
    """Normalize a project path argument; empty means global.

    Raises:
        ValidationError: for the forbidden keys or a non-string value.
    """
    if project_path is None or project_path == "":
        return None
    if not is_valid_scope_key(project_path):
        raise ValidationError("project_path", "not allowed as a scope key", project_path)
    return project_path


def _id_set(value: Any) -> Set[str]:
    if not isinstance(value, list):
        return set()
    return {item for item in value if isinstance(item, str)}


def _without(value: Any, server_id: str) -> List[Any]:
    if not isinstance(value, list):
        return []
    return [item for item in value if item != server_id]


@dataclass
class ConfigView:
    """Normalized view over whichever store was consulted.

    Attributes:
        servers: id -> raw spec object (reserved fields removed, ``name``
            kept as the display name), in on-disk order.
        global_disabled: ids disabled everywhere.
        project_disabled: project path -> ids disabled in that project.
        source: StoreName of the store that produced the view, or None.
    """

    servers: Dict[str, Any] = field(default_factory=dict)
    global_disabled: Set[str] = field(default_factory=set)
    project_disabled: Dict[str, Set[str]] = field(default_factory=dict)
    source: Optional[str] = None

    def disabled_for(self, project_path: Optional[str] = None) -> Set[str]:
        disabled = set(self.global_disabled)
        if is_valid_scope_key(project_path):
            disabled |= self.project_disabled.get(project_path, set())
        return disabled


class JsonDocument:
    """One JSON file on disk with atomic, durable writes."""

    def __init__(self, path: Path, name: str):
        self.path = Path(path)
        self.name = name
        self.lock = _file_lock(self.path)

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> Optional[Dict[str, Any]]:
        """Load the document.

        Returns:
            The parsed object, or None when the file does not exist.

        Raises:
            ConfigReadError: unreadable file, malformed JSON, or a top level
                that is not an object.
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ConfigReadError(
                f"Cannot read {self.name} config: {e}", path=str(self.path), cause=e
            )

        if not content.strip():
            return {}

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ConfigReadError(
                f"Invalid JSON in {self.name} config: {e}", path=str(self.path), cause=e
            )

        if not isinstance(data, dict):
            raise ConfigReadError(
                f"{self.name} config must be a JSON object, got {type(data).__name__}",
                path=str(self.path),
            )
        return data

    def write(self, data: Dict[str, Any]) -> Path:
        """Replace the document; flushed to stable storage before returning.

        Raises:
            ConfigWriteError: serialization or filesystem failure. The
                previous content is left untouched.
        """
        tmp_name = None
        try:
            content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
            ensure_parent_directory(self.path)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            if self.path.exists():
                os.chmod(tmp_name, stat.S_IMODE(self.path.stat().st_mode))
            os.replace(tmp_name, self.path)
            tmp_name = None
            self._sync_directory()
        except (OSError, TypeError, ValueError) as e:
            raise ConfigWriteError(
                f"Failed to write {self.name} config: {e}", path=str(self.path), cause=e
            )
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
        return self.path

    def _sync_directory(self) -> None:
        if os.name == "nt":
            return
        dir_fd = os.open(str(self.path.parent), os.O_RDONLY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)


class ConfigStore:
    """Uniform read/write view over the primary and secondary stores."""

    def __init__(
        self,
        home: Optional[Path] = None,
        primary_path: Optional[Path] = None,
        secondary_path: Optional[Path] = None,
    ):
        self.primary = JsonDocument(
            primary_path or get_primary_config_path(home), StoreName.PRIMARY
        )
        self.secondary = JsonDocument(
            secondary_path or get_secondary_config_path(home), StoreName.SECONDARY
        )

    @contextmanager
    def _locked(self) -> Iterator[None]:
        # Fixed order (primary, then secondary) so concurrent writers never
        # deadlock on each other.
        with ExitStack() as stack:
            stack.enter_context(self.primary.lock)
            stack.enter_context(self.secondary.lock)
            yield

    # -- read ---------------------------------------------------------------

    def load(self) -> ConfigView:
        """Read the primary store, falling back to the secondary store.

        Raises:
            ConfigReadError: the consulted store holds malformed JSON.
        """
        with self._locked():
            primary = self.primary.read()
            view = self._primary_view(primary) if primary is not None else None
            if view is not None:
                logger.debug(
                    "Loaded %d servers from %s (global disabled: %d)",
                    len(view.servers),
                    self.primary.path,
                    len(view.global_disabled),
                )
                return view

            secondary = self.secondary.read()
            view = self._secondary_view(secondary) if secondary is not None else None
            if view is not None:
                logger.debug(
                    "Loaded %d servers from %s", len(view.servers), self.secondary.path
                )
                return view

        logger.info("No MCP server config found")
        return ConfigView()

    def _primary_view(self, data: Dict[str, Any]) -> Optional[ConfigView]:
        servers = data.get(ConfigKey.SERVERS)
        if not isinstance(servers, dict) or not servers:
            return None

        normalized: Dict[str, Any] = {}
        for server_id, raw in servers.items():
            if isinstance(raw, dict):
                raw = {
                    k: v for k, v in raw.items() if k == "name" or k not in RESERVED_FIELDS
                }
            normalized[server_id] = raw

        project_disabled: Dict[str, Set[str]] = {}
        projects = data.get(ConfigKey.PROJECTS)
        if isinstance(projects, dict):
            for project_path, project in projects.items():
                if not is_valid_scope_key(project_path) or not isinstance(project, dict):
                    continue
                ids = _id_set(project.get(ConfigKey.DISABLED))
                if ids:
                    project_disabled[project_path] = ids

        return ConfigView(
            servers=normalized,
            global_disabled=_id_set(data.get(ConfigKey.DISABLED)),
            project_disabled=project_disabled,
            source=StoreName.PRIMARY,
        )

    def _secondary_view(self, data: Dict[str, Any]) -> Optional[ConfigView]:
        entries = data.get(ConfigKey.SERVERS)
        if not isinstance(entries, list):
            return None

        servers: Dict[str, Any] = {}
        disabled: Set[str] = set()
        for entry in entries:
            if not isinstance(entry, dict) or not isinstance(entry.get("id"), str):
                continue
            server_id = entry["id"]
            if not server_id:
                continue

            nested = entry.get("server")
            if isinstance(nested, dict):
                raw = dict(nested)
            else:
                raw = {k: v for k, v in entry.items() if k not in RESERVED_FIELDS}
            if isinstance(entry.get("name"), str):
                raw["name"] = entry["name"]
            servers[server_id] = raw

            if entry.get("enabled") is False:
                disabled.add(server_id)

        if not servers:
            return None
        return ConfigView(
            servers=servers,
            global_disabled=disabled,
            project_disabled={},
            source=StoreName.SECONDARY,
        )

    # -- write --------------------------------------------------------------

    def upsert(
        self,
        spec: ServerSpec,
        enabled: bool,
        project_path: Optional[str] = None,
    ) -> str:
        """Create or update ``spec`` and record its enabled state.

        Writes to the store that produced the current view. When neither
        store holds servers, the primary store is used if its file exists,
        otherwise the secondary store.

        Returns:
            The StoreName written.

        Raises:
            ValidationError: forbidden project path.
            ConfigReadError: the target store holds malformed JSON.
            ConfigWriteError: the write failed. Never retried elsewhere.
        """
        project_path = check_scope_key(project_path)

        with self._locked():
            primary = self.primary.read()
            if primary is not None and self._primary_view(primary) is not None:
                target = StoreName.PRIMARY
            else:
                secondary = self.secondary.read()
                if secondary is not None and self._secondary_view(secondary) is not None:
                    target = StoreName.SECONDARY
                elif primary is not None:
                    target = StoreName.PRIMARY
                else:
                    target = StoreName.SECONDARY

            if target == StoreName.PRIMARY:
                self._upsert_primary(primary, spec, enabled, project_path)
                self.primary.write(primary)
            else:
                if project_path is not None:
                    logger.debug(
                        "Secondary store has no project scopes; %s enabled=%s applies globally",
                        spec.id,
                        enabled,
                    )
                data = secondary if secondary is not None else {}
                self._upsert_secondary(data, spec, enabled)
                self.secondary.write(data)

        logger.info(
            "Upserted MCP server %s in %s store (enabled: %s, scope: %s)",
            spec.id,
            target,
            enabled,
            project_path or "(global)",
        )
        return target

    def _upsert_primary(
        self,
        data: Dict[str, Any],
        spec: ServerSpec,
        enabled: bool,
        project_path: Optional[str],
    ) -> None:
        servers = data.get(ConfigKey.SERVERS)
        if not isinstance(servers, dict):
            servers = data[ConfigKey.SERVERS] = {}

        fields = spec.to_config()
        existing = servers.get(spec.id)
        if isinstance(existing, dict):
            merged = dict(existing)
            # Switching transport drops the other variant's fields so the
            # merged spec cannot be classified as the old transport.
            stale = STDIO_FIELDS if spec.is_http else HTTP_FIELDS
            for key in stale:
                if key not in fields:
                    merged.pop(key, None)
            if not spec.is_http and merged.get("type") in TransportType.HTTP_TYPES:
                merged.pop("type")
            merged.update(fields)
            fields = merged
        servers[spec.id] = fields

        if project_path is None:
            disabled = _without(data.get(ConfigKey.DISABLED), spec.id)
            if not enabled:
                disabled.append(spec.id)
            data[ConfigKey.DISABLED] = disabled
            return

        projects = data.get(ConfigKey.PROJECTS)
        if not isinstance(projects, dict):
            projects = data[ConfigKey.PROJECTS] = {}
        project = projects.get(project_path)
        if not isinstance(project, dict):
            project = projects[project_path] = {}
        disabled = _without(project.get(ConfigKey.DISABLED), spec.id)
        if not enabled:
            disabled.append(spec.id)
        project[ConfigKey.DISABLED] = disabled

    def _upsert_secondary(
        self, data: Dict[str, Any], spec: ServerSpec, enabled: bool
    ) -> None:
        entries = data.get(ConfigKey.SERVERS)
        if not isinstance(entries, list):
            entries = data[ConfigKey.SERVERS] = []

        entry = {
            "id": spec.id,
            "name": spec.display_name,
            "enabled": enabled,
            "server": spec.to_config(),
        }
        for index, existing in enumerate(entries):
            if isinstance(existing, dict) and existing.get("id") == spec.id:
                entries[index] = entry
                return
        entries.append(entry)

    def delete(self, server_id: str) -> bool:
        """Remove a server and scrub it from every disabled list.

        Returns:
            True if a spec or a disabled-list entry was removed.

        Raises:
            ConfigReadError, ConfigWriteError: as for upsert.
        """
        removed = False
        with self._locked():
            primary = self.primary.read()
            if primary is not None:
                servers = primary.get(ConfigKey.SERVERS)
                found = isinstance(servers, dict) and server_id in servers
                if found:
                    del servers[server_id]
                scrubbed = self._scrub_disabled(primary, server_id)
                if found or scrubbed:
                    self.primary.write(primary)
                    removed = True
                if found:
                    logger.info("Deleted MCP server %s from primary store", server_id)
                    return True

            secondary = self.secondary.read()
            if secondary is not None:
                entries = secondary.get(ConfigKey.SERVERS)
                if isinstance(entries, list):
                    kept = [
                        e
                        for e in entries
                        if not (isinstance(e, dict) and e.get("id") == server_id)
                    ]
                    if len(kept) != len(entries):
                        secondary[ConfigKey.SERVERS] = kept
                        self.secondary.write(secondary)
                        logger.info("Deleted MCP server %s from secondary store", server_id)
                        removed = True

        return removed

    def _scrub_disabled(self, data: Dict[str, Any], server_id: str) -> bool:
        changed = False
        disabled = data.get(ConfigKey.DISABLED)
        if isinstance(disabled, list) and server_id in disabled:
            data[ConfigKey.DISABLED] = _without(disabled, server_id)
            changed = True

        projects = data.get(ConfigKey.PROJECTS)
        if isinstance(projects, dict):
            for project in projects.values():
                if not isinstance(project, dict):
                    continue
                project_disabled = project.get(ConfigKey.DISABLED)
                if isinstance(project_disabled, list) and server_id in project_disabled:
                    project[ConfigKey.DISABLED] = _without(project_disabled, server_id)
                    changed = True
        return changed
