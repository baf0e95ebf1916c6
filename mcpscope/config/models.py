"""Server spec data model.

A ServerSpec is one configured MCP backend: an id, a display name and
exactly one transport. ``extra`` carries the on-disk fields this library
does not model so that writes never drop them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

from mcpscope.constants import RESERVED_FIELDS, TransportType
from mcpscope.primitives.errors import ValidationError

STDIO_FIELDS = ("command", "args", "env")
HTTP_FIELDS = ("url", "headers")


@dataclass
class StdioTransport:
    """Local subprocess speaking JSON-RPC over stdin/stdout."""

    command: str
    args: List[str] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)

    name = TransportType.STDIO


@dataclass
class HttpTransport:
    """Remote endpoint speaking JSON-RPC over an HTTP POST body.

    ``kind`` is the declared type (http or sse), ``auto`` when undeclared.
    """

    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    kind: str = TransportType.AUTO

    name = TransportType.HTTP


Transport = Union[StdioTransport, HttpTransport]


def is_http_config(raw: Dict[str, Any]) -> bool:
    """HTTP when the type says so, or when there is a url and no command."""
    declared = raw.get("type")
    if declared in TransportType.HTTP_TYPES:
        return True
    return bool(raw.get("url")) and not raw.get("command")


def is_absolute_url(url: Any) -> bool:
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


def _string_list(server_id: str, name: str, value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError(name, f"must be a list of strings ({server_id})", value)
    return [str(item) for item in value]


def _string_map(server_id: str, name: str, value: Any) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(name, f"must be a mapping ({server_id})", value)
    return {str(k): "" if v is None else str(v) for k, v in value.items()}


@dataclass
class ServerSpec:
    """One configured backend."""

    id: str
    transport: Transport
    display_name: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.display_name:
            self.display_name = self.id

    @property
    def is_http(self) -> bool:
        return isinstance(self.transport, HttpTransport)

    @classmethod
    def from_config(cls, server_id: str, raw: Dict[str, Any]) -> "ServerSpec":
        """Build a spec from an on-disk server object.

        Raises:
            ValidationError: no command and no url, a malformed url, or
                args/env/headers of the wrong shape.
        """
        if not isinstance(server_id, str) or not server_id:
            raise ValidationError("id", "must be a non-empty string", server_id)
        if not isinstance(raw, dict):
            raise ValidationError("server", f"must be an object ({server_id})", raw)

        command = raw.get("command")
        url = raw.get("url")
        if not command and not url:
            raise ValidationError(
                "command", f"server {server_id} declares neither a command nor a url", None
            )

        display_name = raw.get("name") if isinstance(raw.get("name"), str) else None

        if is_http_config(raw):
            if not is_absolute_url(url):
                raise ValidationError("url", f"not an absolute URI ({server_id})", url)
            declared = raw.get("type")
            transport: Transport = HttpTransport(
                url=url.strip(),
                headers=_string_map(server_id, "headers", raw.get("headers")),
                kind=declared if declared in TransportType.HTTP_TYPES else TransportType.AUTO,
            )
            modelled = set(HTTP_FIELDS) | {"type"}
        else:
            if not isinstance(command, str):
                raise ValidationError("command", f"must be a string ({server_id})", command)
            transport = StdioTransport(
                command=command,
                args=_string_list(server_id, "args", raw.get("args")),
                env=_string_map(server_id, "env", raw.get("env")),
            )
            modelled = set(STDIO_FIELDS)

        extra = {
            k: v for k, v in raw.items() if k not in modelled and k not in RESERVED_FIELDS
        }
        return cls(
            id=server_id,
            transport=transport,
            display_name=display_name,
            extra=extra,
        )

    def to_config(self) -> Dict[str, Any]:
        """On-disk transport fields (no id, name or enabled)."""
        data: Dict[str, Any] = dict(self.extra)
        transport = self.transport
        if isinstance(transport, HttpTransport):
            if transport.kind != TransportType.AUTO:
                data["type"] = transport.kind
            data["url"] = transport.url
            if transport.headers:
                data["headers"] = dict(transport.headers)
        else:
            data["command"] = transport.command
            data["args"] = list(transport.args)
            if transport.env:
                data["env"] = dict(transport.env)
        return data


@dataclass
class ResolvedServer:
    """A spec with its final enabled state for one scope."""

    spec: ServerSpec
    enabled: bool

    @property
    def id(self) -> str:
        return self.spec.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.spec.id,
            "name": self.spec.display_name,
            "enabled": self.enabled,
            "server": self.spec.to_config(),
        }


def validate_server_config(raw: Any) -> List[ValidationError]:
    """Check a raw server object field by field without raising.

    Accepts either a bare transport object or an entry with the transport
    nested under ``server``. An empty list means the entry is valid.
    """
    errors: List[ValidationError] = []
    if not isinstance(raw, dict):
        return [ValidationError("server", "must be an object", raw)]

    if "name" in raw and (not isinstance(raw["name"], str) or not raw["name"].strip()):
        errors.append(ValidationError("name", "must not be empty", raw.get("name")))

    spec = raw.get("server") if isinstance(raw.get("server"), dict) else raw

    declared = spec.get("type")
    if declared is not None and declared not in TransportType.DECLARABLE:
        errors.append(ValidationError("type", "unsupported transport type", declared))

    command = spec.get("command")
    url = spec.get("url")
    if not command and not url:
        errors.append(ValidationError("command", "either command or url is required", None))
    elif is_http_config(spec):
        if not is_absolute_url(url):
            errors.append(ValidationError("url", "not an absolute URI", url))
    elif not isinstance(command, str) or not command.strip():
        errors.append(ValidationError("command", "must be a non-empty string", command))

    if "args" in spec and not isinstance(spec["args"], list):
        errors.append(ValidationError("args", "must be a list of strings", spec["args"]))
    for key in ("env", "headers"):
        if key in spec and not isinstance(spec[key], dict):
            errors.append(ValidationError(key, "must be a mapping", spec[key]))

    return errors
