"""Error types for mcpscope.

Config errors propagate to the caller of list/upsert/delete. Probe errors
are raised inside a probe and folded into a VerificationResult at the probe
boundary, so they never escape a verification pass.
"""

from typing import Any, Optional


class McpScopeError(Exception):
    """Base exception for mcpscope failures.

    Attributes:
        message: Error description.
        cause: Optional underlying exception being wrapped.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConfigReadError(McpScopeError):
    """A config store that was consulted holds malformed JSON.

    Attributes:
        message: Description of the error.
        path: Path of the offending store file.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, cause=cause)
        self.path = path


class ConfigWriteError(McpScopeError):
    """A write failed after a config store was chosen.

    The data is never redirected to the other store when this is raised.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, cause=cause)
        self.path = path


class ValidationError(McpScopeError):
    """Validation error with field, error message, and value.

    Attributes:
        field: The field name that failed validation.
        error: Description of the validation error.
        value: The value that failed validation.
    """

    def __init__(self, field: str, error: str, value: Any = None):
        super().__init__(f"{field}: {error}")
        self.field = field
        self.error = error
        self.value = value

    def __str__(self) -> str:
        return f"ValidationError: {self.field} - {self.error} (got {self.value!r})"

    def to_dict(self):
        return {"field": self.field, "error": self.error, "value": self.value}


class ProbeError(McpScopeError):
    """Base for failures inside a single probe.

    ``status`` is the VerificationResult status the error maps to.
    """

    status = "failed"


class ProbeSpawnError(ProbeError):
    """The server process could not be started."""


class ProbeTimeoutError(ProbeError):
    """The probe used up its time budget without a conclusive answer."""

    status = "pending"

    def __init__(self, timeout_ms: int):
        super().__init__(f"Connection timeout after {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class ProbeProtocolError(ProbeError):
    """The server answered, but not with a usable MCP response."""


class ProbeInconclusiveError(ProbeProtocolError):
    """The process exited cleanly without saying anything recognizable."""

    status = "pending"


class ProbeTransportError(ProbeError):
    """Network-layer failure (DNS, refused connection, TLS, ...)."""
