"""Path and environment helpers.

Resolves where the config stores and logs live, and reads the environment
overrides.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from mcpscope.constants import (
    DEFAULT_TIMEOUT_MS,
    ENV_DEBUG,
    ENV_HOME,
    ENV_TIMEOUT,
    PRIMARY_CONFIG_NAME,
    SECONDARY_CONFIG_DIR,
    SECONDARY_CONFIG_NAME,
    STATE_DIR,
)

logger = logging.getLogger(__name__)


def ensure_directory(path: Path) -> Path:
    """Ensure directory exists, creating it and all parents if necessary.

    Raises:
        OSError: If directory cannot be created
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def ensure_parent_directory(file_path: Path) -> Path:
    """Ensure parent directory of file path exists."""
    return ensure_directory(Path(file_path).parent)


def get_home(home: Optional[Path] = None) -> Path:
    """Base directory for config stores: explicit, $MCPSCOPE_HOME, or ~."""
    if home is not None:
        return Path(home).expanduser()
    env_home = os.getenv(ENV_HOME)
    if env_home:
        return Path(env_home).expanduser()
    return Path.home()


def get_primary_config_path(home: Optional[Path] = None) -> Path:
    """~/.claude.json"""
    return get_home(home) / PRIMARY_CONFIG_NAME


def get_secondary_config_path(home: Optional[Path] = None) -> Path:
    """~/.codemoss/config.json"""
    return get_home(home) / SECONDARY_CONFIG_DIR / SECONDARY_CONFIG_NAME


def get_state_dir(home: Optional[Path] = None) -> Path:
    return get_home(home) / STATE_DIR


def get_verify_timeout_ms() -> int:
    """Per-probe budget from $MCP_VERIFY_TIMEOUT, falling back to the default.

    Non-numeric or non-positive values fall back too.
    """
    raw = os.getenv(ENV_TIMEOUT)
    if not raw:
        return DEFAULT_TIMEOUT_MS
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", ENV_TIMEOUT, raw)
        return DEFAULT_TIMEOUT_MS
    return value if value > 0 else DEFAULT_TIMEOUT_MS


def is_debug() -> bool:
    return os.getenv(ENV_DEBUG) == "true" or os.getenv("DEBUG") == "true"
