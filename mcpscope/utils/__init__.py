from mcpscope.utils.logger import cleanup_old_logs, get_logger
from mcpscope.utils.path_utils import (
    get_home,
    get_primary_config_path,
    get_secondary_config_path,
    get_verify_timeout_ms,
)

__all__ = [
    "get_logger",
    "cleanup_old_logs",
    "get_home",
    "get_primary_config_path",
    "get_secondary_config_path",
    "get_verify_timeout_ms",
]
