"""
Logger utility for mcpscope.

Implements rotating file logs in the state directory
({$MCPSCOPE_HOME or ~}/.mcpscope/logs/):
- mcpscope.log: Main log with 5MB rotation, keeps 3 backups
- mcpscope.errors.log: Errors only, 2MB rotation, keeps 2 backups
- mcpscope.json: Structured JSON, 5MB rotation, keeps 2 backups
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from mcpscope.utils.path_utils import ensure_directory, get_state_dir, is_debug


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def _get_log_dir(home: Optional[Path] = None) -> Path:
    return ensure_directory(get_state_dir(home) / "logs")


def get_logger(
    name: str,
    level: Optional[int] = None,
    home: Optional[Path] = None,
    debug: Optional[bool] = None,
) -> logging.Logger:
    """
    Get or create a logger with rotating file handlers.

    Logs to:
    - stderr (console) - warnings and errors only, everything in debug mode
    - .mcpscope/logs/mcpscope.log (rotating, 5MB max, 3 backups)
    - .mcpscope/logs/mcpscope.errors.log (errors only, 2MB max, 2 backups)
    - .mcpscope/logs/mcpscope.json (structured JSON, 5MB max, 2 backups)

    Args:
        name: Logger name
        level: Optional logging level (defaults to DEBUG)
        home: Base directory override
        debug: Console verbosity; defaults to $MCP_DEBUG

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    debug = is_debug() if debug is None else debug

    if not logger.handlers:
        text_formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
        console_handler.setFormatter(text_formatter)
        logger.addHandler(console_handler)

        try:
            log_dir = _get_log_dir(home)

            main_handler = RotatingFileHandler(
                log_dir / "mcpscope.log",
                maxBytes=5 * 1024 * 1024,
                backupCount=3,
                encoding="utf-8",
            )
            main_handler.setLevel(logging.DEBUG)
            main_handler.setFormatter(text_formatter)
            logger.addHandler(main_handler)

            error_handler = RotatingFileHandler(
                log_dir / "mcpscope.errors.log",
                maxBytes=2 * 1024 * 1024,
                backupCount=2,
                encoding="utf-8",
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(text_formatter)
            logger.addHandler(error_handler)

            json_handler = RotatingFileHandler(
                log_dir / "mcpscope.json",
                maxBytes=5 * 1024 * 1024,
                backupCount=2,
                encoding="utf-8",
            )
            json_handler.setLevel(logging.INFO)
            json_handler.setFormatter(JsonFormatter())
            logger.addHandler(json_handler)

        except OSError as e:
            logger.debug("File logging unavailable: %s", e)

    if level is not None:
        logger.setLevel(level)
    elif not logger.level:
        logger.setLevel(logging.DEBUG)

    return logger


def cleanup_old_logs(days: int = 30, home: Optional[Path] = None) -> int:
    """
    Remove log files older than specified days.

    Returns:
        Number of files removed
    """
    try:
        log_dir = _get_log_dir(home)
    except OSError:
        return 0

    cutoff = datetime.now().timestamp() - (days * 24 * 60 * 60)
    removed = 0

    for log_file in log_dir.glob("mcpscope*"):
        try:
            if log_file.stat().st_mtime < cutoff:
                log_file.unlink()
                removed += 1
        except OSError:
            continue

    return removed
