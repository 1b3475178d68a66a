"""
Error logging utilities for the foldertag CLI.

Logs full stack traces for debugging while showing clean messages to users.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

ERROR_LOG_FILENAME = "foldertag-errors.log"


def _error_log_path(config_dir: Optional[Path] = None) -> Path:
    """Resolve error log path, respecting FOLDERTAG_CONFIG_DIR."""
    if config_dir is not None:
        return Path(config_dir) / ERROR_LOG_FILENAME
    env_dir = os.environ.get("FOLDERTAG_CONFIG_DIR")
    if env_dir:
        return Path(env_dir) / ERROR_LOG_FILENAME
    return Path.home() / ".foldertag" / ERROR_LOG_FILENAME


def log_exception(exc: Exception, context: str = "", config_dir: Optional[Path] = None) -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)
        config_dir: Directory for the log (default: FOLDERTAG_CONFIG_DIR or ~/.foldertag)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path(config_dir)
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    except OSError:
        pass  # error log is best effort
    return log_path
