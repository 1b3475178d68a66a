"""
Logging configuration for foldertag.

Quiet by default: the CLI prints its own summaries. Debug output goes to
stderr on request; an operations log in the config directory records every
batch run and settings change.
"""

import logging
import os
import sys
import warnings
from logging.handlers import RotatingFileHandler
from pathlib import Path

OPS_LOG_FILENAME = "foldertag-ops.log"


def configure_quiet_mode(quiet: bool = True):
    """
    Keep library chatter off the terminal.

    Args:
        quiet: If True, suppress warnings and keep the package logger at WARNING.
    """
    if quiet:
        warnings.filterwarnings("ignore")
        logging.getLogger("foldertag").setLevel(logging.WARNING)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    warnings.filterwarnings("default")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    logging.getLogger("foldertag").setLevel(logging.DEBUG)


def verbose_from_env() -> bool:
    return os.environ.get("FOLDERTAG_VERBOSE") == "1"


def configure_ops_log(config_dir):
    """Configure a persistent operations log for a vault.

    Writes to {config_dir}/foldertag-ops.log using a rotating file handler
    (1MB max, 3 backups). Always active regardless of --verbose.
    Only one vault's ops log is attached at a time.
    """
    log_path = Path(config_dir) / OPS_LOG_FILENAME
    log_path.parent.mkdir(parents=True, exist_ok=True)

    pkg_logger = logging.getLogger("foldertag")
    for existing in list(pkg_logger.handlers):
        if not isinstance(existing, RotatingFileHandler):
            continue
        if Path(existing.baseFilename) == log_path.resolve():
            return existing
        if Path(existing.baseFilename).name == OPS_LOG_FILENAME:
            pkg_logger.removeHandler(existing)
            existing.close()

    handler = RotatingFileHandler(
        str(log_path),
        maxBytes=1_000_000,
        backupCount=3,
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    pkg_logger.addHandler(handler)
    # Ensure INFO reaches the ops log even in quiet mode
    if pkg_logger.level == logging.NOTSET or pkg_logger.level > logging.INFO:
        pkg_logger.setLevel(logging.INFO)

    return handler
