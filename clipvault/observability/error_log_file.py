"""Rotating error log file.

Storage and gateway failures are what operators need to look at after the
fact (orphan cleanup problems, ffmpeg stderr, metadata store errors), so
WARNING and above are also written to a size-bounded file.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clipvault.config import ClipVaultConfig


_error_file_handler: RotatingFileHandler | None = None


def setup_error_log_file(config: "ClipVaultConfig") -> RotatingFileHandler | None:
    """Attach a rotating error log handler to the root logger.

    Safe to call more than once; a previously installed handler is replaced.

    Args:
        config: Application configuration with error log settings.

    Returns:
        The configured RotatingFileHandler, or None if disabled or the file
        cannot be created.
    """
    global _error_file_handler

    if not config.error_log_file_enabled:
        return None

    log_file = Path(config.error_log_file_path).expanduser()
    if not log_file.is_absolute():
        from clipvault.config import _find_repo_root

        log_file = _find_repo_root(start=Path(__file__)) / log_file
    log_file = log_file.resolve()

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=config.error_log_max_bytes,
            backupCount=config.error_log_backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        print(f"Warning: Cannot create error log file {log_file}: {e}", file=sys.stderr)
        return None

    handler.setLevel(getattr(logging, config.error_log_level, logging.WARNING))
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    teardown_error_log_file()
    logging.getLogger().addHandler(handler)
    _error_file_handler = handler

    logging.getLogger(__name__).info(
        "Error log file handler initialized: %s (level=%s)",
        log_file,
        config.error_log_level,
    )
    return handler


def teardown_error_log_file() -> None:
    """Detach and close the handler installed by setup_error_log_file()."""
    global _error_file_handler

    if _error_file_handler is None:
        return
    logging.getLogger().removeHandler(_error_file_handler)
    _error_file_handler.close()
    _error_file_handler = None
